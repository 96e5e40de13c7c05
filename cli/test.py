"""CLI wrapper: Run the test suite against an in-memory SQLite database."""

from __future__ import annotations

import sys

from cli._runner import run


def main() -> None:
    run([sys.executable, "-m", "pytest", "-q", *sys.argv[1:]])
