"""CLI wrapper: Write the Person Directory OpenAPI schema to docs/openapi.json."""

from __future__ import annotations

import sys
from pathlib import Path

from cli._runner import run

_PROJECT_ROOT = Path(__file__).resolve().parent.parent


def main() -> None:
    if sys.argv[1:]:
        raise SystemExit("openapi takes no arguments; the schema is written to docs/openapi.json")
    run([sys.executable, str(_PROJECT_ROOT / "scripts" / "generate_openapi.py")])
