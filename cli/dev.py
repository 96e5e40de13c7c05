"""CLI wrapper: Start the development server with auto-reload.

Local runs default to the SQLite database and create missing tables on
startup; set ``DB_AUTO_CREATE=false`` to work against a prepared schema.
"""

from __future__ import annotations

import os
import sys

from cli._runner import run


def main() -> None:
    os.environ.setdefault("APP_ENV", "local")
    os.environ.setdefault("DB_AUTO_CREATE", "true")
    run(
        [
            sys.executable,
            "-m",
            "uvicorn",
            "app.main:app",
            "--reload",
            "--reload-dir",
            "app",
            "--host",
            "127.0.0.1",
            "--port",
            "8000",
            *sys.argv[1:],
        ]
    )
