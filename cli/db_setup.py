"""
Database setup commands.

These commands wrap scripts/setup_database.py; connection URLs come from
DATABASE_URL_APP and DATABASE_URL_ADMIN.

Usage:
    db-init          # Create database (PostgreSQL), tables and cities
    db-reset --yes   # Drop and recreate tables
    db-seed          # Seed cities
    db-verify        # Print row counts and check reference data
"""

from __future__ import annotations

import sys
from pathlib import Path

from cli._runner import run

_SETUP_DB_SCRIPT = Path(__file__).parent.parent / "scripts" / "setup_database.py"


def _validated_passthrough_args(
    raw_args: list[str], *, allowed_flags: set[str], command_name: str
) -> list[str]:
    """Only known flags are forwarded to the setup script."""
    for token in raw_args:
        if token not in allowed_flags:
            allowed = " ".join(sorted(allowed_flags))
            raise SystemExit(
                f"Unsupported argument '{token}' for {command_name}. Allowed: {allowed}"
            )
    return list(raw_args)


def db_init() -> None:
    run([sys.executable, str(_SETUP_DB_SCRIPT), "init"])


def db_reset() -> None:
    """Drop and recreate all tables (pass --yes in production)."""
    passthrough = _validated_passthrough_args(
        sys.argv[1:], allowed_flags={"--yes", "-y"}, command_name="db-reset"
    )
    run([sys.executable, str(_SETUP_DB_SCRIPT), "reset", "--mode", "schema", *passthrough])


def db_reset_data() -> None:
    """Delete all rows, keeping the schema."""
    passthrough = _validated_passthrough_args(
        sys.argv[1:], allowed_flags={"--yes", "-y"}, command_name="db-reset-data"
    )
    run([sys.executable, str(_SETUP_DB_SCRIPT), "reset", "--mode", "data", *passthrough])


def db_seed() -> None:
    run([sys.executable, str(_SETUP_DB_SCRIPT), "seed"])


def db_verify() -> None:
    run([sys.executable, str(_SETUP_DB_SCRIPT), "verify"])


def main() -> None:
    """Default entry point - shows help."""
    run([sys.executable, str(_SETUP_DB_SCRIPT), "--help"])
