#!/usr/bin/env python3
"""
Person Directory API Database Setup

Creates the schema and seeds reference data (cities) for SQLite or
PostgreSQL.

Usage:
    # First-time setup: create database (PostgreSQL), tables and cities
    python scripts/setup_database.py init

    # Reset database (drop and recreate tables)
    python scripts/setup_database.py reset --mode schema --yes

    # Reset database (delete rows only)
    python scripts/setup_database.py reset --mode data --yes

    # Seed cities
    python scripts/setup_database.py seed

    # Verify setup
    python scripts/setup_database.py verify

Environment Variables:
    DATABASE_URL_APP      - App connection (tables, seed, verify)
    DATABASE_URL_ADMIN    - Admin connection used to create the PostgreSQL database
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import psycopg
from psycopg import sql
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession

# Add app to path for imports
ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

from app.core.config import settings  # noqa: E402
from app.core.db import create_all_tables, create_fresh_async_engine  # noqa: E402
from app.db.seed import (  # noqa: E402
    drop_all_tables,
    seed_cities,
    table_counts,
    truncate_all_tables,
)


# ANSI colors for terminal output
class Colors:
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    BLUE = "\033[94m"
    BOLD = "\033[1m"
    END = "\033[0m"


def log_info(msg: str) -> None:
    print(f"{Colors.BLUE}[INFO]{Colors.END} {msg}")


def log_success(msg: str) -> None:
    print(f"{Colors.GREEN}[OK]{Colors.END} {msg}")


def log_warning(msg: str) -> None:
    print(f"{Colors.YELLOW}[WARN]{Colors.END} {msg}")


def log_error(msg: str) -> None:
    print(f"{Colors.RED}[ERROR]{Colors.END} {msg}")


def log_step(step: int, total: int, msg: str) -> None:
    print(f"\n{Colors.BOLD}[{step}/{total}] {msg}{Colors.END}")


@dataclass
class SetupResult:
    """Result of a setup step."""

    success: bool
    message: str
    details: str | None = None


class ResetMode(Enum):
    """Database reset modes."""

    SCHEMA = "schema"  # Drop and recreate tables
    DATA = "data"  # Delete rows only


def _is_postgres(url: str) -> bool:
    return url.startswith("postgresql")


def _libpq_url(url: str) -> str:
    """SQLAlchemy URL -> plain libpq URL accepted by psycopg."""
    return make_url(url).set(drivername="postgresql").render_as_string(hide_password=False)


class DatabaseSetup:
    """Handles database setup for the Person Directory API."""

    def __init__(self, app_url: str, admin_url: str | None = None):
        self.app_url = app_url
        self.admin_url = admin_url

    def ensure_postgres_database(self) -> SetupResult:
        """Create the app database on the admin connection if it does not exist."""
        if not _is_postgres(self.app_url):
            return SetupResult(True, "Database creation skipped", "not a PostgreSQL URL")
        if not self.admin_url:
            return SetupResult(True, "Database creation skipped", "DATABASE_URL_ADMIN not set")

        db_name = make_url(self.app_url).database
        try:
            with psycopg.connect(_libpq_url(self.admin_url), autocommit=True) as conn:
                exists = conn.execute(
                    "SELECT 1 FROM pg_database WHERE datname = %s", (db_name,)
                ).fetchone()
                if exists:
                    return SetupResult(True, f"Database {db_name} already exists")
                conn.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(db_name)))
                return SetupResult(True, f"Database {db_name} created")
        except psycopg.Error as e:
            return SetupResult(False, "Database creation failed", f"{type(e).__name__}: {e}")

    def test_app_connection(self) -> SetupResult:
        """Test that the app URL accepts connections (PostgreSQL only)."""
        if not _is_postgres(self.app_url):
            return SetupResult(True, "App connection test skipped", "not a PostgreSQL URL")
        try:
            with psycopg.connect(_libpq_url(self.app_url), autocommit=True) as conn:
                user, database = conn.execute(
                    "SELECT current_user, current_database()"
                ).fetchone()
                return SetupResult(
                    True, "App connection successful", f"User: {user}, DB: {database}"
                )
        except psycopg.Error as e:
            return SetupResult(False, "App connection failed", f"{type(e).__name__}: {e}")

    async def _create_tables(self, seed: bool) -> SetupResult:
        engine = create_fresh_async_engine(self.app_url)
        try:
            await create_all_tables(engine)
            if not seed:
                return SetupResult(True, "Tables created")
            async with AsyncSession(engine, expire_on_commit=False) as session:
                inserted = await seed_cities(session)
            return SetupResult(True, "Tables created and cities seeded", f"{inserted} inserted")
        finally:
            await engine.dispose()

    async def _reset(self, mode: ResetMode) -> None:
        engine = create_fresh_async_engine(self.app_url)
        try:
            if mode is ResetMode.SCHEMA:
                await drop_all_tables(engine)
                await create_all_tables(engine)
            else:
                async with AsyncSession(engine) as session:
                    await truncate_all_tables(session)
        finally:
            await engine.dispose()

    async def _counts(self) -> dict[str, int]:
        engine = create_fresh_async_engine(self.app_url)
        try:
            async with AsyncSession(engine) as session:
                return await table_counts(session)
        finally:
            await engine.dispose()

    def init(self) -> int:
        """First-time setup: database, tables and seed data."""
        total_steps = 3
        results = []

        log_step(1, total_steps, "Ensuring database exists")
        results.append(self.ensure_postgres_database())

        log_step(2, total_steps, "Creating tables and seeding cities")
        results.append(asyncio.run(self._create_tables(seed=True)))

        log_step(3, total_steps, "Verifying app connection")
        results.append(self.test_app_connection())

        return self._print_summary(results)

    def reset(self, mode: ResetMode, force: bool = False) -> int:
        if settings.app_env.value == "prod" and not force:
            log_error("Refusing to reset a production database without --yes")
            return 1
        log_warning(f"Resetting database ({mode.value} mode)")
        asyncio.run(self._reset(mode))
        log_success("Reset complete")
        return 0

    def seed(self) -> int:
        result = asyncio.run(self._create_tables(seed=True))
        return self._print_summary([result])

    def verify(self) -> int:
        try:
            counts = asyncio.run(self._counts())
        except Exception as e:
            log_error(f"Verification failed: {type(e).__name__}: {e}")
            return 1
        for table, count in counts.items():
            log_info(f"{table}: {count} rows")
        if counts.get("cities", 0) == 0:
            log_warning("No cities found; run `seed` before creating persons")
            return 1
        log_success("Database verified")
        return 0

    def _print_summary(self, results: list[SetupResult]) -> int:
        """Print summary of results."""
        print(f"\n{Colors.BOLD}{'=' * 60}{Colors.END}")
        print(f"{Colors.BOLD}SETUP SUMMARY{Colors.END}")
        print(f"{Colors.BOLD}{'=' * 60}{Colors.END}")

        for r in results:
            status = (
                f"{Colors.GREEN}[OK]{Colors.END}"
                if r.success
                else f"{Colors.RED}[FAIL]{Colors.END}"
            )
            details = f" ({r.details})" if r.details else ""
            print(f"{status} {r.message}{details}")

        failed = [r for r in results if not r.success]
        if failed:
            log_warning(f"\n{len(failed)} step(s) had warnings or failures.")
            return 1

        log_success("\nDatabase setup completed successfully!")
        return 0


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Database setup for Person Directory API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--app-url", help="App database URL (overrides env var)")
    parser.add_argument("--admin-url", help="Admin database URL (overrides env var)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    subparsers.add_parser("init", help="First-time setup")

    reset_parser = subparsers.add_parser("reset", help="Reset database")
    reset_parser.add_argument(
        "--mode",
        choices=["schema", "data"],
        default="schema",
        help="Reset mode: schema (drop/recreate) or data (delete rows only)",
    )
    reset_parser.add_argument(
        "--force",
        "--yes",
        "-y",
        dest="force",
        action="store_true",
        help="Bypass safety checks (--yes or -y also accepted)",
    )

    subparsers.add_parser("seed", help="Seed cities")
    subparsers.add_parser("verify", help="Verify database setup")

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        return 1

    setup = DatabaseSetup(
        app_url=args.app_url or settings.async_url,
        admin_url=args.admin_url or settings.database_url_admin,
    )
    log_info(f"Target: {make_url(setup.app_url).render_as_string(hide_password=True)}")

    if args.command == "init":
        return setup.init()
    if args.command == "reset":
        return setup.reset(ResetMode(args.mode), force=args.force)
    if args.command == "seed":
        return setup.seed()
    return setup.verify()


if __name__ == "__main__":
    raise SystemExit(main())
