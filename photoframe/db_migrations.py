"""Lightweight SQLite migration runner for Photoframe."""

from __future__ import annotations

import argparse
import logging
import sqlite3
from pathlib import Path
from typing import Callable, Iterable

from sqlalchemy import create_engine

from . import database, models

logger = logging.getLogger(__name__)

MigrationFn = Callable[[sqlite3.Connection], None]


def _baseline(_connection: sqlite3.Connection) -> None:
    """Baseline migration keeps hook for future schema steps."""
    return None


MIGRATIONS: list[tuple[int, MigrationFn]] = [
    (1, _baseline),
]


def _apply_migrations(connection: sqlite3.Connection, migrations: Iterable[tuple[int, MigrationFn]]) -> int:
    cursor = connection.execute("PRAGMA user_version")
    row = cursor.fetchone()
    current_version = int(row[0]) if row else 0
    for version, upgrade in migrations:
        if version <= current_version:
            continue
        logger.info("Applying migration %s (%s)", version, upgrade.__name__)
        upgrade(connection)
        connection.execute(f"PRAGMA user_version = {version}")
        connection.commit()
        current_version = version
    return current_version


def _has_tables(connection: sqlite3.Connection) -> bool:
    cursor = connection.execute("SELECT COUNT(*) FROM sqlite_master WHERE type = 'table'")
    return cursor.fetchone()[0] > 0


def _stamp(connection: sqlite3.Connection, version: int) -> int:
    connection.execute(f"PRAGMA user_version = {version}")
    connection.commit()
    return version


def schema_version(database_path: Path) -> int:
    with sqlite3.connect(database_path) as connection:
        return int(connection.execute("PRAGMA user_version").fetchone()[0])


def run(database_path: Path) -> int:
    """Upgrade existing tables, then create any that are missing.

    A database without tables is created from the models and stamped with
    the latest version, so no upgrade step ever runs against it.
    """

    database_path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(database_path) as connection:
        connection.execute("PRAGMA foreign_keys = ON")
        fresh = not _has_tables(connection)
        if not fresh:
            version = _apply_migrations(connection, MIGRATIONS)
    engine = create_engine(f"sqlite:///{database_path}")
    try:
        models.Base.metadata.create_all(bind=engine)
    finally:
        engine.dispose()
    if fresh:
        with sqlite3.connect(database_path) as connection:
            version = _stamp(connection, MIGRATIONS[-1][0])
        logger.info("Created schema at version %s in %s", version, database_path)
    return version


def main(argv: list[str] | None = None) -> None:
    default_path = Path(database.SQLALCHEMY_DATABASE_URL.replace("sqlite:///", ""))
    parser = argparse.ArgumentParser(description="Run SQLite migrations for Photoframe.")
    parser.add_argument("--database", default=str(default_path), help="Path to the SQLite database")
    parser.add_argument("--status", action="store_true", help="Print the schema version and exit")
    args = parser.parse_args(argv)
    path = Path(args.database)
    if args.status:
        print(schema_version(path) if path.exists() else 0)
        return
    run(path)


if __name__ == "__main__":
    main()
