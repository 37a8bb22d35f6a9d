from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from daily_registry.exceptions import StoreError

log = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


class Database:
    def __init__(self, db_path: Path, migrations_dir: Path = MIGRATIONS_DIR) -> None:
        self._db_path = db_path
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._migrations_dir = migrations_dir

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        try:
            connection = sqlite3.connect(self._db_path)
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot open database {self._db_path}") from exc
        connection.row_factory = sqlite3.Row
        try:
            yield connection
            connection.commit()
        except sqlite3.Error as exc:
            connection.rollback()
            raise StoreError(str(exc)) from exc
        except Exception:
            connection.rollback()
            raise
        finally:
            connection.close()

    def initialize(self) -> list[str]:
        """Apply pending migrations in file-name order and return their names.

        Each migration runs in its own connection and is recorded in
        ``schema_migrations`` only after its script succeeded, so a failing
        file leaves the earlier ones applied and is retried next time.
        """
        with self.connect() as connection:
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    name TEXT PRIMARY KEY,
                    applied_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
                );
                """
            )
            applied = {
                row["name"] for row in connection.execute("SELECT name FROM schema_migrations")
            }

        pending = [
            migration
            for migration in sorted(self._migrations_dir.glob("*.sql"))
            if migration.name not in applied
        ]
        for migration in pending:
            self._apply_migration(migration)
            log.info("Applied migration %s to %s", migration.name, self._db_path)
        return [migration.name for migration in pending]

    def _apply_migration(self, migration: Path) -> None:
        try:
            script = migration.read_text(encoding="utf-8")
        except OSError as exc:
            raise StoreError(f"Cannot read migration {migration.name}") from exc

        with self.connect() as connection:
            try:
                connection.executescript(script)
                connection.execute("INSERT INTO schema_migrations(name) VALUES (?)", (migration.name,))
            except sqlite3.Error as exc:
                raise StoreError(f"Migration {migration.name} failed: {exc}") from exc
