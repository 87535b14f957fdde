"""Database migration runner for production.

Goal:
- Prefer Alembic migrations for deterministic schema management.
- If the users table already exists but Alembic history is out of sync (e.g. it
  was created by `create_all()`), detect that safely and `stamp head`.

Intended to be executed as a one-off job during deploys:
    python -m workops.database.migrate_runner
"""

from __future__ import annotations

import os
import sys
from typing import List, Tuple

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from workops.database.database import DATABASE_URL, _is_sqlite_url, build_engine


def _alembic_cfg() -> Config:
    cfg = Config(os.getenv("ALEMBIC_INI", "alembic.ini"))
    cfg.set_main_option("sqlalchemy.url", DATABASE_URL)
    return cfg


def _required_schema_checks() -> List[Tuple[str, str]]:
    """Return (table, column) pairs required to safely stamp head."""
    return [
        ("users", "id"),
        ("users", "firebase_uid"),
        ("users", "email"),
        ("users", "password_hash"),
        ("users", "is_password_set"),
        ("users", "is_active"),
    ]


def _missing_requirements(conn) -> List[str]:
    inspector = inspect(conn)
    missing: List[str] = []
    tables = set(inspector.get_table_names())
    for table, column in _required_schema_checks():
        if table not in tables:
            missing.append(f"missing table: {table}")
            continue
        columns = {c["name"] for c in inspector.get_columns(table)}
        if column not in columns:
            missing.append(f"missing column: {table}.{column}")
    return sorted(set(missing))


def main() -> int:
    if _is_sqlite_url(DATABASE_URL):
        command.upgrade(_alembic_cfg(), "head")
        return 0

    engine = build_engine(DATABASE_URL)

    try:
        command.upgrade(_alembic_cfg(), "head")
        return 0
    except Exception as e:
        msg = str(e).lower()
        looks_like_already_applied = any(s in msg for s in ["duplicate", "already exists", "exists"])
        if not looks_like_already_applied:
            raise

        # Only stamp head if we can verify the expected schema is present.
        with engine.begin() as conn:
            missing = _missing_requirements(conn)
        if missing:
            raise RuntimeError(
                "Alembic upgrade failed and schema is not at expected baseline; refusing to stamp head. "
                + "; ".join(missing)
            ) from e

        command.stamp(_alembic_cfg(), "head")
        return 0


if __name__ == "__main__":
    sys.exit(main())
