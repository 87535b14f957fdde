def test_get_engine_kwargs_sqlite_has_check_same_thread(monkeypatch):
    # Import lazily so monkeypatch can affect env usage deterministically.
    from workops.database import database as db

    kwargs = db.get_engine_kwargs("sqlite:///./workops.db")
    assert kwargs["connect_args"]["check_same_thread"] is False
    # SQLite should not require pool sizing knobs.
    assert "pool_size" not in kwargs
    assert "max_overflow" not in kwargs
    assert kwargs["pool_pre_ping"] is True


def test_get_engine_kwargs_postgres_uses_pool_settings(monkeypatch):
    from workops.database import database as db

    monkeypatch.setenv("DB_POOL_SIZE", "7")
    monkeypatch.setenv("DB_MAX_OVERFLOW", "3")
    monkeypatch.setenv("DB_POOL_TIMEOUT_SEC", "15")

    kwargs = db.get_engine_kwargs("postgresql+psycopg://u:p@localhost:5432/db")
    assert "connect_args" not in kwargs
    assert kwargs["pool_pre_ping"] is True
    assert kwargs["pool_size"] == 7
    assert kwargs["max_overflow"] == 3
    assert kwargs["pool_timeout"] == 15


def test_sqlite_url_detection():
    from workops.database import database as db

    assert db._is_sqlite_url("sqlite:///./workops.db") is True
    assert db._is_sqlite_url("postgresql+psycopg://u:p@localhost/db") is False
    assert db._is_sqlite_url("") is False


def test_users_table_has_unique_identity_columns():
    from workops.database.models import UserDB

    table = UserDB.__table__
    assert table.c.firebase_uid.unique is True
    assert table.c.email.unique is True
    assert table.c.firebase_uid.nullable is False
    assert table.c.email.nullable is False


def test_migrate_runner_reports_missing_users_table(tmp_path):
    from sqlalchemy import create_engine
    from workops.database import migrate_runner

    engine = create_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    with engine.begin() as conn:
        assert migrate_runner._missing_requirements(conn) == ["missing table: users"]


def test_migrate_runner_reports_missing_columns(tmp_path):
    from sqlalchemy import create_engine, text
    from workops.database import migrate_runner

    engine = create_engine(f"sqlite:///{tmp_path / 'legacy.db'}")
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE users (id VARCHAR PRIMARY KEY, firebase_uid VARCHAR, email VARCHAR)"))

    with engine.begin() as conn:
        missing = migrate_runner._missing_requirements(conn)

    assert missing == [
        "missing column: users.is_active",
        "missing column: users.is_password_set",
        "missing column: users.password_hash",
    ]


def test_migrate_runner_accepts_current_schema(tmp_path):
    from sqlalchemy import create_engine
    from workops.database import migrate_runner
    from workops.database.database import Base
    from workops.database import models  # noqa: F401

    engine = create_engine(f"sqlite:///{tmp_path / 'current.db'}")
    Base.metadata.create_all(bind=engine)

    with engine.begin() as conn:
        assert migrate_runner._missing_requirements(conn) == []


def test_wal_pragma_only_applies_to_app_engine(tmp_path):
    from sqlalchemy import create_engine, event, text
    from sqlalchemy.engine import Engine
    from workops.database import database as db

    assert event.contains(db.engine, "connect", db.set_sqlite_pragmas) is True
    assert event.contains(Engine, "connect", db.set_sqlite_pragmas) is False

    other = create_engine(f"sqlite:///{tmp_path / 'other.db'}")
    with other.connect() as conn:
        assert conn.execute(text("PRAGMA journal_mode")).scalar().lower() != "wal"
    other.dispose()


def test_sqlite_file_detection():
    from sqlalchemy.engine import make_url
    from workops.database import database as db

    assert db._is_sqlite_file(make_url("sqlite:///./workops.db")) is True
    assert db._is_sqlite_file(make_url("sqlite:///:memory:")) is False
    assert db._is_sqlite_file(make_url("sqlite://")) is False
    assert db._is_sqlite_file(make_url("postgresql+psycopg://u:p@localhost/db")) is False
