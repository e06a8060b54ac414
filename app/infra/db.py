from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from loguru import logger
from sqlalchemy import event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, create_engine

from app.domain.errors import StorageError

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    "sqlite:///./data/violations.db",
)


def _unicode_lower(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


def install_sqlite_pragmas(target: Engine) -> None:
    """Enforce foreign keys and case-sensitive LIKE, matching Postgres semantics.

    lower() is replaced with str.lower so non-ASCII labels fold the same way
    as the search term. SQLite's built-in folds ASCII only.
    """

    @event.listens_for(target, "connect")
    def _set_sqlite_pragmas(dbapi_connection: Any, _connection_record: Any) -> None:
        dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA case_sensitive_like=ON")
        cursor.close()


def build_engine(url: str) -> Engine:
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return create_engine(url, pool_pre_ping=True)
    if parsed.database and parsed.database != ":memory:":
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
    sqlite_engine = create_engine(url, connect_args={"check_same_thread": False})
    install_sqlite_pragmas(sqlite_engine)
    return sqlite_engine


engine = build_engine(DATABASE_URL)


def get_engine() -> Engine:
    return engine


def create_db_and_tables(target: Engine | None = None) -> None:
    from app.domain import models  # noqa: F401

    SQLModel.metadata.create_all(target or get_engine())


def check_db_ready() -> bool:
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """Map driver failures to StorageError; the cause is logged, never surfaced."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("storage failure during {}", operation)
        raise StorageError() from exc
