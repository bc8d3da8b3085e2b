from __future__ import annotations

import logging
from typing import Generator

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_conn, _record) -> None:
    # SQLite ignores ON DELETE rules unless this is set per connection
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON;")
    cursor.close()


def build_engine(database_url: str, echo: bool = False) -> Engine:
    # SQLite needs a special connect arg; others (e.g., Postgres) don't.
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}

    engine = create_engine(database_url, echo=echo, connect_args=connect_args)
    if database_url.startswith("sqlite"):
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


class Database:
    """
    Owns the engine for one application instance.

    Built by create_app() and stored on app.state.db; disposed on shutdown.
    """

    def __init__(self, database_url: str, echo: bool = False) -> None:
        self.url = database_url
        self.engine = build_engine(database_url, echo=echo)
        # Log which DB URL is actually in use (helps avoid "which budget.db?" confusion).
        logger.info("DB URL in use: %s", self.engine.url)

    def session(self) -> Session:
        return Session(self.engine)

    def create_tables(self) -> None:
        """
        Optional helper for ad-hoc local setups and tests.
        Prefer Alembic migrations for schema changes.
        """
        import budget_api.models  # noqa: F401  # registers tables on SQLModel.metadata

        SQLModel.metadata.create_all(self.engine)

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception:
            logger.exception("database ping failed")
            return False
        return True

    def dispose(self) -> None:
        self.engine.dispose()


def get_session(request: Request) -> Generator[Session, None, None]:
    """FastAPI dependency: yields a database session and closes it afterwards."""
    with request.app.state.db.session() as session:
        yield session
