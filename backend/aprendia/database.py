"""Database connector and helpers.

`Database` wraps one SQLAlchemy engine for the remote store configured
through `DATABASE_URL`. It is constructed explicitly and handed to the
application factory, which keeps it on `app.state`; nothing here is
module-level connection state. The `connected` flag tracks the live
state of the pool so the health endpoint never has to query.
"""

import logging
from typing import Optional

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from . import models  # noqa: F401  registers the tables on SQLModel.metadata
from .errors import StorageUnavailableError

logger = logging.getLogger("aprendia.db")


def _build_engine(url: str, echo: bool) -> Engine:
    kwargs = {"echo": echo, "pool_pre_ping": True}
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if parsed.database in (None, "", ":memory:"):
            # one shared connection, otherwise every checkout sees an empty db
            kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


class Database:
    """Single outbound connection (pool) to the registrant store."""

    def __init__(self, url: Optional[str], echo: bool = False):
        self.url = url
        self.echo = echo
        self.engine: Optional[Engine] = None
        self.connected = False

    def connect(self) -> bool:
        """Create the engine, verify it and ensure the tables exist.

        Failures are logged and leave the connector disconnected instead
        of raising, so the API can still start and report its status.
        """
        if not self.url:
            logger.error("DATABASE_URL is not set; storage stays disconnected")
            return False
        try:
            engine = _build_engine(self.url, self.echo)
        except (SQLAlchemyError, ImportError) as exc:
            logger.error("invalid database configuration: %s", exc)
            return False
        event.listen(engine, "connect", self._on_connect)
        event.listen(engine, "handle_error", self._on_error)
        self.engine = engine
        try:
            SQLModel.metadata.create_all(engine)
        except SQLAlchemyError as exc:
            logger.error("could not connect to database %s: %s", self.describe(), exc)
            self.disconnect()
            return False
        self.connected = True
        logger.info("connected to database %s", self.describe())
        return True

    def disconnect(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
            logger.info("disconnected from database %s", self.describe())
        self.engine = None
        self.connected = False

    def session(self) -> Session:
        """Open a new `Session`; callers use it as a context manager."""
        if self.engine is None:
            raise StorageUnavailableError("database is not connected")
        return Session(self.engine)

    def info(self) -> dict:
        """Connection metadata without credentials."""
        if not self.url:
            return {"database": None, "host": None, "port": None, "backend": None}
        parsed = make_url(self.url)
        return {
            "database": parsed.database,
            "host": parsed.host,
            "port": parsed.port,
            "backend": parsed.get_backend_name(),
        }

    def describe(self) -> str:
        if not self.url:
            return "<unconfigured>"
        return make_url(self.url).render_as_string(hide_password=True)

    def _on_connect(self, dbapi_connection, connection_record):
        self.connected = True

    def _on_error(self, context):
        if context.is_disconnect:
            logger.warning("database connection lost: %s", context.original_exception)
            self.connected = False


def get_database(request: Request) -> Database:
    """Return the connector attached to the running application."""
    return request.app.state.database
