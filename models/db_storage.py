"""
DBStorage: the one database handle of the application.

Lifecycle:
- DBStorage(url)   -> builds the engine (connection pool); nothing is opened yet
- reload()         -> creates missing tables and the scoped session factory
- close()          -> removes the current thread's session (called on every
                      app-context teardown, returns the connection to the pool)
- dispose()        -> closes every pooled connection (process shutdown / tests)

The application factory constructs exactly one instance and keeps it in
app.extensions; nothing in the code base imports a module-level instance.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.orm import scoped_session, sessionmaker
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from models.base_model import Base
from models.user import User
from models.book import Book
from models.refresh_token import RefreshToken
from models.blacklisted_token import BlacklistedToken

logger = logging.getLogger(__name__)

# Map model names for easy querying
classes = {
    "User": User,
    "Book": Book,
    "RefreshToken": RefreshToken,
    "BlacklistedToken": BlacklistedToken,
}


class DBStorage:
    def __init__(self, database_url: str, echo: bool = False):
        """Build the engine for database_url"""
        if not database_url:
            raise ValueError("database_url is required")
        # Handle the postgres:// vs postgresql:// issue for SQLAlchemy
        if database_url.startswith("postgres://"):
            database_url = database_url.replace("postgres://", "postgresql://", 1)

        engine_kwargs = {"echo": echo}
        if database_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                # one shared connection, otherwise every checkout sees an empty database
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["pool_pre_ping"] = True

        self.__engine = create_engine(database_url, **engine_kwargs)
        self.__session = None

        # Enable SQLite foreign keys (needed for ON DELETE CASCADE)
        if self.__engine.url.get_backend_name() == "sqlite":
            @event.listens_for(self.__engine, "connect")
            def _set_sqlite_pragma(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

    @property
    def engine(self):
        return self.__engine

    @property
    def dialect_name(self) -> str:
        return self.__engine.dialect.name

    def reload(self):
        """Create tables and start session"""
        Base.metadata.create_all(self.__engine)
        session_factory = sessionmaker(bind=self.__engine, expire_on_commit=False)
        self.__session = scoped_session(session_factory)
        logger.info("storage ready (%s)", self.dialect_name)

    def new(self, obj):
        """Add object to session"""
        self.get_session().add(obj)

    def flush(self):
        """Send pending changes without committing; surfaces constraint errors early"""
        self.get_session().flush()

    def save(self):
        """Commit session"""
        session = self.get_session()
        try:
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            raise

    @contextmanager
    def transaction(self):
        """Commit everything done inside the block, or roll all of it back."""
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise

    def get(self, cls, id):
        """Fetch one object by class and ID"""
        if cls in classes.values():
            return self.get_session().get(cls, id)
        return None

    def count(self, cls):
        """Count objects"""
        return self.get_session().query(cls).count()

    def close(self):
        """Remove session (for API teardown)"""
        if self.__session is not None:
            self.__session.remove()

    def dispose(self):
        """Release every pooled connection; the instance is unusable afterwards"""
        self.close()
        self.__engine.dispose()
        self.__session = None

    # expose the SQLAlchemy session for advanced querying (joins, filters, etc.)
    def get_session(self):
        if self.__session is None:
            raise RuntimeError("DBStorage.reload() has not been called")
        return self.__session
