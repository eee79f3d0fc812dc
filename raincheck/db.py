"""
Database configuration for SQLAlchemy.

The two document collections (`locations`, `alerts`) live in ordinary tables.
SQLite is the default because it needs no extra services.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    """Base class for ORM models."""
    pass


def make_engine(url: str) -> Engine:
    """
    Build an engine for `url`.

    SQLite needs check_same_thread=False because FastAPI may serve sync
    routes from a threadpool. In-memory SQLite also needs a single shared
    connection, otherwise every session sees an empty database.
    """
    if not url.startswith("sqlite"):
        return create_engine(url)

    kwargs = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


def make_session_factory(engine: Engine) -> sessionmaker:
    """Create tables (no migrations) and return a session factory bound to `engine`."""
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
