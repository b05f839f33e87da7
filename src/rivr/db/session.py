"""Engine and session factories for the local cache database."""
from __future__ import annotations

import os
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

DEFAULT_DB_FILENAME = "rivr_cache.db"


def build_dsn() -> str:
    """
    Build the database URL from the environment.

    ``RIVR_DB_URL`` wins when set; otherwise a SQLite file at ``RIVR_DB_PATH``
    (default ``./rivr_cache.db``).
    """
    url = os.getenv("RIVR_DB_URL")
    if url:
        return url
    path = Path(os.getenv("RIVR_DB_PATH", DEFAULT_DB_FILENAME)).expanduser()
    return f"sqlite:///{path}"


def create_db_engine(dsn: str | None = None, *, echo: bool = False) -> Engine:
    """Create an engine; in-memory SQLite gets a single shared connection."""
    dsn = dsn or build_dsn()
    if dsn.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if dsn in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(dsn, echo=echo, future=True, **kwargs)

    return create_engine(dsn, echo=echo, pool_pre_ping=True, future=True)


def get_session_factory(engine: Engine | None = None) -> sessionmaker:
    """Return a configured SQLAlchemy session factory."""
    return sessionmaker(
        bind=engine or create_db_engine(),
        autoflush=False,
        expire_on_commit=False,
        future=True,
    )
