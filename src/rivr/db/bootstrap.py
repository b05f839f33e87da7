"""Schema bootstrap for the local cache database."""
from __future__ import annotations

from sqlalchemy.engine import Engine

from rivr.db.models import Base
from rivr.utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="bootstrap")


def ensure_tables(engine: Engine) -> None:
    """Create any missing rivr tables."""
    logger.debug(f"Ensuring tables exist on {engine.url.render_as_string(hide_password=True)}")
    Base.metadata.create_all(bind=engine, checkfirst=True)
