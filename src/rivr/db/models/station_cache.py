"""Cached station payloads, one row per station."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, BigInteger, Column, DateTime, Float, Text
from sqlalchemy.orm import Mapped
from sqlalchemy.sql import func

from rivr.db.models.base import Base


class StationCacheEntry(Base):
    """Last successful API payload for a station plus the station metadata seen with it."""
    __tablename__ = "station_cache"

    station_id: Mapped[int] = Column(BigInteger, primary_key=True, autoincrement=False)
    api_data: Mapped[dict[str, Any]] = Column(JSON, nullable=False)

    station_name: Mapped[str | None] = Column(Text, nullable=True)
    latitude: Mapped[float | None] = Column(Float, nullable=True)
    longitude: Mapped[float | None] = Column(Float, nullable=True)
    elevation: Mapped[float | None] = Column(Float, nullable=True)

    cached_at_dtz: Mapped[datetime] = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


__all__ = ["StationCacheEntry"]
