"""Cached streamflow forecasts keyed by (reach, series)."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Column, DateTime, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped

from rivr.db.models.base import Base


class ForecastCacheEntry(Base):
    __tablename__ = "forecast_cache"
    __table_args__ = (
        UniqueConstraint("reach_id", "series", name="uq_forecast_cache_reach_series"),
    )

    id: Mapped[int] = Column(Integer, primary_key=True, autoincrement=True)
    reach_id: Mapped[str] = Column(Text, nullable=False)
    series: Mapped[str] = Column(Text, nullable=False)
    data: Mapped[dict[str, Any]] = Column(JSON, nullable=False)

    cached_at_dtz: Mapped[datetime] = Column(DateTime(timezone=True), nullable=False)
    expires_at_dtz: Mapped[datetime] = Column(DateTime(timezone=True), nullable=False)


__all__ = ["ForecastCacheEntry"]
