"""
User favorites.

Ownership is per user; a station can be favorited once per user.
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Float,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped
from sqlalchemy.sql import func

from rivr.db.models.base import Base


class Favorite(Base):
    __tablename__ = "favorites"
    __table_args__ = (
        UniqueConstraint("user_id", "station_id", name="uq_favorites_user_station"),
    )

    favorite_id: Mapped[int] = Column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = Column(Text, nullable=False, index=True)
    station_id: Mapped[int] = Column(BigInteger, nullable=False)

    name: Mapped[str] = Column(Text, nullable=False)
    original_api_name: Mapped[str | None] = Column(Text, nullable=True)
    description: Mapped[str | None] = Column(Text, nullable=True)
    color: Mapped[str | None] = Column(Text, nullable=True)
    img_number: Mapped[int | None] = Column(Integer, nullable=True)
    position: Mapped[int] = Column(Integer, nullable=False, default=0)

    latitude: Mapped[float | None] = Column(Float, nullable=True)
    longitude: Mapped[float | None] = Column(Float, nullable=True)
    elevation: Mapped[float | None] = Column(Float, nullable=True)

    created_at_dtz: Mapped[datetime] = Column(
        DateTime(timezone=True), server_default=func.now()
    )
    last_updated_at_dtz: Mapped[datetime] = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


__all__ = ["Favorite"]
