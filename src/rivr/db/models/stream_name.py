"""Display and API names per station."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, Column, DateTime, Text
from sqlalchemy.orm import Mapped
from sqlalchemy.sql import func

from rivr.db.models.base import Base


class StreamName(Base):
    __tablename__ = "stream_names"

    station_id: Mapped[int] = Column(BigInteger, primary_key=True, autoincrement=False)
    display_name: Mapped[str] = Column(Text, nullable=False)
    original_api_name: Mapped[str | None] = Column(Text, nullable=True)
    user_defined: Mapped[bool] = Column(Boolean, nullable=False, default=False)

    last_updated_at_dtz: Mapped[datetime] = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


__all__ = ["StreamName"]
