"""Helpers to read and upsert cached station payloads."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from rivr.db.models import StationCacheEntry
from rivr.db.utils import parse_utc, utcnow
from rivr.models.station import StationRecord
from rivr.utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="ops_station_cache")


def get_station_cache_entry(session: Session, station_id: int) -> Optional[StationCacheEntry]:
    stmt = (
        select(StationCacheEntry)
        .where(StationCacheEntry.station_id == station_id)
        .limit(1)
    )
    return session.execute(stmt).scalar_one_or_none()


def ensure_station_cache_entry(
    session: Session,
    station_id: int,
    api_data: Mapping[str, Any],
    *,
    station: Optional[StationRecord] = None,
    cached_at: Optional[datetime] = None,
) -> StationCacheEntry:
    """
    Upsert the cached payload for ``station_id``.

    The payload is replaced wholesale; station metadata is only overwritten
    when a ``station`` is supplied.
    """
    cached_at = parse_utc(cached_at) or utcnow()
    row = get_station_cache_entry(session, station_id)

    if row is None:
        logger.info(f"Caching new payload for station {station_id}")
        row = StationCacheEntry(
            station_id=station_id,
            api_data=dict(api_data),
            cached_at_dtz=cached_at,
        )
        session.add(row)
    else:
        logger.info(f"Overwriting cached payload for station {station_id}")
        row.api_data = dict(api_data)
        row.cached_at_dtz = cached_at

    if station is not None:
        row.station_name = station.inline_name
        row.latitude = station.latitude
        row.longitude = station.longitude
        row.elevation = station.elevation

    session.flush()
    return row


def delete_station_cache_entry(session: Session, station_id: int) -> bool:
    result = session.execute(
        delete(StationCacheEntry).where(StationCacheEntry.station_id == station_id)
    )
    return bool(result.rowcount)


def count_station_cache_entries(session: Session) -> int:
    return session.execute(select(func.count()).select_from(StationCacheEntry)).scalar_one()


def clear_station_cache(session: Session) -> int:
    """Delete every cached station payload and return how many rows went."""
    result = session.execute(delete(StationCacheEntry))
    logger.info(f"Cleared {result.rowcount} cached station payload(s)")
    return result.rowcount
