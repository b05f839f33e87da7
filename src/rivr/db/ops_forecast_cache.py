"""Helpers to read and upsert cached streamflow forecasts."""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Mapping, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from rivr.db.models import ForecastCacheEntry
from rivr.db.utils import parse_utc, utcnow
from rivr.utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="ops_forecast_cache")

DEFAULT_EXPIRY_HOURS = 24


def is_expired(row: ForecastCacheEntry, now: Optional[datetime] = None) -> bool:
    return parse_utc(row.expires_at_dtz) <= (now or utcnow())


def get_cached_forecast(
    session: Session,
    reach_id: str,
    series: str,
    *,
    ignore_expiry: bool = False,
    now: Optional[datetime] = None,
) -> Optional[ForecastCacheEntry]:
    """Return the cached forecast, or ``None`` when missing or (unless ignored) expired."""
    stmt = (
        select(ForecastCacheEntry)
        .where(
            ForecastCacheEntry.reach_id == reach_id,
            ForecastCacheEntry.series == series,
        )
        .limit(1)
    )
    row = session.execute(stmt).scalar_one_or_none()
    if row is None:
        return None
    if not ignore_expiry and is_expired(row, now):
        logger.debug(f"Cached {series} forecast for reach {reach_id} has expired")
        return None
    return row


def ensure_cached_forecast(
    session: Session,
    reach_id: str,
    series: str,
    data: Mapping[str, Any],
    *,
    expiry_hours: float = DEFAULT_EXPIRY_HOURS,
    now: Optional[datetime] = None,
) -> ForecastCacheEntry:
    now = now or utcnow()
    expires_at = now + timedelta(hours=expiry_hours)
    row = get_cached_forecast(session, reach_id, series, ignore_expiry=True)

    if row is None:
        logger.info(f"Caching {series} forecast for reach {reach_id} until {expires_at.isoformat()}")
        row = ForecastCacheEntry(
            reach_id=reach_id,
            series=series,
            data=dict(data),
            cached_at_dtz=now,
            expires_at_dtz=expires_at,
        )
        session.add(row)
    else:
        logger.info(f"Refreshing cached {series} forecast for reach {reach_id}")
        row.data = dict(data)
        row.cached_at_dtz = now
        row.expires_at_dtz = expires_at

    session.flush()
    return row


def delete_expired_forecasts(session: Session, now: Optional[datetime] = None) -> int:
    now = now or utcnow()
    rows = session.execute(select(ForecastCacheEntry)).scalars().all()
    expired = [row for row in rows if is_expired(row, now)]
    for row in expired:
        session.delete(row)
    session.flush()
    return len(expired)


def count_cached_forecasts(session: Session) -> int:
    return session.execute(select(func.count()).select_from(ForecastCacheEntry)).scalar_one()


def clear_forecast_cache(session: Session) -> int:
    result = session.execute(delete(ForecastCacheEntry))
    logger.info(f"Cleared {result.rowcount} cached forecast(s)")
    return result.rowcount
