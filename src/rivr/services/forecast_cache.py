"""Streamflow forecasts with a time-limited local cache."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Protocol

from rivr.clients.reach_client import DEFAULT_FORECAST_SERIES
from rivr.db import ops_forecast_cache
from rivr.db.station_store import StationStore
from rivr.db.utils import parse_utc
from rivr.errors import NetworkUnavailable, RivrError, StorageError, classify_error
from rivr.models.payloads import parse_forecast_payload
from rivr.models.station import Provenance
from rivr.utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="forecast_cache")


class ForecastSource(Protocol):
    def fetch_forecast(self, reach_id: Any, series: str) -> Mapping[str, Any]: ...


@dataclass
class ForecastResult:
    reach_id: str
    series: str
    data: Optional[Dict[str, Any]] = None
    provenance: Optional[Provenance] = None
    cached_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    error: Optional[RivrError] = None
    stale: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and self.data is not None


class ForecastCache:
    """
    Serves forecasts from the store while they are fresh and refetches after
    ``expiry_hours``. An expired forecast is still handed back, marked stale,
    when the refetch fails.
    """

    def __init__(
        self,
        store: StationStore,
        client: ForecastSource,
        *,
        expiry_hours: float = ops_forecast_cache.DEFAULT_EXPIRY_HOURS,
        offline_mode: bool = False,
    ) -> None:
        self._store = store
        self._client = client
        self._expiry_hours = expiry_hours
        self.offline_mode = offline_mode

    def get_forecast(
        self,
        reach_id: Any,
        series: str = DEFAULT_FORECAST_SERIES,
        *,
        force_refresh: bool = False,
        ignore_expiry: bool = False,
    ) -> ForecastResult:
        reach_id = str(reach_id)
        cached = self._read(reach_id, series)

        if cached is not None and not force_refresh:
            if ignore_expiry or not cached.stale:
                logger.debug(f"Serving {series} forecast for reach {reach_id} from cache")
                return cached

        if self.offline_mode:
            return self._failure(cached, NetworkUnavailable("Offline mode is on."), reach_id, series)

        try:
            data = parse_forecast_payload(self._client.fetch_forecast(reach_id, series))
        except RivrError as exc:
            return self._failure(cached, exc, reach_id, series)
        except Exception as exc:
            logger.exception(f"Unexpected error fetching {series} forecast for reach {reach_id}")
            return self._failure(cached, classify_error(exc, context="get_forecast"), reach_id, series)

        try:
            with self._store.session_scope() as session:
                row = ops_forecast_cache.ensure_cached_forecast(
                    session, reach_id, series, data, expiry_hours=self._expiry_hours
                )
                cached_at, expires_at = row.cached_at_dtz, row.expires_at_dtz
        except StorageError as exc:
            logger.warning(f"Could not cache {series} forecast for reach {reach_id}: {exc}")
            cached_at = expires_at = None

        return ForecastResult(
            reach_id=reach_id,
            series=series,
            data=data,
            provenance=Provenance.FROM_NETWORK,
            cached_at=parse_utc(cached_at),
            expires_at=parse_utc(expires_at),
        )

    def clear_expired(self) -> int:
        with self._store.session_scope() as session:
            removed = ops_forecast_cache.delete_expired_forecasts(session)
        logger.info(f"Removed {removed} expired forecast(s)")
        return removed

    def _read(self, reach_id: str, series: str) -> Optional[ForecastResult]:
        try:
            with self._store.session_scope() as session:
                row = ops_forecast_cache.get_cached_forecast(session, reach_id, series, ignore_expiry=True)
                if row is None:
                    return None
                return ForecastResult(
                    reach_id=reach_id,
                    series=series,
                    data=dict(row.data),
                    provenance=Provenance.FROM_CACHE,
                    cached_at=parse_utc(row.cached_at_dtz),
                    expires_at=parse_utc(row.expires_at_dtz),
                    stale=ops_forecast_cache.is_expired(row),
                )
        except StorageError as exc:
            logger.warning(f"Forecast cache read failed for reach {reach_id}: {exc}")
            return None

    @staticmethod
    def _failure(
        cached: Optional[ForecastResult],
        error: RivrError,
        reach_id: str,
        series: str,
    ) -> ForecastResult:
        logger.warning(f"Fetching {series} forecast for reach {reach_id} failed: {error}")
        if cached is not None:
            cached.error = error
            cached.stale = True
            return cached
        return ForecastResult(reach_id=reach_id, series=series, error=error)
