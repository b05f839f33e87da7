"""
Cache-then-network access to station data.

``StationCacheCoordinator.fetch_station_data`` answers from the local store
when it can and only goes to the remote API on a miss. Successful fetches are
written back to the store; failures are classified and returned as a result,
never raised, and never touch the store.
"""
from __future__ import annotations

import threading
from concurrent.futures import Future
from datetime import timedelta
from typing import Any, Dict, Mapping, Optional, Protocol, Union

from rivr.db.station_store import StationStore
from rivr.db.utils import is_older_than, utcnow
from rivr.errors import NetworkUnavailable, RivrError, StorageError, classify_error
from rivr.models.payloads import StationApiData, parse_station_payload
from rivr.models.station import (
    CachedStationPayload,
    CacheStats,
    Provenance,
    StationDataResult,
    StationRecord,
)
from rivr.utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="cache_coordinator")


class StationSource(Protocol):
    def fetch_station(self, station_id: int) -> Mapping[str, Any]: ...


class StationCacheCoordinator:
    """
    Mediates between a ``StationStore`` and a remote ``StationSource``.

    Parameters
    ----------
    store:
        Local persistent store.
    client:
        Anything with ``fetch_station(station_id)``; normally a ``ReachApiClient``.
    max_age:
        Cached payloads older than this are refetched. ``None`` keeps them
        until they are overwritten.
    coalesce_requests:
        Share one network call between concurrent callers asking for the same
        station.
    offline_mode:
        Never call the network; a miss fails with ``NetworkUnavailable``.
    """

    def __init__(
        self,
        store: StationStore,
        client: StationSource,
        *,
        max_age: Optional[timedelta] = None,
        coalesce_requests: bool = True,
        offline_mode: bool = False,
    ) -> None:
        self._store = store
        self._client = client
        self._max_age = max_age
        self._coalesce = coalesce_requests
        self._offline_mode = offline_mode
        self._lock = threading.Lock()
        self._in_flight: Dict[int, Future] = {}

    @property
    def offline_mode(self) -> bool:
        return self._offline_mode

    def set_offline_mode(self, enabled: bool) -> None:
        if self._offline_mode != enabled:
            logger.info(f"Offline mode {'enabled' if enabled else 'disabled'}")
        self._offline_mode = enabled

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #

    def fetch_station_data(
        self,
        station_id: int,
        station: Optional[StationRecord] = None,
        *,
        force_refresh: bool = False,
    ) -> StationDataResult:
        """
        Return the payload for ``station_id`` with its provenance.

        A hit makes no network call. A miss makes at most one. ``force_refresh``
        skips the cache read but still falls back to the cached payload (marked
        stale) if the network fails.
        """
        cached = self._read_cache(station_id)

        if cached is not None and not force_refresh:
            if not is_older_than(cached.cached_at, self._max_age):
                logger.debug(f"Serving station {station_id} from cache")
                return StationDataResult(
                    station_id=station_id,
                    payload=cached,
                    provenance=Provenance.FROM_CACHE,
                )
            logger.info(f"Cached payload for station {station_id} is older than {self._max_age}")

        if self._offline_mode:
            error = NetworkUnavailable(f"Offline mode is on and station {station_id} needs a network fetch.")
            return self._failure(station_id, error, cached)

        try:
            payload = self._fetch_remote(station_id, station)
        except RivrError as exc:
            return self._failure(station_id, exc, cached)
        except Exception as exc:
            logger.exception(f"Unexpected error fetching station {station_id}")
            return self._failure(station_id, classify_error(exc, context="fetch_station_data"), cached)

        return StationDataResult(
            station_id=station_id,
            payload=payload,
            provenance=Provenance.FROM_NETWORK,
        )

    def seed_station(
        self,
        station_id: int,
        api_data: Union[StationApiData, Mapping[str, Any]],
        station: Optional[StationRecord] = None,
    ) -> CachedStationPayload:
        """Store a payload learned some other way (e.g. a name known from a previous session)."""
        logger.info(f"Seeding cache for station {station_id}")
        return self._store.put(station_id, api_data, station=station)

    def cache_stats(self) -> CacheStats:
        return self._store.stats()

    def clear_cache(self, kind: str = "all") -> int:
        return self._store.clear(kind)

    # ------------------------------------------------------------------ #
    # Internals                                                          #
    # ------------------------------------------------------------------ #

    def _read_cache(self, station_id: int) -> Optional[CachedStationPayload]:
        try:
            return self._store.get(station_id)
        except StorageError as exc:
            logger.warning(f"Cache read failed for station {station_id}, treating as a miss: {exc}")
            return None

    def _fetch_remote(self, station_id: int, station: Optional[StationRecord]) -> CachedStationPayload:
        if not self._coalesce:
            return self._fetch_and_store(station_id, station)

        with self._lock:
            future = self._in_flight.get(station_id)
            owner = future is None
            if owner:
                future = Future()
                self._in_flight[station_id] = future

        if not owner:
            logger.debug(f"Joining in-flight fetch for station {station_id}")
            return future.result()

        try:
            payload = self._fetch_and_store(station_id, station)
        except BaseException as exc:
            future.set_exception(exc)
            raise
        else:
            future.set_result(payload)
            return payload
        finally:
            with self._lock:
                self._in_flight.pop(station_id, None)

    def _fetch_and_store(self, station_id: int, station: Optional[StationRecord]) -> CachedStationPayload:
        raw = self._client.fetch_station(station_id)
        api_data = parse_station_payload(raw)

        try:
            return self._store.put(station_id, api_data, station=station)
        except StorageError as exc:
            # The fetch itself worked; hand the data back uncached.
            logger.warning(f"Could not cache station {station_id}: {exc}")
            return CachedStationPayload(station_id=station_id, api_data=api_data, cached_at=utcnow())

    @staticmethod
    def _failure(
        station_id: int,
        error: RivrError,
        fallback: Optional[CachedStationPayload],
    ) -> StationDataResult:
        logger.warning(f"Fetch for station {station_id} failed: {error}")
        return StationDataResult(
            station_id=station_id,
            payload=fallback,
            provenance=Provenance.FROM_CACHE if fallback is not None else None,
            error=error,
            stale=fallback is not None,
        )
