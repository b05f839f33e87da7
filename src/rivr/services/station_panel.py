"""
Load state for a station info panel.

The panel is always in exactly one of ``Loading``, ``Loaded`` or ``Failed``;
the UI renders whichever is current and calls ``retry()`` from its retry
action. Results that arrive after the panel has gone away (``is_live()``
returns false) are dropped.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from rivr.errors import RivrError, ServerError, recovery_suggestion, user_friendly_message
from rivr.models.station import (
    CachedStationPayload,
    NameInfo,
    Provenance,
    StationDataResult,
    StationRecord,
    default_display_name,
)
from rivr.services.cache_coordinator import StationCacheCoordinator
from rivr.services.name_resolver import DisplayNameResolver, clean_name
from rivr.utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="station_panel")

DEFAULT_RETRY_DELAY = 1.0  # seconds


class Banner(str, Enum):
    OFFLINE = "offline"
    SERVER = "server"


@dataclass(frozen=True)
class Loading:
    station: StationRecord


@dataclass(frozen=True)
class Loaded:
    station: StationRecord
    payload: CachedStationPayload
    provenance: Provenance
    name: NameInfo

    @property
    def from_cache(self) -> bool:
        return self.provenance is Provenance.FROM_CACHE


@dataclass(frozen=True)
class Failed:
    """
    A fetch that did not produce fresh data.

    ``station`` still carries id and coordinates for the basic view, and
    ``fallback`` holds an older cached payload when one exists.
    """

    station: StationRecord
    error: RivrError
    message: str
    recovery: Optional[str]
    banner: Banner
    name: NameInfo
    fallback: Optional[CachedStationPayload] = None


PanelState = Union[Loading, Loaded, Failed]


def banner_for(error: RivrError) -> Banner:
    return Banner.OFFLINE if error.is_connection_issue else Banner.SERVER


def is_transient(error: RivrError) -> bool:
    """Errors worth a single manual retry."""
    if error.is_connection_issue:
        return True
    return isinstance(error, ServerError) and (error.status_code is None or error.status_code >= 500)


class StationPanelController:
    def __init__(
        self,
        coordinator: StationCacheCoordinator,
        resolver: DisplayNameResolver,
        station: StationRecord,
        *,
        is_live: Optional[Callable[[], bool]] = None,
        retry_delay_seconds: float = DEFAULT_RETRY_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._coordinator = coordinator
        self._resolver = resolver
        self._station = station
        self._is_live = is_live or (lambda: True)
        self._retry_delay = retry_delay_seconds
        self._sleep = sleep
        self._state: PanelState = Loading(station)

    @property
    def state(self) -> PanelState:
        return self._state

    @property
    def station(self) -> StationRecord:
        return self._station

    def load(self, *, retry_once: bool = False, force_refresh: bool = False) -> PanelState:
        """Fetch station data and move to ``Loaded`` or ``Failed``."""
        if not self._is_live():
            return self._state

        station_id = self._station.station_id
        self._state = Loading(self._station)
        result = self._coordinator.fetch_station_data(
            station_id, self._station, force_refresh=force_refresh
        )

        if retry_once and result.error is not None and is_transient(result.error):
            logger.info(f"Retrying station {station_id} in {self._retry_delay}s after: {result.error}")
            self._sleep(self._retry_delay)
            if not self._is_live():
                return self._state
            result = self._coordinator.fetch_station_data(
                station_id, self._station, force_refresh=force_refresh
            )

        if not self._is_live():
            logger.debug(f"Panel for station {station_id} closed; discarding result")
            return self._state

        self._state = self._apply(result)
        return self._state

    def retry(self) -> PanelState:
        return self.load()

    # ------------------------------------------------------------------ #
    # Internals                                                          #
    # ------------------------------------------------------------------ #

    def _apply(self, result: StationDataResult) -> PanelState:
        api_name = result.payload.api_data.api_name if result.payload is not None else None
        name = self._resolve_name(api_name)

        if result.ok:
            return Loaded(
                station=self._station,
                payload=result.payload,
                provenance=result.provenance,
                name=name,
            )

        return Failed(
            station=self._station,
            error=result.error,
            message=user_friendly_message(result.error),
            recovery=recovery_suggestion(result.error),
            banner=banner_for(result.error),
            name=name,
            fallback=result.payload,
        )

    def _resolve_name(self, api_name: Optional[str]) -> NameInfo:
        station_id = self._station.station_id
        try:
            return self._resolver.resolve_display_name(station_id, api_name, self._station.inline_name)
        except RivrError as exc:
            # Name storage trouble should not take the panel down with it.
            logger.warning(f"Could not resolve name for station {station_id}: {exc}")
            fallback = api_name or clean_name(self._station.inline_name) or default_display_name(station_id)
            return NameInfo(station_id=station_id, display_name=fallback, original_api_name=api_name)
