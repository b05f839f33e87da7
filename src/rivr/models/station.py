"""Domain records passed between the store, the coordinator and the resolver."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from rivr.errors import RivrError, recovery_suggestion, user_friendly_message
from rivr.models.payloads import StationApiData

DEFAULT_NAME_PREFIX = "Stream"


def default_display_name(station_id: int) -> str:
    """Name shown when nothing better is known about a station."""
    return f"{DEFAULT_NAME_PREFIX} {station_id}"


class Provenance(str, Enum):
    """Where a payload handed to the caller came from."""

    FROM_CACHE = "cache"
    FROM_NETWORK = "network"


@dataclass(frozen=True)
class StationRecord:
    """A station as referenced from a map tap, favorite or search result."""

    station_id: int
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    elevation: Optional[float] = None
    inline_name: Optional[str] = None

    @property
    def coordinates(self) -> Optional[Tuple[float, float]]:
        if self.latitude is None or self.longitude is None:
            return None
        return (self.latitude, self.longitude)


@dataclass
class CachedStationPayload:
    station_id: int
    api_data: StationApiData
    cached_at: datetime


@dataclass
class NameInfo:
    """
    Naming state for one station.

    ``user_defined`` records that ``display_name`` came from an explicit edit;
    until then the display name follows whatever the API reports.
    """

    station_id: int
    display_name: str
    original_api_name: Optional[str] = None
    user_defined: bool = False
    last_updated: Optional[datetime] = None

    @property
    def is_custom(self) -> bool:
        if not self.original_api_name:
            return False
        return self.display_name != self.original_api_name


@dataclass
class StationDataResult:
    """
    Outcome of a coordinator fetch.

    A failed fetch may still carry a stale ``payload`` that was already in the
    store, so callers can keep showing it next to the error.
    """

    station_id: int
    payload: Optional[CachedStationPayload] = None
    provenance: Optional[Provenance] = None
    error: Optional[RivrError] = None
    stale: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and self.payload is not None

    @property
    def message(self) -> Optional[str]:
        return user_friendly_message(self.error) if self.error else None

    @property
    def recovery(self) -> Optional[str]:
        return recovery_suggestion(self.error) if self.error else None


@dataclass
class CacheStats:
    station_count: int = 0
    forecast_count: int = 0
    name_count: int = 0
