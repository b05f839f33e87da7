"""Model package for rivr."""
from .base import Base
from .favorite import Favorite
from .forecast_cache import ForecastCacheEntry
from .station_cache import StationCacheEntry
from .stream_name import StreamName

__all__ = [
    "Base",
    "Favorite",
    "ForecastCacheEntry",
    "StationCacheEntry",
    "StreamName",
]
