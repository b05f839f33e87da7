"""
Local persistent store for station payloads and names.

Each public method runs in its own transaction. Payloads and name records are
written independently, so a payload written without its name record yet is a
normal state rather than an error.
"""
from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, Mapping, Optional, Union

from pydantic import ValidationError
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from rivr.db import ops_forecast_cache, ops_station_cache, ops_stream_names
from rivr.db.bootstrap import ensure_tables
from rivr.db.session import create_db_engine, get_session_factory
from rivr.db.utils import parse_utc
from rivr.errors import StorageError
from rivr.models.payloads import StationApiData
from rivr.models.station import CachedStationPayload, CacheStats, NameInfo, StationRecord
from rivr.utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="station_store")

CACHE_KINDS = ("stations", "forecasts", "names", "all")


class StationStore:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    @classmethod
    def from_engine(cls, engine: Optional[Engine] = None, *, create_tables: bool = True) -> "StationStore":
        engine = engine or create_db_engine()
        if create_tables:
            ensure_tables(engine)
        return cls(get_session_factory(engine))

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Yield a session that commits on success and rolls back on any error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error(f"Store operation failed: {exc}")
            raise StorageError(f"Local storage failure: {exc}", original_error=exc) from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ------------------------------------------------------------------ #
    # Station payloads                                                   #
    # ------------------------------------------------------------------ #

    def get(self, station_id: int) -> Optional[CachedStationPayload]:
        """Return the cached payload, or ``None`` on a miss or a malformed row."""
        with self.session_scope() as session:
            row = ops_station_cache.get_station_cache_entry(session, station_id)
            if row is None:
                return None
            raw, cached_at = row.api_data, row.cached_at_dtz

        if not isinstance(raw, dict):
            logger.warning(f"Ignoring malformed cache row for station {station_id}")
            return None
        try:
            api_data = StationApiData.model_validate(raw)
        except ValidationError as exc:
            logger.warning(f"Ignoring cache row for station {station_id} that no longer validates: {exc}")
            return None

        return CachedStationPayload(
            station_id=station_id,
            api_data=api_data,
            cached_at=parse_utc(cached_at),
        )

    def put(
        self,
        station_id: int,
        api_data: Union[StationApiData, Mapping[str, Any]],
        *,
        station: Optional[StationRecord] = None,
        cached_at: Optional[datetime] = None,
    ) -> CachedStationPayload:
        """Overwrite the cached payload for ``station_id``."""
        if not isinstance(api_data, StationApiData):
            api_data = StationApiData.model_validate(dict(api_data))

        with self.session_scope() as session:
            row = ops_station_cache.ensure_station_cache_entry(
                session,
                station_id,
                api_data.to_api_dict(),
                station=station,
                cached_at=cached_at,
            )
            stamp = row.cached_at_dtz

        return CachedStationPayload(station_id=station_id, api_data=api_data, cached_at=parse_utc(stamp))

    def delete(self, station_id: int) -> bool:
        with self.session_scope() as session:
            return ops_station_cache.delete_station_cache_entry(session, station_id)

    # ------------------------------------------------------------------ #
    # Names                                                              #
    # ------------------------------------------------------------------ #

    def get_name_info(self, station_id: int) -> Optional[NameInfo]:
        with self.session_scope() as session:
            row = ops_stream_names.get_stream_name(session, station_id)
            if row is None:
                return None
            return NameInfo(
                station_id=row.station_id,
                display_name=row.display_name,
                original_api_name=row.original_api_name,
                user_defined=bool(row.user_defined),
                last_updated=parse_utc(row.last_updated_at_dtz),
            )

    def put_name_info(self, info: NameInfo) -> NameInfo:
        with self.session_scope() as session:
            row = ops_stream_names.ensure_stream_name(session, info)
            info.last_updated = parse_utc(row.last_updated_at_dtz)
        return info

    # ------------------------------------------------------------------ #
    # Housekeeping                                                       #
    # ------------------------------------------------------------------ #

    def stats(self) -> CacheStats:
        with self.session_scope() as session:
            return CacheStats(
                station_count=ops_station_cache.count_station_cache_entries(session),
                forecast_count=ops_forecast_cache.count_cached_forecasts(session),
                name_count=ops_stream_names.count_stream_names(session),
            )

    def clear(self, kind: str = "all") -> int:
        """Delete cached rows of one kind (``stations``, ``forecasts``, ``names``) or ``all``."""
        if kind not in CACHE_KINDS:
            raise ValueError(f"Unknown cache kind '{kind}', expected one of {CACHE_KINDS}")

        removed = 0
        with self.session_scope() as session:
            if kind in ("stations", "all"):
                removed += ops_station_cache.clear_station_cache(session)
            if kind in ("forecasts", "all"):
                removed += ops_forecast_cache.clear_forecast_cache(session)
            if kind in ("names", "all"):
                removed += ops_stream_names.clear_stream_names(session)
        return removed
