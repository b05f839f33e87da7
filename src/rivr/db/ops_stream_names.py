"""Helpers to read and upsert station name records."""
from __future__ import annotations

from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from rivr.db.models import StreamName
from rivr.db.utils import utcnow
from rivr.models.station import NameInfo
from rivr.utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="ops_stream_names")


def get_stream_name(session: Session, station_id: int) -> Optional[StreamName]:
    stmt = select(StreamName).where(StreamName.station_id == station_id).limit(1)
    return session.execute(stmt).scalar_one_or_none()


def ensure_stream_name(session: Session, info: NameInfo) -> StreamName:
    """Upsert (current row) the naming state for ``info.station_id``."""
    row = get_stream_name(session, info.station_id)
    stamp = info.last_updated or utcnow()

    if row is None:
        logger.debug(f"Recording names for station {info.station_id}: '{info.display_name}'")
        row = StreamName(
            station_id=info.station_id,
            display_name=info.display_name,
            original_api_name=info.original_api_name,
            user_defined=info.user_defined,
            last_updated_at_dtz=stamp,
        )
        session.add(row)
    else:
        logger.debug(f"Updating names for station {info.station_id}: '{info.display_name}'")
        row.display_name = info.display_name
        row.original_api_name = info.original_api_name
        row.user_defined = info.user_defined
        row.last_updated_at_dtz = stamp

    session.flush()
    return row


def count_stream_names(session: Session) -> int:
    return session.execute(select(func.count()).select_from(StreamName)).scalar_one()


def clear_stream_names(session: Session) -> int:
    result = session.execute(delete(StreamName))
    return result.rowcount
