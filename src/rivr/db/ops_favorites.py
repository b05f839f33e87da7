"""Helpers to manage a user's favorite stations."""
from __future__ import annotations

from typing import Any, List, Mapping, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from rivr.db.models import Favorite
from rivr.db.utils import utcnow
from rivr.errors import FavoriteNotFound
from rivr.utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="ops_favorites")

EDITABLE_FIELDS = (
    "name",
    "original_api_name",
    "description",
    "color",
    "img_number",
    "latitude",
    "longitude",
    "elevation",
)


def list_favorites(session: Session, user_id: str) -> List[Favorite]:
    stmt = (
        select(Favorite)
        .where(Favorite.user_id == user_id)
        .order_by(Favorite.position.asc(), Favorite.favorite_id.asc())
    )
    return list(session.execute(stmt).scalars().all())


def get_favorite(session: Session, user_id: str, station_id: int) -> Optional[Favorite]:
    stmt = (
        select(Favorite)
        .where(Favorite.user_id == user_id, Favorite.station_id == station_id)
        .limit(1)
    )
    return session.execute(stmt).scalar_one_or_none()


def is_favorite(session: Session, user_id: str, station_id: int) -> bool:
    return get_favorite(session, user_id, station_id) is not None


def _next_position(session: Session, user_id: str) -> int:
    stmt = select(func.max(Favorite.position)).where(Favorite.user_id == user_id)
    current = session.execute(stmt).scalar_one_or_none()
    return 0 if current is None else current + 1


def ensure_favorite(session: Session, favorite: Mapping[str, Any]) -> Favorite:
    """
    Upsert a favorite for ``favorite['user_id']`` / ``favorite['station_id']``.

    New favorites go to the end of the user's list; existing ones keep their
    position and have their fields overwritten.
    """
    user_id = favorite["user_id"]
    station_id = favorite["station_id"]
    row = get_favorite(session, user_id, station_id)

    if row is None:
        position = _next_position(session, user_id)
        logger.info(f"Adding station {station_id} to favorites for user '{user_id}' at position {position}")
        row = Favorite(
            user_id=user_id,
            station_id=station_id,
            position=position,
            created_at_dtz=utcnow(),
            last_updated_at_dtz=utcnow(),
            **{key: favorite.get(key) for key in EDITABLE_FIELDS},
        )
        session.add(row)
    else:
        logger.info(f"Station {station_id} already a favorite for user '{user_id}'.  Updating it.")
        for key in EDITABLE_FIELDS:
            if key in favorite:
                setattr(row, key, favorite[key])
        row.last_updated_at_dtz = utcnow()

    session.flush()
    return row


def update_favorite(session: Session, user_id: str, station_id: int, **fields: Any) -> Favorite:
    row = get_favorite(session, user_id, station_id)
    if row is None:
        raise FavoriteNotFound(user_id, station_id)

    for key, value in fields.items():
        if key not in EDITABLE_FIELDS:
            raise ValueError(f"Favorite field '{key}' cannot be edited")
        setattr(row, key, value)
    row.last_updated_at_dtz = utcnow()
    session.flush()
    return row


def remove_favorite(session: Session, user_id: str, station_id: int) -> bool:
    result = session.execute(
        delete(Favorite).where(Favorite.user_id == user_id, Favorite.station_id == station_id)
    )
    if result.rowcount:
        logger.info(f"Removed station {station_id} from favorites for user '{user_id}'")
    return bool(result.rowcount)


def move_favorite(session: Session, user_id: str, station_id: int, new_position: int) -> List[Favorite]:
    """Move one favorite to ``new_position`` and renumber the rest densely from 0."""
    rows = list_favorites(session, user_id)
    moving = next((row for row in rows if row.station_id == station_id), None)
    if moving is None:
        raise FavoriteNotFound(user_id, station_id)

    rows.remove(moving)
    new_position = max(0, min(new_position, len(rows)))
    rows.insert(new_position, moving)

    stamp = utcnow()
    for index, row in enumerate(rows):
        if row.position != index:
            row.position = index
            row.last_updated_at_dtz = stamp
    session.flush()
    return rows


def sync_favorite_names(
    session: Session,
    station_id: int,
    name: str,
    original_api_name: Optional[str],
) -> int:
    """Copy a station's current names onto every user's favorite of it; returns rows changed."""
    stmt = select(Favorite).where(Favorite.station_id == station_id)
    changed = 0
    for row in session.execute(stmt).scalars().all():
        if row.name == name and row.original_api_name == original_api_name:
            continue
        row.name = name
        row.original_api_name = original_api_name
        row.last_updated_at_dtz = utcnow()
        changed += 1

    if changed:
        logger.info(f"Renamed {changed} favorite(s) of station {station_id} to '{name}'")
        session.flush()
    return changed
