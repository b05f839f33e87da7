"""Favorite stations per user, kept in step with the name resolver."""
from __future__ import annotations

from typing import Callable, List, Optional

from rivr.db import ops_favorites
from rivr.db.models import Favorite
from rivr.db.station_store import StationStore
from rivr.errors import FavoriteNotFound
from rivr.models.station import NameInfo, StationRecord
from rivr.services.name_resolver import DisplayNameResolver
from rivr.utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="favorites")


class FavoritesService:
    """
    Per-user favorite stations.

    With ``follow_renames`` (the default) every favorite of a station is
    renamed as soon as the resolver reports a new display name for it.
    """

    def __init__(
        self,
        store: StationStore,
        resolver: DisplayNameResolver,
        *,
        follow_renames: bool = True,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._unsubscribe: Optional[Callable[[], None]] = None
        if follow_renames:
            self._unsubscribe = resolver.subscribe(self._on_name_change)

    def close(self) -> None:
        """Stop following resolver renames."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def add_favorite(
        self,
        user_id: str,
        station: StationRecord,
        *,
        display_name: Optional[str] = None,
        description: Optional[str] = None,
        color: Optional[str] = None,
        img_number: Optional[int] = None,
    ) -> Favorite:
        """
        Favorite ``station`` for ``user_id`` under its current display name.

        Passing ``display_name`` sets it as the station's custom name first
        (the app asks for one when the station only has the default name).
        """
        if display_name is not None:
            info = self._resolver.set_custom_display_name(station.station_id, display_name)
        else:
            info = self._resolver.resolve_display_name(station.station_id, inline_name=station.inline_name)

        with self._store.session_scope() as session:
            return ops_favorites.ensure_favorite(
                session,
                {
                    "user_id": user_id,
                    "station_id": station.station_id,
                    "name": info.display_name,
                    "original_api_name": info.original_api_name,
                    "description": description,
                    "color": color,
                    "img_number": img_number,
                    "latitude": station.latitude,
                    "longitude": station.longitude,
                    "elevation": station.elevation,
                },
            )

    def rename_favorite(self, user_id: str, station_id: int, new_name: str) -> Favorite:
        """Rename a favorite; the new name becomes the station's custom display name."""
        with self._store.session_scope() as session:
            if not ops_favorites.is_favorite(session, user_id, station_id):
                raise FavoriteNotFound(user_id, station_id)

        info = self._resolver.set_custom_display_name(station_id, new_name)
        with self._store.session_scope() as session:
            return ops_favorites.update_favorite(
                session,
                user_id,
                station_id,
                name=info.display_name,
                original_api_name=info.original_api_name,
            )

    def update_description(self, user_id: str, station_id: int, description: Optional[str]) -> Favorite:
        with self._store.session_scope() as session:
            return ops_favorites.update_favorite(session, user_id, station_id, description=description)

    def remove_favorite(self, user_id: str, station_id: int) -> bool:
        with self._store.session_scope() as session:
            return ops_favorites.remove_favorite(session, user_id, station_id)

    def list_favorites(self, user_id: str) -> List[Favorite]:
        with self._store.session_scope() as session:
            return ops_favorites.list_favorites(session, user_id)

    def is_favorite(self, user_id: str, station_id: int) -> bool:
        with self._store.session_scope() as session:
            return ops_favorites.is_favorite(session, user_id, station_id)

    def move_favorite(self, user_id: str, station_id: int, new_position: int) -> List[Favorite]:
        with self._store.session_scope() as session:
            return ops_favorites.move_favorite(session, user_id, station_id, new_position)

    def refresh_names(self, user_id: str) -> int:
        """Copy current display names onto the user's favorites; returns how many changed."""
        stale = {}
        for row in self.list_favorites(user_id):
            info = self._resolver.get_name_info(row.station_id)
            if row.name != info.display_name:
                stale[row.station_id] = info

        if stale:
            with self._store.session_scope() as session:
                for station_id, info in stale.items():
                    ops_favorites.update_favorite(
                        session,
                        user_id,
                        station_id,
                        name=info.display_name,
                        original_api_name=info.original_api_name,
                    )
            logger.info(f"Refreshed {len(stale)} favorite name(s) for user '{user_id}'")
        return len(stale)

    def _on_name_change(self, info: NameInfo) -> None:
        with self._store.session_scope() as session:
            ops_favorites.sync_favorite_names(
                session, info.station_id, info.display_name, info.original_api_name
            )
