"""
Display names for stations.

Resolution order, first non-empty wins:

1. a display name the user set explicitly,
2. the API name (the one passed in, else the last one recorded),
3. the inline name from the caller's context (e.g. a map feature),
4. ``"Stream <id>"``.

Any API name passed in is recorded as the station's original API name, even
when a custom name stays in front of it, so ``reset_to_original_name`` can
always get back to it.

Listeners registered with ``subscribe`` are called with the new ``NameInfo``
whenever a station's display name changes.
"""
from __future__ import annotations

from typing import Any, Callable, Iterable, List, Mapping, Optional

from rivr.db.station_store import StationStore
from rivr.errors import InvalidName, NoOriginalName
from rivr.models.station import NameInfo, default_display_name
from rivr.utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="name_resolver")

NameListener = Callable[[NameInfo], None]


def clean_name(value: Any) -> Optional[str]:
    """Trim a candidate name; ``None`` for missing, blank or the literal ``"null"``."""
    if value is None:
        return None
    text = str(value).strip()
    if not text or text == "null":
        return None
    return text


class DisplayNameResolver:
    def __init__(self, store: StationStore) -> None:
        self._store = store
        self._listeners: List[NameListener] = []

    def subscribe(self, listener: NameListener) -> Callable[[], None]:
        """Call ``listener`` on every display-name change; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def get_name_info(self, station_id: int) -> NameInfo:
        """Stored naming state, or the generated default when nothing is stored."""
        stored = self._store.get_name_info(station_id)
        if stored is not None:
            return stored
        return NameInfo(station_id=station_id, display_name=default_display_name(station_id))

    def get_display_name(self, station_id: int) -> str:
        return self.get_name_info(station_id).display_name

    def has_custom_name(self, station_id: int) -> bool:
        return self.get_name_info(station_id).is_custom

    def resolve_display_name(
        self,
        station_id: int,
        candidate_api_name: Optional[str] = None,
        inline_name: Optional[str] = None,
    ) -> NameInfo:
        stored = self._store.get_name_info(station_id)
        api_name = clean_name(candidate_api_name)

        original = api_name or (stored.original_api_name if stored else None)
        custom = clean_name(stored.display_name) if stored and stored.user_defined else None

        if custom:
            info = NameInfo(station_id, custom, original, user_defined=True)
        elif original:
            info = NameInfo(station_id, original, original)
        elif clean_name(inline_name):
            info = NameInfo(station_id, clean_name(inline_name), None)
        elif stored is not None and clean_name(stored.display_name):
            # Keep a name learned earlier (e.g. from a map feature).
            info = NameInfo(station_id, clean_name(stored.display_name), None)
        else:
            info = NameInfo(station_id, default_display_name(station_id), None)

        if stored is not None and _same_names(stored, info):
            info.last_updated = stored.last_updated
            return info

        if api_name and stored is not None and stored.original_api_name != api_name:
            logger.info(
                f"Station {station_id} API name changed: '{stored.original_api_name}' -> '{api_name}'"
            )
        return self._save(info, stored)

    def set_custom_display_name(self, station_id: int, new_name: Optional[str]) -> NameInfo:
        """Store ``new_name`` as the user's name for the station; blank names raise ``InvalidName``."""
        name = (new_name or "").strip()
        if not name:
            raise InvalidName()

        stored = self._store.get_name_info(station_id)
        original = stored.original_api_name if stored else None
        logger.info(f"Setting custom name for station {station_id}: '{name}'")
        return self._save(NameInfo(station_id, name, original, user_defined=True), stored)

    def reset_to_original_name(self, station_id: int) -> NameInfo:
        stored = self._store.get_name_info(station_id)
        if stored is None or not stored.original_api_name:
            raise NoOriginalName(station_id)

        info = NameInfo(station_id, stored.original_api_name, stored.original_api_name)
        if _same_names(stored, info):
            return stored
        logger.info(f"Resetting station {station_id} to its API name '{stored.original_api_name}'")
        return self._save(info, stored)

    def import_from_favorites(self, favorites: Iterable[Mapping[str, Any]]) -> int:
        """
        Seed name records from favorites saved before names were tracked separately.

        Accepts rows keyed either ``station_id``/``original_api_name`` or the
        mobile app's ``stationId``/``originalApiName``.
        """
        imported = 0
        for favorite in favorites:
            station_id = favorite.get("station_id", favorite.get("stationId"))
            name = clean_name(favorite.get("name"))
            if station_id is None or name is None:
                continue

            station_id = int(station_id)
            original = clean_name(favorite.get("original_api_name", favorite.get("originalApiName")))
            self._save(
                NameInfo(
                    station_id=station_id,
                    display_name=name,
                    original_api_name=original,
                    user_defined=name != original and name != default_display_name(station_id),
                ),
                self._store.get_name_info(station_id),
            )
            imported += 1

        logger.info(f"Imported {imported} name(s) from favorites")
        return imported

    def _save(self, info: NameInfo, previous: Optional[NameInfo]) -> NameInfo:
        info = self._store.put_name_info(info)
        before = previous.display_name if previous else default_display_name(info.station_id)
        if info.display_name != before:
            self._notify(info)
        return info

    def _notify(self, info: NameInfo) -> None:
        for listener in list(self._listeners):
            try:
                listener(info)
            except Exception:
                logger.exception(f"Name listener failed for station {info.station_id}")


def _same_names(a: NameInfo, b: NameInfo) -> bool:
    return (
        a.display_name == b.display_name
        and a.original_api_name == b.original_api_name
        and a.user_defined == b.user_defined
    )
