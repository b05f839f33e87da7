import pytest

from rivr.errors import FavoriteNotFound, InvalidName
from rivr.models.station import StationRecord
from rivr.services.favorites import FavoritesService

PROVO = StationRecord(500, latitude=40.4, longitude=-111.5, elevation=1600.0)
BEAR = StationRecord(12345, inline_name="Creek A")


@pytest.fixture
def favorites(store, resolver):
    return FavoritesService(store, resolver)


def test_add_favorite_snapshots_current_display_name(favorites, resolver):
    resolver.resolve_display_name(500, "Provo River")

    row = favorites.add_favorite("u1", PROVO, color="#1e88e5")

    assert row.name == "Provo River"
    assert row.original_api_name == "Provo River"
    assert row.position == 0
    assert (row.latitude, row.longitude, row.elevation) == (40.4, -111.5, 1600.0)
    assert favorites.is_favorite("u1", 500)


def test_add_favorite_falls_back_to_inline_then_default(favorites):
    assert favorites.add_favorite("u1", BEAR).name == "Creek A"
    assert favorites.add_favorite("u1", StationRecord(77)).name == "Stream 77"


def test_add_favorite_with_display_name_sets_custom_name(favorites, resolver):
    resolver.resolve_display_name(500, "Provo River")

    row = favorites.add_favorite("u1", PROVO, display_name="My Spot")

    assert row.name == "My Spot"
    assert resolver.has_custom_name(500)


def test_list_is_ordered_by_position(favorites):
    favorites.add_favorite("u1", PROVO)
    favorites.add_favorite("u1", BEAR)
    favorites.move_favorite("u1", 12345, 0)

    assert [row.station_id for row in favorites.list_favorites("u1")] == [12345, 500]


def test_rename_favorite_writes_custom_name_through_resolver(favorites, resolver):
    resolver.resolve_display_name(500, "Provo River")
    favorites.add_favorite("u1", PROVO)

    row = favorites.rename_favorite("u1", 500, "  My Spot ")

    assert row.name == "My Spot"
    assert row.original_api_name == "Provo River"
    assert resolver.get_display_name(500) == "My Spot"


def test_rename_rejects_blank_and_unknown(favorites, resolver):
    favorites.add_favorite("u1", PROVO)

    with pytest.raises(InvalidName):
        favorites.rename_favorite("u1", 500, "   ")
    with pytest.raises(FavoriteNotFound):
        favorites.rename_favorite("u1", 999, "Somewhere")

    assert not resolver.has_custom_name(999)
    assert resolver.get_display_name(999) == "Stream 999"


def test_update_description_and_remove(favorites):
    favorites.add_favorite("u1", PROVO)

    assert favorites.update_description("u1", 500, "Park at the bridge").description == "Park at the bridge"
    assert favorites.remove_favorite("u1", 500) is True
    assert favorites.list_favorites("u1") == []


def test_refresh_names_copies_resolved_names(store, resolver):
    favorites = FavoritesService(store, resolver, follow_renames=False)
    favorites.add_favorite("u1", PROVO)
    favorites.add_favorite("u1", BEAR)
    resolver.resolve_display_name(500, "Provo River")

    assert favorites.refresh_names("u1") == 1
    names = {row.station_id: row.name for row in favorites.list_favorites("u1")}
    assert names == {500: "Provo River", 12345: "Creek A"}
    assert favorites.refresh_names("u1") == 0


def test_favorites_follow_resolver_renames(favorites, resolver):
    favorites.add_favorite("u1", PROVO)
    favorites.add_favorite("u2", PROVO)
    favorites.add_favorite("u1", BEAR)

    resolver.resolve_display_name(500, "Provo River")

    rows = favorites.list_favorites("u1") + favorites.list_favorites("u2")
    assert {(row.user_id, row.station_id, row.name) for row in rows} == {
        ("u1", 500, "Provo River"),
        ("u2", 500, "Provo River"),
        ("u1", 12345, "Creek A"),
    }
    assert favorites.refresh_names("u1") == 0

    resolver.set_custom_display_name(500, "My Spot")
    assert [row.name for row in favorites.list_favorites("u2")] == ["My Spot"]

    resolver.reset_to_original_name(500)
    row = favorites.list_favorites("u2")[0]
    assert (row.name, row.original_api_name) == ("Provo River", "Provo River")


def test_rename_through_one_user_reaches_every_favorite(favorites, resolver):
    favorites.add_favorite("u1", PROVO)
    favorites.add_favorite("u2", PROVO)

    favorites.rename_favorite("u1", 500, "Home Run")

    assert favorites.list_favorites("u2")[0].name == "Home Run"


def test_closed_service_stops_following_renames(favorites, resolver):
    favorites.add_favorite("u1", PROVO)
    favorites.close()

    resolver.resolve_display_name(500, "Provo River")

    assert favorites.list_favorites("u1")[0].name == "Stream 500"
    assert favorites.refresh_names("u1") == 1
