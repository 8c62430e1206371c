"""Tests for the non-place stores: admins, countries, WOF, aliases, placetypes, coords, lists."""

import pytest
from pydantic import ValidationError

from woeplanet_cache.cache import GeoplanetCache
from woeplanet_cache.errors import FetchError
from woeplanet_cache.models import AdminRecord, CountryRecord


# ---------------------------------------------------------------------------
# Admins
# ---------------------------------------------------------------------------


def test_admin_round_trip(cache: GeoplanetCache):
    cache.insert_admin(
        {"woeid": 44418, "state": 24554868, "county": 23416974, "localadmin": 0, "country": 23424975, "continent": 24865675}
    )
    admins = cache.get_admins(44418)
    assert admins == AdminRecord(
        woeid=44418, state=24554868, county=23416974, localadmin=0, country=23424975, continent=24865675
    )


def test_admin_upsert_replaces(cache: GeoplanetCache):
    cache.insert_admin({"woeid": 1, "state": 2, "country": 3})
    cache.insert_admin({"woeid": 1, "country": 4})
    admins = cache.get_admins(1)
    assert admins.country == 4
    assert admins.state is None


def test_admin_not_found(cache: GeoplanetCache):
    assert cache.get_admins(999) is None


# ---------------------------------------------------------------------------
# Countries
# ---------------------------------------------------------------------------


def test_country_lookup_by_iso2(cache: GeoplanetCache):
    cache.insert_country({"woeid": 23424975, "name": "United Kingdom", "iso2": "GB", "iso3": "GBR"})
    country = cache.get_country("GB")
    assert country == CountryRecord(woeid=23424975, name="United Kingdom", iso2="GB", iso3="GBR")


def test_country_iso2_is_unique(cache: GeoplanetCache):
    """A second country with the same iso2 replaces the first."""
    cache.insert_country({"woeid": 1, "name": "Old", "iso2": "XX"})
    cache.insert_country({"woeid": 2, "name": "New", "iso2": "XX"})
    assert cache.get_country("XX").woeid == 2
    count = cache.get_connection().execute("SELECT COUNT(*) FROM countries").fetchone()[0]
    assert count == 1


def test_country_not_found(cache: GeoplanetCache):
    assert cache.get_country("ZZ") is None


def test_country_rejects_unknown_fields(cache: GeoplanetCache):
    with pytest.raises(ValidationError):
        cache.insert_country({"woeid": 1, "iso2": "GB", "currency": "GBP"})


# ---------------------------------------------------------------------------
# WOF
# ---------------------------------------------------------------------------


def test_wof_mapping(cache: GeoplanetCache):
    cache.insert_wof({"wofid": 101750367, "woeid": 44418})
    assert cache.get_wof(101750367).woeid == 44418
    assert cache.get_wof(1) is None


def test_wof_remap(cache: GeoplanetCache):
    cache.insert_wof({"wofid": 5, "woeid": 1})
    cache.insert_wof({"wofid": 5, "woeid": 2})
    assert cache.get_wof(5).woeid == 2


# ---------------------------------------------------------------------------
# Aliases
# ---------------------------------------------------------------------------


def test_aliases_accumulate(cache: GeoplanetCache):
    cache.insert_alias({"woeid": 44418, "name": "Londres", "type": "V", "lang": "FRA"})
    cache.insert_alias({"woeid": 44418, "name": "Londra", "type": "V", "lang": "ITA"})
    aliases = cache.get_aliases(44418)
    assert [a.name for a in aliases] == ["Londres", "Londra"]


def test_aliases_empty(cache: GeoplanetCache):
    assert cache.get_aliases(1) == []


# ---------------------------------------------------------------------------
# Placetypes & coords
# ---------------------------------------------------------------------------


def test_placetype_round_trip(cache: GeoplanetCache):
    cache.insert_placetype({"id": 7, "name": "Town", "descr": "A populated settlement", "shortname": "town", "tag": "Town"})
    placetype = cache.get_placetype(7)
    assert placetype.shortname == "town"
    assert cache.get_placetype(8) is None


def test_coords_round_trip(cache: GeoplanetCache):
    cache.insert_coords({"woeid": 44418, "lon": -0.12714, "lat": 51.506321, "swlon": -0.51, "swlat": 51.28, "nelon": 0.33, "nelat": 51.69})
    coords = cache.get_coords(44418)
    assert coords.lon == pytest.approx(-0.12714)
    assert coords.nelat == pytest.approx(51.69)
    assert cache.get_coords(1) is None


# ---------------------------------------------------------------------------
# Children & ancestors
# ---------------------------------------------------------------------------


def test_children_round_trip(cache: GeoplanetCache):
    cache.insert_children({"woeid": 23424975, "children": [24554868, 12602140]})
    assert cache.get_children(23424975) == [24554868, 12602140]


def test_children_not_found(cache: GeoplanetCache):
    assert cache.get_children(1) is None


def test_ancestors_decode_own_row(cache: GeoplanetCache):
    """get_ancestors unpacks the blob of the row it fetched."""
    cache.insert_ancestors({"woeid": 44418, "ancestors": [23416974, 24554868, 23424975]})
    cache.insert_ancestors({"woeid": 1, "ancestors": [2]})
    assert cache.get_ancestors(44418) == [23416974, 24554868, 23424975]
    assert cache.get_ancestors(1) == [2]


def test_ancestors_not_found(cache: GeoplanetCache):
    assert cache.get_ancestors(1) is None


def test_list_row_without_blob_is_empty(cache: GeoplanetCache):
    cache.insert_children({"woeid": 9})
    assert cache.get_children(9) == []


def test_corrupt_list_blob_raises_fetch_error(cache: GeoplanetCache):
    cache.get_connection().execute("INSERT INTO ancestors (woeid, ancestors) VALUES (3, '{broken')")
    with pytest.raises(FetchError):
        cache.get_ancestors(3)
