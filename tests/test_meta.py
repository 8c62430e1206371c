"""Tests for MetaStore: the monotonic maxwoeid counter."""

from woeplanet_cache.cache import GeoplanetCache


def test_empty_cache_maxwoeid_is_zero(cache: GeoplanetCache):
    assert cache.get_meta() is None
    assert cache.get_maxwoeid() == 0


def test_first_refresh_creates_row(cache: GeoplanetCache):
    assert cache.refresh_meta(5) is True
    meta = cache.get_meta()
    assert meta.id == 1
    assert meta.maxwoeid == 5


def test_counter_never_decreases(cache: GeoplanetCache):
    cache.refresh_meta(5)
    assert cache.refresh_meta(3) is False
    assert cache.get_maxwoeid() == 5

    assert cache.refresh_meta(7) is True
    assert cache.get_maxwoeid() == 7


def test_equal_value_does_not_move(cache: GeoplanetCache):
    cache.refresh_meta(5)
    assert cache.refresh_meta(5) is False


def test_null_maxwoeid_is_treated_as_zero(cache: GeoplanetCache):
    cache.get_connection().execute("INSERT INTO meta (id, maxwoeid) VALUES (1, NULL)")
    assert cache.get_maxwoeid() == 0
    assert cache.refresh_meta(2) is True
    assert cache.get_maxwoeid() == 2


def test_single_meta_row(cache: GeoplanetCache):
    for woeid in (1, 9, 4, 12):
        cache.refresh_meta(woeid)
    count = cache.get_connection().execute("SELECT COUNT(*) FROM meta").fetchone()[0]
    assert count == 1
    assert cache.get_maxwoeid() == 12


class TestCompareAndSet:
    def test_insert_when_absent(self, cache: GeoplanetCache):
        assert cache.meta.compare_and_set(None, 10) is True
        assert cache.meta.compare_and_set(None, 20) is False
        assert cache.get_maxwoeid() == 10

    def test_update_requires_expected_value(self, cache: GeoplanetCache):
        cache.meta.compare_and_set(None, 10)
        assert cache.meta.compare_and_set(9, 30) is False
        assert cache.meta.compare_and_set(10, 30) is True
        assert cache.get_maxwoeid() == 30


def test_counter_persists_across_reopen(db_path):
    first = GeoplanetCache(db_path)
    first.refresh_meta(42)
    first.close()

    second = GeoplanetCache(db_path)
    try:
        assert second.get_maxwoeid() == 42
    finally:
        second.close()
