"""
Shared test fixtures for woeplanet-cache.

Provides fresh temp cache files, set-up and bare cache instances, and a
small place hierarchy. Resets module-level singletons between tests.
"""

from pathlib import Path

import pytest

from woeplanet_cache.cache import GeoplanetCache


# ---------------------------------------------------------------------------
# Singleton reset (autouse) -- closes shared caches every test
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _reset_module_singletons():
    """Close and clear shared cache instances so tests are fully isolated."""
    import woeplanet_cache.cache as _cache

    yield

    for instance in _cache._cache_instances.values():
        instance.close()
    _cache._cache_instances.clear()


# ---------------------------------------------------------------------------
# Cache path & instances
# ---------------------------------------------------------------------------

@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Return a path to a fresh temporary cache file."""
    return tmp_path / "geoplanet-cache.db"


@pytest.fixture
def cache(db_path: Path):
    """GeoplanetCache with every table and index created."""
    instance = GeoplanetCache(db_path)
    yield instance
    instance.close()


@pytest.fixture
def bare_cache(db_path: Path):
    """GeoplanetCache opened without creating any tables."""
    instance = GeoplanetCache(db_path, setup=False)
    yield instance
    instance.close()


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

@pytest.fixture
def full_place_doc() -> dict:
    """A place document with every composite field populated."""
    return {
        "woeid": 44418,
        "iso": "GB",
        "name": "London",
        "lang": "ENG",
        "placetype": 7,
        "placetypename": "Town",
        "parent": 23416974,
        "lon": -0.12714,
        "lat": 51.506321,
        "swlon": -0.51035,
        "swlat": 51.28676,
        "nelon": 0.33403,
        "nelat": 51.691879,
        "adjacent": [12695806, 12695808, 20078371],
        "alias_q": [{"name": "Londres", "lang": "FRA"}],
        "alias_v": [{"name": "Londra", "lang": "ITA"}],
        "alias_a": [{"name": "LDN", "lang": "ENG"}],
        "alias_s": [],
        "alias_p": [{"name": "Greater London", "lang": "ENG"}],
        "state": 24554868,
        "county": 23416974,
        "localadmin": 0,
        "country": 23424975,
        "continent": 24865675,
        "concordance": {"gn": 2643743, "wd": "Q84"},
        "supercedes": [2441564],
        "superceded": [],
        "history": [{"event": "created", "version": "7.3.1"}],
        "geometry": {"type": "Point", "coordinates": [-0.12714, 51.506321]},
    }


@pytest.fixture
def chain(cache: GeoplanetCache) -> GeoplanetCache:
    """
    A three-level hierarchy:
        1 (placetype 10, root) <- 2 (placetype 20) <- 3 (placetype 30)
    """
    cache.insert_place({"woeid": 1, "name": "Root", "placetype": 10, "parent": 0})
    cache.insert_place({"woeid": 2, "name": "Middle", "placetype": 20, "parent": 1})
    cache.insert_place({"woeid": 3, "name": "Leaf", "placetype": 30, "parent": 2})
    return cache
