"""
Embedded persistent cache for the WOE ID gazetteer.

Stores places with their hierarchy, coordinates, aliases and concordances
in a single SQLite file, and answers parent/children/ancestor/country
questions for offline ingestion pipelines.
"""

__version__ = "0.1.0"

from woeplanet_cache.cache import (
    DEFAULT_DB_PATH,
    GeoplanetCache,
    close_cache,
    get_cache,
)
from woeplanet_cache.errors import (
    CacheError,
    DdlError,
    ExecuteError,
    FetchError,
    PrepareError,
)
from woeplanet_cache.hierarchy import (
    AncestorResult,
    DanglingParent,
    Found,
    NoParent,
    UnknownPlace,
)
from woeplanet_cache.models import (
    AdminRecord,
    AliasRecord,
    AncestorsRecord,
    ChildrenRecord,
    CoordsRecord,
    CountryRecord,
    Geometry,
    MetaRecord,
    PlaceRecord,
    PlacetypeRecord,
    WofRecord,
)

__all__ = [
    # Cache
    "GeoplanetCache",
    "get_cache",
    "close_cache",
    "DEFAULT_DB_PATH",
    # Errors
    "CacheError",
    "DdlError",
    "PrepareError",
    "ExecuteError",
    "FetchError",
    # Hierarchy results
    "AncestorResult",
    "Found",
    "NoParent",
    "DanglingParent",
    "UnknownPlace",
    # Records
    "PlaceRecord",
    "Geometry",
    "AdminRecord",
    "CountryRecord",
    "WofRecord",
    "AliasRecord",
    "PlacetypeRecord",
    "CoordsRecord",
    "ChildrenRecord",
    "AncestorsRecord",
    "MetaRecord",
]
