"""
GeoplanetCache: the embedded SQLite cache for the WOE ID gazetteer.

Opens the cache file with exclusive locking and relaxed durability (the
cache is rebuildable from source data, so ingestion throughput wins over
crash safety), wires up the schema manager, statement cache, entity stores
and hierarchy resolver, and exposes them through one facade.

Single process, single thread. Because the connection holds an exclusive
lock, use get_cache() to share one instance per file within a process.
"""

import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

from . import codec
from .errors import ExecuteError
from .hierarchy import AncestorResult, HierarchyResolver
from .models import (
    AdminRecord,
    AliasRecord,
    CoordsRecord,
    CountryRecord,
    MetaRecord,
    PlaceRecord,
    PlacetypeRecord,
    WofRecord,
)
from .schema import TABLES, SchemaManager
from .statements import StatementCache
from .stores import (
    AdminStore,
    AliasStore,
    AncestorsStore,
    ChildrenStore,
    CoordsStore,
    CountryStore,
    Document,
    MetaStore,
    PlacetypeStore,
    PlaceStore,
    WofStore,
)

logger = logging.getLogger(__name__)

DB_PATH_ENV = "WOEPLANET_CACHE_DB"
DEFAULT_CACHE_DIR = Path.home() / ".cache" / "woeplanet"
DEFAULT_DB_FILENAME = "geoplanet-cache.db"
DEFAULT_DB_PATH = DEFAULT_CACHE_DIR / DEFAULT_DB_FILENAME

# Applied in order on every connection. locking_mode must precede the first
# read so the exclusive lock is taken on first access.
PRAGMAS: dict[str, Any] = {
    "synchronous": 0,
    "locking_mode": "EXCLUSIVE",
    "journal_mode": "DELETE",
    "page_size": 4096,
    "cache_size": 10000,
}

# Module-level shared instances by path
_cache_instances: dict[str, "GeoplanetCache"] = {}


def default_db_path() -> Path:
    """Cache file location: $WOEPLANET_CACHE_DB if set, else DEFAULT_DB_PATH."""
    env_path = os.environ.get(DB_PATH_ENV)
    return Path(env_path) if env_path else DEFAULT_DB_PATH


def _apply_pragmas(conn: sqlite3.Connection) -> None:
    """Configure the connection for exclusive, low-durability bulk access."""
    for name, value in PRAGMAS.items():
        conn.execute(f"PRAGMA {name} = {value}").close()
    logger.debug(
        "Applied PRAGMAs: " + ", ".join(f"{name}={value}" for name, value in PRAGMAS.items())
    )


class GeoplanetCache:
    """
    Persistent place cache keyed by WOE ID.

    Args:
        db_path: Cache file (created if missing); defaults to default_db_path()
        setup: Create all tables and indexes on open (idempotent)
    """

    def __init__(self, db_path: Optional[str | Path] = None, setup: bool = True):
        self._db_path = Path(db_path) if db_path else default_db_path()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        # Autocommit: each write is its own atomic statement unless batch() is active
        self._conn = sqlite3.connect(str(self._db_path), isolation_level=None)
        self._conn.row_factory = sqlite3.Row
        _apply_pragmas(self._conn)
        logger.debug(f"Opened cache at {self._db_path}")

        self.schema = SchemaManager(self._conn)
        self.statements = StatementCache(self._conn, lambda: self.schema.generation)

        self.places = PlaceStore(self._conn, self.statements)
        self.admins = AdminStore(self._conn, self.statements)
        self.countries = CountryStore(self._conn, self.statements)
        self.wof = WofStore(self._conn, self.statements)
        self.aliases = AliasStore(self._conn, self.statements)
        self.placetypes = PlacetypeStore(self._conn, self.statements)
        self.coords = CoordsStore(self._conn, self.statements)
        self.children = ChildrenStore(self._conn, self.statements)
        self.ancestors = AncestorsStore(self._conn, self.statements)
        self.meta = MetaStore(self._conn, self.statements)
        self.hierarchy = HierarchyResolver(self.places)

        if setup:
            self.schema.setup_all()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def get_connection(self) -> sqlite3.Connection:
        """Raw connection, for callers that need SQL the cache does not expose."""
        return self._conn

    def get_fields(self) -> dict[str, dict[str, codec.StorageType]]:
        """Declared storage type of every column, per table."""
        return {table: dict(fields) for table, fields in codec.FIELDS.items()}

    def close(self) -> None:
        """Close the connection, releasing the exclusive lock."""
        self._conn.close()
        logger.debug(f"Closed cache at {self._db_path}")

    @contextmanager
    def batch(self) -> Iterator["GeoplanetCache"]:
        """
        Group many writes into one transaction.

        Commits on normal exit and rolls back if the block raises. Nested
        batches join the outer transaction. Schema changes are not allowed
        inside a batch.
        """
        if self._conn.in_transaction:
            yield self
            return

        self._batch_statement("BEGIN")
        try:
            yield self
        except BaseException:
            if self._conn.in_transaction:
                self._batch_statement("ROLLBACK")
            raise
        else:
            self._batch_statement("COMMIT")

    def _batch_statement(self, sql: str) -> None:
        try:
            self._conn.execute(sql)
        except sqlite3.Error as e:
            raise ExecuteError(f"batch {sql.lower()}", str(e)) from e

    # -- schema ---------------------------------------------------------------

    def create_table(self, table: str, reset: bool = False) -> None:
        self.schema.create_table(table, reset=reset)

    def create_index(self, table: str) -> None:
        self.schema.create_index(table)

    # -- meta -----------------------------------------------------------------

    def get_meta(self) -> Optional[MetaRecord]:
        return self.meta.get()

    def get_maxwoeid(self) -> int:
        return self.meta.get_maxwoeid()

    def refresh_meta(self, woeid: int) -> bool:
        return self.meta.refresh(woeid)

    # -- reads ----------------------------------------------------------------

    def get_woeid(self, woeid: int) -> Optional[PlaceRecord]:
        return self.places.get(woeid)

    def get_parent(self, woeid: int) -> Optional[int]:
        return self.places.get_parent(woeid)

    def get_children(self, woeid: int) -> Optional[list[int]]:
        return self.children.get(woeid)

    def get_ancestors(self, woeid: int) -> Optional[list[int]]:
        return self.ancestors.get(woeid)

    def get_admins(self, woeid: int) -> Optional[AdminRecord]:
        return self.admins.get(woeid)

    def get_coords(self, woeid: int) -> Optional[CoordsRecord]:
        return self.coords.get(woeid)

    def get_country(self, iso2: str) -> Optional[CountryRecord]:
        return self.countries.get(iso2)

    def get_wof(self, wofid: int) -> Optional[WofRecord]:
        return self.wof.get(wofid)

    def get_aliases(self, woeid: int) -> list[AliasRecord]:
        return self.aliases.get_all(woeid)

    def get_placetype(self, placetype_id: int) -> Optional[PlacetypeRecord]:
        return self.placetypes.get(placetype_id)

    def find_ancestor(self, woeid: int, placetype: int) -> Optional[PlaceRecord]:
        return self.hierarchy.find_ancestor(woeid, placetype)

    def resolve_ancestor(self, woeid: int, placetype: int) -> AncestorResult:
        return self.hierarchy.resolve(woeid, placetype)

    # -- writes ---------------------------------------------------------------

    def insert_place(self, doc: Document) -> None:
        self.places.insert(doc)

    def update_place(self, doc: Document) -> bool:
        return self.places.update(doc)

    def insert_alias(self, doc: Document) -> None:
        self.aliases.insert(doc)

    def insert_admin(self, doc: Document) -> None:
        self.admins.insert(doc)

    def insert_country(self, doc: Document) -> None:
        self.countries.insert(doc)

    def insert_wof(self, doc: Document) -> None:
        self.wof.insert(doc)

    def insert_children(self, doc: Document) -> None:
        self.children.insert(doc)

    def insert_ancestors(self, doc: Document) -> None:
        self.ancestors.insert(doc)

    def insert_coords(self, doc: Document) -> None:
        self.coords.insert(doc)

    def insert_placetype(self, doc: Document) -> None:
        self.placetypes.insert(doc)

    # -- stats ----------------------------------------------------------------

    def get_stats(self) -> dict[str, Any]:
        """Row counts for every existing table, plus maxwoeid and file size."""
        counts: dict[str, Optional[int]] = {}
        for table in TABLES:
            if not self.schema.table_exists(table):
                counts[table] = None
                continue
            cursor = self._conn.execute(f"SELECT COUNT(*) FROM {table}")
            try:
                counts[table] = cursor.fetchone()[0]
            finally:
                cursor.close()

        return {
            "path": str(self._db_path),
            "tables": counts,
            "maxwoeid": self.get_maxwoeid() if counts.get("meta") is not None else 0,
            "size_bytes": self._db_path.stat().st_size if self._db_path.exists() else 0,
        }


def get_cache(db_path: Optional[str | Path] = None, setup: bool = True) -> GeoplanetCache:
    """
    Get the shared GeoplanetCache instance for a path.

    Returns:
        The same instance for repeated calls with the same path
    """
    path_key = str(Path(db_path) if db_path else default_db_path())
    if path_key not in _cache_instances:
        logger.debug(f"Creating new GeoplanetCache instance for {path_key}")
        _cache_instances[path_key] = GeoplanetCache(db_path=path_key, setup=setup)
    return _cache_instances[path_key]


def close_cache(db_path: Optional[str | Path] = None) -> None:
    """Close and forget the shared instance for a path, if any."""
    path_key = str(Path(db_path) if db_path else default_db_path())
    cache = _cache_instances.pop(path_key, None)
    if cache is not None:
        cache.close()
