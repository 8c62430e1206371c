"""
Table and index DDL for the gazetteer cache, plus the SchemaManager that
applies it.

Tables are created without key constraints; uniqueness comes from the
indexes built by create_index(), so bulk loads can run before indexing.
Every DDL call bumps the schema generation, which the StatementCache uses
to decide when compiled reads must be recompiled.
"""

import logging
import sqlite3

from .errors import DdlError

logger = logging.getLogger(__name__)

META_TABLE = "meta"
PLACES_TABLE = "places"
ADJACENCIES_TABLE = "adjacencies"
ALIASES_TABLE = "aliases"
PLACETYPES_TABLE = "placetypes"
ADMINS_TABLE = "admins"
CHILDREN_TABLE = "children"
ANCESTORS_TABLE = "ancestors"
COORDS_TABLE = "coords"
COUNTRIES_TABLE = "countries"
WOF_TABLE = "wof"

CREATE_META = "CREATE TABLE IF NOT EXISTS meta (id INTEGER, maxwoeid INTEGER)"

CREATE_PLACES = """
    CREATE TABLE IF NOT EXISTS places (
        woeid INTEGER,
        iso TEXT,
        name TEXT,
        lang TEXT,
        placetype INTEGER,
        placetypename TEXT,
        parent INTEGER,
        lon REAL,
        lat REAL,
        swlon REAL,
        swlat REAL,
        nelon REAL,
        nelat REAL,
        adjacent TEXT,
        alias_q TEXT,
        alias_v TEXT,
        alias_a TEXT,
        alias_s TEXT,
        alias_p TEXT,
        state INTEGER,
        county INTEGER,
        localadmin INTEGER,
        country INTEGER,
        continent INTEGER,
        concordance TEXT,
        supercedes TEXT,
        superceded TEXT,
        history TEXT,
        updated INTEGER,
        geometry TEXT
    )
"""

# Kept for file-format compatibility; adjacency lives packed on places.adjacent.
CREATE_ADJACENCIES = "CREATE TABLE IF NOT EXISTS adjacencies (woeid INTEGER, neighbour INTEGER)"

CREATE_ALIASES = """
    CREATE TABLE IF NOT EXISTS aliases (
        woeid INTEGER,
        name TEXT,
        type TEXT,
        lang TEXT
    )
"""

CREATE_PLACETYPES = """
    CREATE TABLE IF NOT EXISTS placetypes (
        id INTEGER,
        name TEXT,
        descr TEXT,
        shortname TEXT,
        tag TEXT
    )
"""

CREATE_ADMINS = """
    CREATE TABLE IF NOT EXISTS admins (
        woeid INTEGER,
        state INTEGER,
        county INTEGER,
        localadmin INTEGER,
        country INTEGER,
        continent INTEGER
    )
"""

CREATE_CHILDREN = "CREATE TABLE IF NOT EXISTS children (woeid INTEGER, children TEXT)"
CREATE_ANCESTORS = "CREATE TABLE IF NOT EXISTS ancestors (woeid INTEGER, ancestors TEXT)"

CREATE_COORDS = """
    CREATE TABLE IF NOT EXISTS coords (
        woeid INTEGER,
        lon REAL,
        lat REAL,
        swlon REAL,
        swlat REAL,
        nelon REAL,
        nelat REAL
    )
"""

CREATE_COUNTRIES = """
    CREATE TABLE IF NOT EXISTS countries (
        woeid INTEGER,
        name TEXT,
        iso2 TEXT,
        iso3 TEXT
    )
"""

CREATE_WOF = "CREATE TABLE IF NOT EXISTS wof (wofid INTEGER, woeid INTEGER)"

TABLES: dict[str, str] = {
    META_TABLE: CREATE_META,
    PLACES_TABLE: CREATE_PLACES,
    ADJACENCIES_TABLE: CREATE_ADJACENCIES,
    ALIASES_TABLE: CREATE_ALIASES,
    PLACETYPES_TABLE: CREATE_PLACETYPES,
    ADMINS_TABLE: CREATE_ADMINS,
    CHILDREN_TABLE: CREATE_CHILDREN,
    ANCESTORS_TABLE: CREATE_ANCESTORS,
    COORDS_TABLE: CREATE_COORDS,
    COUNTRIES_TABLE: CREATE_COUNTRIES,
    WOF_TABLE: CREATE_WOF,
}

INDEXES: dict[str, list[str]] = {
    META_TABLE: [
        "CREATE UNIQUE INDEX IF NOT EXISTS meta_by_id ON meta(id)",
    ],
    PLACES_TABLE: [
        "CREATE UNIQUE INDEX IF NOT EXISTS places_by_woeid ON places(woeid)",
        "CREATE INDEX IF NOT EXISTS places_by_parent ON places(parent)",
    ],
    ADJACENCIES_TABLE: [
        "CREATE INDEX IF NOT EXISTS adjacencies_by_woeid ON adjacencies(woeid)",
    ],
    ALIASES_TABLE: [
        "CREATE INDEX IF NOT EXISTS aliases_by_woeid ON aliases(woeid)",
    ],
    PLACETYPES_TABLE: [
        "CREATE INDEX IF NOT EXISTS placetype_by_id ON placetypes(id)",
        "CREATE INDEX IF NOT EXISTS placetype_by_name ON placetypes(shortname)",
    ],
    ADMINS_TABLE: [
        "CREATE UNIQUE INDEX IF NOT EXISTS admin_by_id ON admins(woeid)",
    ],
    CHILDREN_TABLE: [
        "CREATE UNIQUE INDEX IF NOT EXISTS children_by_woeid ON children(woeid)",
    ],
    ANCESTORS_TABLE: [
        "CREATE UNIQUE INDEX IF NOT EXISTS ancestors_by_woeid ON ancestors(woeid)",
    ],
    COORDS_TABLE: [
        "CREATE UNIQUE INDEX IF NOT EXISTS coords_by_woeid ON coords(woeid)",
    ],
    COUNTRIES_TABLE: [
        "CREATE UNIQUE INDEX IF NOT EXISTS countries_by_woeid ON countries(woeid)",
        "CREATE UNIQUE INDEX IF NOT EXISTS countries_by_iso ON countries(iso2)",
    ],
    WOF_TABLE: [
        "CREATE UNIQUE INDEX IF NOT EXISTS wof_by_wofid ON wof(wofid)",
    ],
}


class SchemaManager:
    """
    Creates, resets and indexes cache tables.

    The connection must be in autocommit mode (isolation_level=None) so that
    each DDL batch runs inside its own explicit transaction.
    """

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn
        self.generation = 0

    def _mark_changed(self) -> None:
        self.generation += 1
        logger.debug(f"Schema generation is now {self.generation}")

    def _run_ddl(self, operation: str, statements: list[str]) -> None:
        """Run DDL statements in one transaction, rolling back on failure."""
        conn = self._conn
        # An open transaction belongs to the caller (e.g. a batch); leave it alone
        if conn.in_transaction:
            raise DdlError(operation, "schema change inside an open transaction")

        # DDL may have changed the schema even if it later fails
        self._mark_changed()
        try:
            conn.execute("BEGIN")
        except sqlite3.Error as e:
            raise DdlError(operation, str(e)) from e
        try:
            for sql in statements:
                conn.execute(sql)
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise DdlError(operation, str(e)) from e

    def create_table(self, table: str, reset: bool = False) -> None:
        """
        Create a cache table if it does not exist.

        Args:
            table: One of the table names in TABLES
            reset: Drop the table first, discarding its rows

        Raises:
            ValueError: if the table name is unknown
            DdlError: if the DDL fails
        """
        if table not in TABLES:
            raise ValueError(f"Unknown cache table: {table}")

        statements = []
        if reset:
            statements.append(f"DROP TABLE IF EXISTS {table}")
        statements.append(TABLES[table])

        self._run_ddl("create_table", statements)
        logger.debug(f"Created table {table} (reset={reset})")

    def create_index(self, table: str) -> None:
        """
        Create the uniqueness and lookup indexes for a cache table.

        Raises:
            ValueError: if the table name is unknown
            DdlError: if the DDL fails (e.g. the table does not exist)
        """
        if table not in INDEXES:
            raise ValueError(f"Unknown cache table: {table}")

        self._run_ddl("create_index", INDEXES[table])
        logger.debug(f"Created indexes for {table}")

    def setup_all(self, reset: bool = False) -> None:
        """Create every table, then every index."""
        for table in TABLES:
            self.create_table(table, reset=reset)
        for table in INDEXES:
            self.create_index(table)
        logger.info(f"Cache schema ready ({len(TABLES)} tables)")

    def table_exists(self, table: str) -> bool:
        cursor = self._conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name = ?",
            (table,),
        )
        try:
            return cursor.fetchone() is not None
        finally:
            cursor.close()
