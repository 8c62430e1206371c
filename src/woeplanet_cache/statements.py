"""
Named read queries with lazy compilation.

Each read operation owns one slot. A slot is compiled on first use by
preparing `EXPLAIN <sql>` against the live schema, and is tagged with the
schema generation it was compiled for. When the SchemaManager bumps the
generation, the next use of a stale slot recompiles it.

Not safe for concurrent callers: one slot per operation, not per caller.
"""

import logging
import re
import sqlite3
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from .errors import ExecuteError, FetchError, PrepareError

logger = logging.getLogger(__name__)

_PARAMETER_RE = re.compile(r":(\w+)")

GET_META = "get_meta"
GET_WOEID = "get_woeid"
GET_PARENT = "get_parent"
GET_CHILDREN = "get_children"
GET_ADMINS = "get_admins"
GET_COORDS = "get_coords"
GET_ANCESTORS = "get_ancestors"
GET_WOF = "get_wof"
GET_COUNTRY = "get_country"
GET_ALIASES = "get_aliases"
GET_PLACETYPE = "get_placetype"

QUERIES: dict[str, str] = {
    GET_META: "SELECT * FROM meta WHERE id = 1",
    GET_WOEID: "SELECT * FROM places WHERE woeid = :woeid",
    GET_PARENT: "SELECT parent FROM places WHERE woeid = :woeid",
    GET_CHILDREN: "SELECT children FROM children WHERE woeid = :woeid",
    GET_ADMINS: "SELECT * FROM admins WHERE woeid = :woeid",
    GET_COORDS: "SELECT * FROM coords WHERE woeid = :woeid",
    GET_ANCESTORS: "SELECT ancestors FROM ancestors WHERE woeid = :woeid",
    GET_WOF: "SELECT * FROM wof WHERE wofid = :wofid",
    GET_COUNTRY: "SELECT * FROM countries WHERE iso2 = :iso",
    GET_ALIASES: "SELECT * FROM aliases WHERE woeid = :woeid ORDER BY rowid",
    GET_PLACETYPE: "SELECT * FROM placetypes WHERE id = :id",
}


@dataclass
class CompiledStatement:
    name: str
    sql: str
    generation: int


class StatementCache:
    """
    Compiles and reuses the fixed set of named read queries.

    Args:
        conn: Open sqlite connection
        generation: Callable returning the current schema generation
    """

    def __init__(self, conn: sqlite3.Connection, generation: Callable[[], int]):
        self._conn = conn
        self._generation = generation
        self._slots: dict[str, Optional[CompiledStatement]] = {name: None for name in QUERIES}
        self.compile_count = 0

    def _compile(self, name: str) -> CompiledStatement:
        sql = QUERIES[name]
        # Bind NULL for every named parameter; EXPLAIN only compiles the plan.
        params = {key: None for key in _parameter_names(sql)}
        try:
            cursor = self._conn.execute(f"EXPLAIN {sql}", params)
            cursor.close()
        except sqlite3.Error as e:
            raise PrepareError(name, f"{sql}: {e}") from e

        self.compile_count += 1
        logger.debug(f"Compiled statement {name} for schema generation {self._generation()}")
        return CompiledStatement(name=name, sql=sql, generation=self._generation())

    def prepare(self, name: str) -> CompiledStatement:
        """Return the compiled statement for name, recompiling if stale."""
        if name not in self._slots:
            raise KeyError(f"Unknown statement: {name}")

        slot = self._slots[name]
        if slot is None or slot.generation != self._generation():
            slot = self._compile(name)
            self._slots[name] = slot
        return slot

    def is_compiled(self, name: str) -> bool:
        slot = self._slots.get(name)
        return slot is not None and slot.generation == self._generation()

    def _execute(self, name: str, params: Mapping[str, Any]) -> sqlite3.Cursor:
        statement = self.prepare(name)
        try:
            return self._conn.execute(statement.sql, dict(params))
        except sqlite3.Error as e:
            raise ExecuteError(name, str(e)) from e

    def fetch_one(self, name: str, params: Optional[Mapping[str, Any]] = None) -> Optional[sqlite3.Row]:
        """Execute a named query and return its first row, or None."""
        cursor = self._execute(name, params or {})
        try:
            return cursor.fetchone()
        except sqlite3.Error as e:
            raise FetchError(name, str(e)) from e
        finally:
            cursor.close()

    def fetch_all(self, name: str, params: Optional[Mapping[str, Any]] = None) -> list[sqlite3.Row]:
        """Execute a named query and return all rows."""
        cursor = self._execute(name, params or {})
        try:
            return cursor.fetchall()
        except sqlite3.Error as e:
            raise FetchError(name, str(e)) from e
        finally:
            cursor.close()


def _parameter_names(sql: str) -> list[str]:
    """Extract :name parameters from a query."""
    return list(dict.fromkeys(_PARAMETER_RE.findall(sql)))
