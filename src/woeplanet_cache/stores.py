"""
Per-table upsert and point-read accessors.

All writers share one contract: validate the document into the table's
record, pack composite fields, and run a single INSERT OR REPLACE touching
exactly the supplied fields, bound by their declared storage types.
Readers go through the StatementCache and return a structured record, or
None when the key is absent.
"""

import logging
import sqlite3
import time
from typing import Any, Mapping, Optional, Union

from . import codec
from .errors import ExecuteError, FetchError, wrap_statement_error
from .models import (
    AdminRecord,
    AliasRecord,
    AncestorsRecord,
    CacheRecord,
    ChildrenRecord,
    CoordsRecord,
    CountryRecord,
    Geometry,
    MetaRecord,
    PlaceRecord,
    PlacetypeRecord,
    WofRecord,
)
from .statements import (
    GET_ADMINS,
    GET_ALIASES,
    GET_ANCESTORS,
    GET_CHILDREN,
    GET_COORDS,
    GET_COUNTRY,
    GET_META,
    GET_PARENT,
    GET_PLACETYPE,
    GET_WOEID,
    GET_WOF,
    StatementCache,
)

logger = logging.getLogger(__name__)

Document = Union[CacheRecord, Mapping[str, Any]]


class TableStore:
    """Shared write/decode plumbing for a single cache table."""

    table: str = ""
    record_type: type[CacheRecord] = CacheRecord

    def __init__(self, conn: sqlite3.Connection, statements: StatementCache):
        self._conn = conn
        self._statements = statements

    def _validate(self, doc: Document) -> CacheRecord:
        """Validate a mapping into this table's record; unknown fields are rejected."""
        if isinstance(doc, self.record_type):
            return doc
        if isinstance(doc, CacheRecord):
            doc = doc.model_dump_for_db()
        return self.record_type.model_validate(doc)

    def _bind(self, operation: str, fields: Mapping[str, Any]) -> dict[str, Any]:
        packed = codec.pack(self.table, fields)
        try:
            return codec.bind(self.table, packed)
        except (KeyError, ValueError, TypeError) as e:
            raise ExecuteError(operation, f"cannot bind {self.table} field: {e}") from e

    def _write(self, operation: str, sql: str, params: Mapping[str, Any]) -> int:
        """Execute one write statement and return its rowcount."""
        try:
            cursor = self._conn.execute(sql, dict(params))
        except sqlite3.Error as e:
            raise wrap_statement_error(operation, e) from e
        try:
            return cursor.rowcount
        finally:
            cursor.close()

    def _upsert(self, operation: str, fields: Mapping[str, Any]) -> None:
        if not fields:
            raise ExecuteError(operation, "empty document")
        params = self._bind(operation, fields)
        columns = list(params)
        sql = (
            f"INSERT OR REPLACE INTO {self.table} ({', '.join(columns)}) "
            f"VALUES ({', '.join(':' + c for c in columns)})"
        )
        self._write(operation, sql, params)

    def _decode(self, operation: str, row: Mapping[str, Any]) -> CacheRecord:
        """Turn a fetched row into a record, unpacking composite fields."""
        try:
            doc = codec.unpack(self.table, codec.row_to_doc(self.table, row))
            return self.record_type.model_validate(doc)
        except ValueError as e:
            raise FetchError(operation, f"undecodable {self.table} row: {e}") from e

    def insert(self, doc: Document) -> None:
        """Upsert a document into this table."""
        record = self._validate(doc)
        self._upsert(f"insert_{self.table}", record.model_dump_for_db())


class PlaceStore(TableStore):
    table = "places"
    record_type = PlaceRecord

    def insert(self, doc: Document) -> None:
        """
        Upsert a place, replacing any existing row with the same woeid.

        A missing geometry defaults to Point(0, 0); `updated` is always
        stamped with the current time.
        """
        record = self._validate(doc)
        fields = record.model_dump_for_db()
        if fields.get("geometry") is None:
            fields["geometry"] = Geometry.default_point().model_dump()
        fields["updated"] = int(time.time())
        self._upsert("insert_place", fields)

    def update(self, doc: Document) -> bool:
        """
        Update the supplied fields of an existing place, keyed by woeid.

        An explicit null geometry is replaced with Point(0, 0), as on insert.

        Returns:
            True if a row with that woeid existed
        """
        record = self._validate(doc)
        fields = record.model_dump_for_db()
        woeid = fields.pop("woeid")
        if "geometry" in fields and fields["geometry"] is None:
            fields["geometry"] = Geometry.default_point().model_dump()
        fields["updated"] = int(time.time())

        params = self._bind("update_place", fields)
        assignments = ", ".join(f"{column} = :{column}" for column in params)
        params["woeid"] = int(woeid)
        sql = f"UPDATE places SET {assignments} WHERE woeid = :woeid"
        return self._write("update_place", sql, params) > 0

    def get(self, woeid: int) -> Optional[PlaceRecord]:
        row = self._statements.fetch_one(GET_WOEID, {"woeid": int(woeid)})
        if row is None:
            return None
        return self._decode(GET_WOEID, row)

    def get_parent(self, woeid: int) -> Optional[int]:
        """
        Return the parent woeid of a place.

        A root (NULL or 0 parent) gives 0; an unknown woeid gives None.
        """
        row = self._statements.fetch_one(GET_PARENT, {"woeid": int(woeid)})
        if row is None:
            return None
        return row["parent"] or 0


class AdminStore(TableStore):
    table = "admins"
    record_type = AdminRecord

    def get(self, woeid: int) -> Optional[AdminRecord]:
        row = self._statements.fetch_one(GET_ADMINS, {"woeid": int(woeid)})
        return self._decode(GET_ADMINS, row) if row is not None else None


class CountryStore(TableStore):
    table = "countries"
    record_type = CountryRecord

    def get(self, iso2: str) -> Optional[CountryRecord]:
        """Look up a country by its ISO 3166-1 alpha-2 code."""
        row = self._statements.fetch_one(GET_COUNTRY, {"iso": iso2})
        return self._decode(GET_COUNTRY, row) if row is not None else None


class WofStore(TableStore):
    table = "wof"
    record_type = WofRecord

    def get(self, wofid: int) -> Optional[WofRecord]:
        row = self._statements.fetch_one(GET_WOF, {"wofid": int(wofid)})
        return self._decode(GET_WOF, row) if row is not None else None


class AliasStore(TableStore):
    table = "aliases"
    record_type = AliasRecord

    def get_all(self, woeid: int) -> list[AliasRecord]:
        rows = self._statements.fetch_all(GET_ALIASES, {"woeid": int(woeid)})
        return [self._decode(GET_ALIASES, row) for row in rows]


class PlacetypeStore(TableStore):
    table = "placetypes"
    record_type = PlacetypeRecord

    def get(self, placetype_id: int) -> Optional[PlacetypeRecord]:
        row = self._statements.fetch_one(GET_PLACETYPE, {"id": int(placetype_id)})
        return self._decode(GET_PLACETYPE, row) if row is not None else None


class CoordsStore(TableStore):
    table = "coords"
    record_type = CoordsRecord

    def get(self, woeid: int) -> Optional[CoordsRecord]:
        row = self._statements.fetch_one(GET_COORDS, {"woeid": int(woeid)})
        return self._decode(GET_COORDS, row) if row is not None else None


class WoeidListStore(TableStore):
    """A table holding one packed list of woeids per woeid."""

    column: str = ""
    statement: str = ""

    def get(self, woeid: int) -> Optional[list[int]]:
        """Return the stored woeid list, or None if there is no row."""
        row = self._statements.fetch_one(self.statement, {"woeid": int(woeid)})
        if row is None:
            return None
        value = row[self.column]
        if value is None:
            return []
        try:
            return [int(w) for w in codec.unpack_value(value)]
        except (TypeError, ValueError) as e:
            raise FetchError(self.statement, f"undecodable {self.column} list: {e}") from e


class ChildrenStore(WoeidListStore):
    table = "children"
    record_type = ChildrenRecord
    column = "children"
    statement = GET_CHILDREN


class AncestorsStore(WoeidListStore):
    table = "ancestors"
    record_type = AncestorsRecord
    column = "ancestors"
    statement = GET_ANCESTORS


class MetaStore(TableStore):
    """
    The singleton `meta` row holding the highest woeid seen so far.

    The counter is a ratchet: refresh() only ever raises it.
    """

    table = "meta"
    record_type = MetaRecord

    def get(self) -> Optional[MetaRecord]:
        row = self._statements.fetch_one(GET_META)
        return self._decode(GET_META, row) if row is not None else None

    def get_maxwoeid(self) -> int:
        meta = self.get()
        if meta is None or meta.maxwoeid is None:
            return 0
        return int(meta.maxwoeid)

    def compare_and_set(self, expected: Optional[int], new: int) -> bool:
        """
        Set maxwoeid to new only if the stored value equals expected.

        An expected value of None means "no meta row yet".

        Returns:
            True if the row was written
        """
        if expected is None:
            sql = (
                "INSERT INTO meta (id, maxwoeid) SELECT 1, :new "
                "WHERE NOT EXISTS (SELECT 1 FROM meta WHERE id = 1)"
            )
            params = {"new": int(new)}
        else:
            sql = "UPDATE meta SET maxwoeid = :new WHERE id = 1 AND maxwoeid = :expected"
            params = {"new": int(new), "expected": int(expected)}
        return self._write("compare_and_set", sql, params) > 0

    def refresh(self, woeid: int) -> bool:
        """
        Raise maxwoeid to woeid if it is higher than the stored value.

        Returns:
            True if the counter moved
        """
        woeid = int(woeid)
        meta = self.get()
        if meta is None:
            logger.info(f"refresh_meta: no previous value, setting maxwoeid to {woeid}")
            return self.compare_and_set(None, woeid)

        moved = self._write(
            "refresh_meta",
            "UPDATE meta SET maxwoeid = :woeid WHERE id = 1 AND (maxwoeid IS NULL OR maxwoeid < :woeid)",
            {"woeid": woeid},
        ) > 0
        if moved:
            logger.info(f"refresh_meta: setting maxwoeid to {woeid}")
        return moved
