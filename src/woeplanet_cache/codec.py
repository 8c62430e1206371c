"""
Storage codec for cache tables.

Declares the primitive storage type of every column, packs composite fields
(lists, maps, geometry) into a single TEXT scalar on the way in and unpacks
them on the way out. Only fields present in the document/row are touched.

Packed values use a versioned JSON envelope: {"v": 1, "d": <value>}.
"""

import json
import logging
from enum import Enum
from typing import Any, Mapping

logger = logging.getLogger(__name__)

CODEC_VERSION = 1


class StorageType(str, Enum):
    INTEGER = "integer"
    REAL = "real"
    TEXT = "text"


_I = StorageType.INTEGER
_R = StorageType.REAL
_T = StorageType.TEXT

FIELDS: dict[str, dict[str, StorageType]] = {
    "meta": {"id": _I, "maxwoeid": _I},
    "places": {
        "woeid": _I,
        "iso": _T,
        "name": _T,
        "lang": _T,
        "placetype": _I,
        "placetypename": _T,
        "parent": _I,
        "lon": _R,
        "lat": _R,
        "swlon": _R,
        "swlat": _R,
        "nelon": _R,
        "nelat": _R,
        "adjacent": _T,
        "alias_q": _T,
        "alias_v": _T,
        "alias_a": _T,
        "alias_s": _T,
        "alias_p": _T,
        "state": _I,
        "county": _I,
        "localadmin": _I,
        "country": _I,
        "continent": _I,
        "concordance": _T,
        "supercedes": _T,
        "superceded": _T,
        "history": _T,
        "updated": _I,
        "geometry": _T,
    },
    "adjacencies": {"woeid": _I, "neighbour": _I},
    "aliases": {"woeid": _I, "name": _T, "type": _T, "lang": _T},
    "placetypes": {"id": _I, "name": _T, "descr": _T, "shortname": _T, "tag": _T},
    "admins": {
        "woeid": _I,
        "state": _I,
        "county": _I,
        "localadmin": _I,
        "country": _I,
        "continent": _I,
    },
    "children": {"woeid": _I, "children": _T},
    "ancestors": {"woeid": _I, "ancestors": _T},
    "coords": {
        "woeid": _I,
        "lon": _R,
        "lat": _R,
        "swlon": _R,
        "swlat": _R,
        "nelon": _R,
        "nelat": _R,
    },
    "countries": {"woeid": _I, "name": _T, "iso2": _T, "iso3": _T},
    "wof": {"wofid": _I, "woeid": _I},
}

PACKED_FIELDS: dict[str, tuple[str, ...]] = {
    "places": (
        "adjacent",
        "alias_q",
        "alias_v",
        "alias_a",
        "alias_s",
        "alias_p",
        "concordance",
        "supercedes",
        "superceded",
        "history",
        "geometry",
    ),
    "children": ("children",),
    "ancestors": ("ancestors",),
}

_COERCE = {
    StorageType.INTEGER: int,
    StorageType.REAL: float,
    StorageType.TEXT: str,
}


def pack_value(value: Any) -> str:
    """Serialize a structured value into the versioned envelope."""
    return json.dumps({"v": CODEC_VERSION, "d": value}, separators=(",", ":"), ensure_ascii=False)


def unpack_value(text: str) -> Any:
    """
    Deserialize a packed value.

    Bare JSON without an envelope is accepted and returned as-is.

    Raises:
        ValueError: if the text is not JSON or carries an unknown version
    """
    decoded = json.loads(text)
    if isinstance(decoded, dict) and set(decoded) == {"v", "d"}:
        if decoded["v"] != CODEC_VERSION:
            raise ValueError(f"Unsupported packed value version: {decoded['v']}")
        return decoded["d"]
    logger.debug(f"Unpacked bare JSON value without a version envelope: {text[:40]}")
    return decoded


def pack(table: str, doc: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of doc with the table's composite fields packed.

    Values that are already strings are assumed packed and left alone.
    """
    packed = dict(doc)
    for field in PACKED_FIELDS.get(table, ()):
        value = packed.get(field)
        if value is not None and not isinstance(value, str):
            packed[field] = pack_value(value)
    return packed


def unpack(table: str, row: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of row with the table's composite fields unpacked."""
    unpacked = dict(row)
    for field in PACKED_FIELDS.get(table, ()):
        value = unpacked.get(field)
        if isinstance(value, str):
            unpacked[field] = unpack_value(value)
    return unpacked


def bind(table: str, doc: Mapping[str, Any]) -> dict[str, Any]:
    """
    Coerce each value to its declared storage type for parameter binding.

    Raises:
        KeyError: if the table or a field is not declared
        ValueError, TypeError: if a value cannot be coerced
    """
    types = FIELDS[table]
    bound: dict[str, Any] = {}
    for field, value in doc.items():
        storage_type = types[field]
        bound[field] = None if value is None else _COERCE[storage_type](value)
    return bound


def row_to_doc(table: str, row: Mapping[str, Any]) -> dict[str, Any]:
    """Keep only the table's declared, non-null columns of a fetched row."""
    types = FIELDS[table]
    return {key: row[key] for key in row.keys() if key in types and row[key] is not None}
