"""
Pydantic records for the gazetteer cache tables.

Each record mirrors one table's declared field set. Unknown fields are
rejected, and every field except the table key is optional so that partial
documents from the ingestion pipeline validate. The fields a caller actually
supplied are the columns a write touches (see model_dump_for_db).
"""

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class CacheRecord(BaseModel):
    """Base for all table records: strict field set, partial documents allowed."""

    model_config = ConfigDict(extra="forbid")

    def model_dump_for_db(self) -> dict[str, Any]:
        """Dump only the fields that were explicitly set, ready for packing/binding."""
        return self.model_dump(exclude_unset=True)


class Geometry(BaseModel):
    """GeoJSON-shaped geometry; extra members such as bbox are preserved."""

    model_config = ConfigDict(extra="allow")

    type: str = "Point"
    coordinates: Any = Field(default_factory=lambda: [0.0, 0.0])

    @classmethod
    def default_point(cls) -> "Geometry":
        """Geometry assigned to places whose document carries none."""
        return cls(type="Point", coordinates=[0.0, 0.0])


# Alias entries and history events come from upstream source files whose
# shape varies between releases, so they are kept as plain mappings.
AliasEntry = dict[str, Any]
HistoryEntry = dict[str, Any]


class PlaceRecord(CacheRecord):
    """A gazetteer place (row in `places`)."""

    woeid: int = Field(description="Unique WOE ID")
    iso: Optional[str] = None
    name: Optional[str] = None
    lang: Optional[str] = None
    placetype: Optional[int] = Field(default=None, description="Placetype id")
    placetypename: Optional[str] = Field(default=None, description="Placetype display name")
    parent: Optional[int] = Field(default=None, description="Parent WOE ID; 0 or None for roots")

    lon: Optional[float] = None
    lat: Optional[float] = None
    swlon: Optional[float] = None
    swlat: Optional[float] = None
    nelon: Optional[float] = None
    nelat: Optional[float] = None

    adjacent: Optional[list[int]] = Field(default=None, description="Adjacent WOE IDs")
    alias_q: Optional[list[AliasEntry]] = None
    alias_v: Optional[list[AliasEntry]] = None
    alias_a: Optional[list[AliasEntry]] = None
    alias_s: Optional[list[AliasEntry]] = None
    alias_p: Optional[list[AliasEntry]] = None

    state: Optional[int] = None
    county: Optional[int] = None
    localadmin: Optional[int] = None
    country: Optional[int] = None
    continent: Optional[int] = None

    concordance: Optional[dict[str, Union[int, str]]] = Field(
        default=None, description="External scheme -> id for the same place"
    )
    supercedes: Optional[list[int]] = None
    superceded: Optional[list[int]] = None
    history: Optional[list[HistoryEntry]] = None
    updated: Optional[int] = Field(default=None, description="Unix time of the last write")
    geometry: Optional[Geometry] = None

    @property
    def is_root(self) -> bool:
        """True if this place has no parent link."""
        return not self.parent


class AdminRecord(CacheRecord):
    """Administrative ancestry snapshot for a place (row in `admins`)."""

    woeid: int
    state: Optional[int] = None
    county: Optional[int] = None
    localadmin: Optional[int] = None
    country: Optional[int] = None
    continent: Optional[int] = None


class CountryRecord(CacheRecord):
    """Row in `countries`; iso2 is unique."""

    woeid: int
    name: Optional[str] = None
    iso2: Optional[str] = None
    iso3: Optional[str] = None


class WofRecord(CacheRecord):
    """Who's On First id to WOE ID mapping (row in `wof`)."""

    wofid: int
    woeid: Optional[int] = None


class AliasRecord(CacheRecord):
    """Row in `aliases`. Several rows may share a woeid."""

    woeid: int
    name: Optional[str] = None
    type: Optional[str] = None
    lang: Optional[str] = None


class PlacetypeRecord(CacheRecord):
    """Row in `placetypes`."""

    id: int
    name: Optional[str] = None
    descr: Optional[str] = None
    shortname: Optional[str] = None
    tag: Optional[str] = None


class CoordsRecord(CacheRecord):
    """Denormalized coordinate snapshot (row in `coords`)."""

    woeid: int
    lon: Optional[float] = None
    lat: Optional[float] = None
    swlon: Optional[float] = None
    swlat: Optional[float] = None
    nelon: Optional[float] = None
    nelat: Optional[float] = None


class ChildrenRecord(CacheRecord):
    woeid: int
    children: Optional[list[int]] = None


class AncestorsRecord(CacheRecord):
    woeid: int
    ancestors: Optional[list[int]] = None


class MetaRecord(CacheRecord):
    """The singleton bookkeeping row."""

    id: int = 1
    maxwoeid: Optional[int] = None
