"""
Ancestor-chain resolution over the `places.parent` links.

The walk stops at the first place (starting with the place itself) whose
placetype matches. Gaps in the hierarchy are logged and reported as tagged
results rather than raised, so incomplete upstream data does not abort a
bulk ingestion run.

There is no cycle detection: a cyclic parent chain never terminates and
must be prevented by whoever writes the places.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from .models import PlaceRecord
from .stores import PlaceStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Found:
    place: PlaceRecord


@dataclass(frozen=True)
class NoParent:
    """Reached a root without finding the placetype."""

    place: PlaceRecord


@dataclass(frozen=True)
class DanglingParent:
    """A parent link points at a woeid with no row."""

    woeid: int
    placetype: int
    missing: int


@dataclass(frozen=True)
class UnknownPlace:
    """The starting woeid itself has no row."""

    woeid: int


AncestorResult = Union[Found, NoParent, DanglingParent, UnknownPlace]


def _placetype_matches(place: PlaceRecord, placetype: int) -> bool:
    return place.placetype is not None and int(place.placetype) == int(placetype)


class HierarchyResolver:
    def __init__(self, places: PlaceStore):
        self._places = places

    def resolve(self, woeid: int, placetype: int) -> AncestorResult:
        """Walk up from woeid until a place of the given placetype is found."""
        place = self._places.get(woeid)
        if place is None:
            logger.warning(f"find_ancestor: start WOEID {woeid} is not in the cache")
            return UnknownPlace(woeid=woeid)

        while True:
            if _placetype_matches(place, placetype):
                return Found(place=place)

            if not place.parent:
                logger.warning(
                    f"find_ancestor: no more parents above WOEID {place.woeid} "
                    f"(start WOEID {woeid}, placetype {placetype})"
                )
                return NoParent(place=place)

            parent = self._places.get(place.parent)
            if parent is None:
                logger.warning(f"find_ancestor: start WOEID {woeid}, placetype {placetype}")
                logger.warning(f"find_ancestor: no match for parent WOEID {place.parent}")
                return DanglingParent(woeid=woeid, placetype=placetype, missing=place.parent)

            place = parent

    def find_ancestor(self, woeid: int, placetype: int) -> Optional[PlaceRecord]:
        """Return the nearest place of the given placetype, or None."""
        result = self.resolve(woeid, placetype)
        if isinstance(result, Found):
            return result.place
        return None
