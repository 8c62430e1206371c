"""Lookup commands: read places, ancestors, countries and WOF mappings."""

from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator, Optional

import click

from ._common import _echo_json, _resolve_db_path

if TYPE_CHECKING:
    from woeplanet_cache.cache import GeoplanetCache


@contextmanager
def _open_cache(db_path: Optional[str]) -> Iterator["GeoplanetCache"]:
    from woeplanet_cache.cache import GeoplanetCache
    from woeplanet_cache.errors import CacheError

    db_path_obj = _resolve_db_path(db_path)
    if not db_path_obj.exists():
        raise click.ClickException(f"No cache at {db_path_obj}; run 'woeplanet-cache init' first")

    cache = GeoplanetCache(db_path=db_path_obj, setup=False)
    try:
        yield cache
    except CacheError as e:
        raise click.ClickException(str(e))
    finally:
        cache.close()


@click.command("place")
@click.argument("woeid", type=int)
@click.option("--db", "db_path", type=click.Path(dir_okay=False), help="Cache file path")
def db_place(woeid: int, db_path: Optional[str]):
    """
    Show a place by woeid as JSON.

    \b
    Examples:
        woeplanet-cache place 44418
    """
    with _open_cache(db_path) as cache:
        place = cache.get_woeid(woeid)
    if place is None:
        raise click.ClickException(f"WOEID {woeid} not found")
    _echo_json(place.model_dump(exclude_none=True))


@click.command("ancestor")
@click.argument("woeid", type=int)
@click.argument("placetype", type=int)
@click.option("--db", "db_path", type=click.Path(dir_okay=False), help="Cache file path")
def db_ancestor(woeid: int, placetype: int, db_path: Optional[str]):
    """
    Find the nearest place of PLACETYPE at or above WOEID.

    \b
    Examples:
        woeplanet-cache ancestor 44418 12
    """
    from woeplanet_cache.hierarchy import DanglingParent, Found, NoParent, UnknownPlace

    with _open_cache(db_path) as cache:
        result = cache.resolve_ancestor(woeid, placetype)

    if isinstance(result, Found):
        _echo_json(result.place.model_dump(exclude_none=True))
    elif isinstance(result, NoParent):
        raise click.ClickException(
            f"No placetype {placetype} above WOEID {woeid} (root reached at {result.place.woeid})"
        )
    elif isinstance(result, DanglingParent):
        raise click.ClickException(f"Parent WOEID {result.missing} is not in the cache")
    elif isinstance(result, UnknownPlace):
        raise click.ClickException(f"WOEID {woeid} not found")


@click.command("country")
@click.argument("iso2")
@click.option("--db", "db_path", type=click.Path(dir_okay=False), help="Cache file path")
def db_country(iso2: str, db_path: Optional[str]):
    """
    Show a country by ISO 3166-1 alpha-2 code.

    \b
    Examples:
        woeplanet-cache country GB
    """
    with _open_cache(db_path) as cache:
        country = cache.get_country(iso2.upper())
    if country is None:
        raise click.ClickException(f"Country {iso2} not found")
    _echo_json(country.model_dump(exclude_none=True))


@click.command("wof")
@click.argument("wofid", type=int)
@click.option("--db", "db_path", type=click.Path(dir_okay=False), help="Cache file path")
def db_wof(wofid: int, db_path: Optional[str]):
    """Show the woeid mapped to a Who's On First id."""
    with _open_cache(db_path) as cache:
        mapping = cache.get_wof(wofid)
    if mapping is None:
        raise click.ClickException(f"WOF id {wofid} not found")
    _echo_json(mapping.model_dump(exclude_none=True))
