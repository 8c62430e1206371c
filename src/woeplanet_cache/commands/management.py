"""Cache management commands: schema setup and status."""

from typing import Optional

import click

from ._common import _resolve_db_path


@click.command("init")
@click.option("--db", "db_path", type=click.Path(dir_okay=False), help="Cache file path")
@click.option("--reset", is_flag=True, help="Drop and recreate every table (discards all rows)")
@click.option("--no-index", is_flag=True, help="Create tables only; build indexes later")
def db_init(db_path: Optional[str], reset: bool, no_index: bool):
    """
    Create cache tables and indexes.

    \b
    Examples:
        woeplanet-cache init
        woeplanet-cache init --reset --no-index
    """
    from woeplanet_cache.cache import GeoplanetCache
    from woeplanet_cache.errors import CacheError
    from woeplanet_cache.schema import INDEXES, TABLES

    db_path_obj = _resolve_db_path(db_path)
    if reset:
        click.confirm(f"Drop every table in {db_path_obj}?", abort=True)

    cache = GeoplanetCache(db_path=db_path_obj, setup=False)
    try:
        for table in TABLES:
            cache.create_table(table, reset=reset)
        if not no_index:
            for table in INDEXES:
                cache.create_index(table)
    except CacheError as e:
        raise click.ClickException(str(e))
    finally:
        cache.close()

    click.echo(f"Initialized {len(TABLES)} tables in {db_path_obj}")


@click.command("status")
@click.option("--db", "db_path", type=click.Path(dir_okay=False), help="Cache file path")
def db_status(db_path: Optional[str]):
    """
    Show cache status and statistics.

    \b
    Examples:
        woeplanet-cache status
        woeplanet-cache status --db /path/to/geoplanet-cache.db
    """
    from woeplanet_cache.cache import GeoplanetCache

    db_path_obj = _resolve_db_path(db_path)
    if not db_path_obj.exists():
        raise click.ClickException(f"No cache at {db_path_obj}; run 'woeplanet-cache init' first")

    cache = GeoplanetCache(db_path=db_path_obj, setup=False)
    try:
        stats = cache.get_stats()
    finally:
        cache.close()

    click.echo("\nGazetteer Cache Status")
    click.echo("=" * 40)
    click.echo(f"Path: {stats['path']}")
    click.echo(f"Size: {stats['size_bytes'] / 1024 / 1024:.2f} MB")
    click.echo(f"Max woeid: {stats['maxwoeid']:,}")

    click.echo(f"\n{'Table':<20} {'Rows':>15}")
    click.echo("-" * 36)
    for table, count in stats["tables"].items():
        rows = "missing" if count is None else f"{count:,}"
        click.echo(f"{table:<20} {rows:>15}")
