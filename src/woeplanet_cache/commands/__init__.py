"""CLI commands package: main click group and command registration."""

import click

from woeplanet_cache import __version__

from ._common import _configure_logging


@click.group()
@click.version_option(version=__version__)
@click.option("--db", "db_path", type=click.Path(dir_okay=False), default=None, help="Cache file path")
@click.option("-v", "--verbose", is_flag=True, help="Verbose output")
@click.pass_context
def main(ctx: click.Context, db_path: str | None, verbose: bool):
    """
    Inspect and maintain the WOE ID gazetteer cache.

    \b
    Commands:
        init       Create tables and indexes (optionally resetting them)
        status     Show row counts and the highest woeid seen
        place      Show a place by woeid
        ancestor   Find the nearest ancestor of a placetype
        country    Show a country by ISO alpha-2 code
        wof        Show the woeid mapped to a Who's On First id

    \b
    Examples:
        woeplanet-cache init
        woeplanet-cache --db /data/geoplanet.db status
        woeplanet-cache place 44418
        woeplanet-cache ancestor 44418 12
        woeplanet-cache country GB
    """
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db_path
    ctx.obj["verbose"] = verbose
    _configure_logging(verbose)


from .management import db_init, db_status

main.add_command(db_init)
main.add_command(db_status)

from .lookup import db_ancestor, db_country, db_place, db_wof

main.add_command(db_place)
main.add_command(db_ancestor)
main.add_command(db_country)
main.add_command(db_wof)
