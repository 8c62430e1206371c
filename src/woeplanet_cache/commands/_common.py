"""Shared utilities used across CLI command modules."""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import click


def _configure_logging(verbose: bool) -> None:
    """Configure logging for the gazetteer cache."""
    level = logging.DEBUG if verbose else logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
        force=True,
    )

    for logger_name in [
        "woeplanet_cache",
        "woeplanet_cache.cache",
        "woeplanet_cache.codec",
        "woeplanet_cache.schema",
        "woeplanet_cache.statements",
        "woeplanet_cache.stores",
        "woeplanet_cache.hierarchy",
    ]:
        logging.getLogger(logger_name).setLevel(level)


def _resolve_db_path(db_path: Optional[str] = None) -> Path:
    """Resolve the cache path from an explicit --db value, the group option, or the default."""
    if db_path is not None:
        return Path(db_path)
    ctx = click.get_current_context(silent=True)
    group_db = ctx.obj.get("db_path") if ctx and ctx.obj else None
    if group_db is not None:
        return Path(group_db)
    from woeplanet_cache.cache import default_db_path
    return default_db_path()


def _echo_json(value: Any) -> None:
    click.echo(json.dumps(value, indent=2, ensure_ascii=False))
