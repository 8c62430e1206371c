"""Tests for StatementCache: lazy compilation, reuse, schema-change recovery."""

import pytest

from woeplanet_cache.cache import GeoplanetCache
from woeplanet_cache.errors import PrepareError
from woeplanet_cache.statements import GET_COUNTRY, GET_WOEID, QUERIES, _parameter_names


def test_compiles_lazily(cache: GeoplanetCache):
    assert cache.statements.compile_count == 0
    assert not cache.statements.is_compiled(GET_WOEID)

    cache.get_woeid(1)

    assert cache.statements.is_compiled(GET_WOEID)
    assert cache.statements.compile_count == 1


def test_reuses_compiled_statement(cache: GeoplanetCache):
    cache.get_woeid(1)
    cache.get_woeid(2)
    cache.get_woeid(3)
    assert cache.statements.compile_count == 1


def test_schema_change_forces_recompile(cache: GeoplanetCache):
    cache.get_woeid(1)
    cache.get_country("GB")
    assert cache.statements.compile_count == 2

    cache.create_index("places")

    assert not cache.statements.is_compiled(GET_WOEID)
    assert not cache.statements.is_compiled(GET_COUNTRY)
    cache.get_woeid(1)
    assert cache.statements.compile_count == 3


def test_reads_survive_table_reset(cache: GeoplanetCache):
    """Reads compiled before a DROP/CREATE keep working against the new table."""
    cache.insert_place({"woeid": 10, "name": "Before"})
    assert cache.get_woeid(10).name == "Before"

    cache.create_table("places", reset=True)
    cache.create_index("places")
    assert cache.get_woeid(10) is None

    cache.insert_place({"woeid": 10, "name": "After"})
    assert cache.get_woeid(10).name == "After"


def test_missing_table_raises_prepare_error(bare_cache: GeoplanetCache):
    with pytest.raises(PrepareError) as excinfo:
        bare_cache.get_woeid(1)
    assert excinfo.value.operation == GET_WOEID
    assert "places" in excinfo.value.diagnostic


def test_recovers_once_table_exists(bare_cache: GeoplanetCache):
    with pytest.raises(PrepareError):
        bare_cache.get_woeid(1)
    bare_cache.create_table("places")
    assert bare_cache.get_woeid(1) is None


def test_unknown_statement_raises_key_error(cache: GeoplanetCache):
    with pytest.raises(KeyError):
        cache.statements.prepare("get_siblings")


def test_every_query_compiles_against_full_schema(cache: GeoplanetCache):
    for name in QUERIES:
        cache.statements.prepare(name)
    assert cache.statements.compile_count == len(QUERIES)


def test_no_open_transaction_after_reads(cache: GeoplanetCache):
    cache.get_woeid(1)
    cache.get_meta()
    assert not cache.get_connection().in_transaction


@pytest.mark.parametrize(
    "sql, expected",
    [
        ("SELECT * FROM places WHERE woeid=:woeid", ["woeid"]),
        ("SELECT * FROM places WHERE woeid IN (:a)", ["a"]),
        ("SELECT * FROM places WHERE lat > :lo AND lat < :hi AND lon > :lo", ["lo", "hi"]),
        ("SELECT * FROM meta", []),
    ],
)
def test_parameter_names(sql, expected):
    assert _parameter_names(sql) == expected
