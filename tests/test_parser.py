import pytest

from dbexplorer.core.parser import parse_request
from dbexplorer.core.schemas import PathShape, RequestParams


def test_root():
    assert parse_request("/") == RequestParams()
    assert parse_request("/").shape is PathShape.ROOT


def test_table_limit_offset():
    params = parse_request("/t?limit=5&offset=7")
    assert params == RequestParams(shape=PathShape.TABLE, table="t", limit=5, offset=7)


def test_table_limit_without_offset():
    params = parse_request("/t?limit=5")
    assert params == RequestParams(shape=PathShape.TABLE, table="t", limit=5, offset=0)


def test_offset_without_limit():
    params = parse_request("/t?offset=7")
    assert params.limit == 0
    assert params.offset == 7


def test_table():
    assert parse_request("/t") == RequestParams(shape=PathShape.TABLE, table="t")


def test_table_id():
    assert parse_request("/t/15") == RequestParams(shape=PathShape.RECORD, table="t", id=15)


def test_separate_query_mapping():
    params = parse_request("/t", {"limit": "3", "offset": "1"})
    assert (params.limit, params.offset) == (3, 1)

    # parse_qs style multi-valued mapping
    params = parse_request("/t", {"limit": ["4"]})
    assert params.limit == 4


@pytest.mark.parametrize("query", ["limit=abc", "limit=-1", "limit=", "limit=1.5"])
def test_malformed_limit_is_not_provided(query: str):
    assert parse_request(f"/t?{query}").limit == 0


@pytest.mark.parametrize("path", ["/t/abc", "/t/", "/t/1.5"])
def test_malformed_id_is_not_provided(path: str):
    params = parse_request(path)
    assert params.shape is PathShape.RECORD
    assert params.id is None


def test_deep_path_is_invalid():
    assert parse_request("/t/1/extra").shape is PathShape.INVALID


@pytest.mark.parametrize("raw", ["1_0", " 5", "5 ", "٣", "+5", "0x10"])
def test_only_plain_ascii_digits_are_numbers(raw: str):
    assert parse_request("/t", {"limit": raw}).limit == 0
    assert parse_request(f"/t/{raw}").id is None


def test_negative_id_is_parsed():
    assert parse_request("/t/-3").id == -3
