import re
from typing import Mapping, Optional
from urllib.parse import parse_qs, urlsplit

from dbexplorer.core.schemas import PathShape, RequestParams


def _int(raw: Optional[str]) -> Optional[int]:
    """Parse a query/path value; anything unusable counts as not provided."""
    # Plain ASCII digits only, no spaces, underscores or other scripts
    if raw is None or not re.fullmatch(r"-?[0-9]+", raw):
        return None
    return int(raw)


def _non_negative_int(raw: Optional[str]) -> Optional[int]:
    value = _int(raw)
    return value if value is not None and value >= 0 else None


def _first(query: Mapping, key: str) -> Optional[str]:
    value = query.get(key)
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def parse_request(path: str, query: Optional[Mapping] = None) -> RequestParams:
    """
    Classify a request path and read its parameters.

    Args:
        path: URL path; may carry a query string when `query` is not given.
        query: Query parameters (plain or multi-valued mapping).

    Returns:
        RequestParams with limit/offset/id left at "not provided" when
        missing or malformed. Defaults are applied by the caller.

    Example:
        parse_request("/users?limit=5&offset=7")
        -> RequestParams(shape=TABLE, table="users", limit=5, offset=7)
    """
    if query is None:
        parts = urlsplit(path)
        path, query = parts.path, parse_qs(parts.query)

    stripped = path[1:] if path.startswith("/") else path
    segments = stripped.split("/") if stripped else []

    if not segments:
        return RequestParams(shape=PathShape.ROOT)

    if len(segments) == 1:
        return RequestParams(
            shape=PathShape.TABLE,
            table=segments[0],
            limit=_non_negative_int(_first(query, "limit")) or 0,
            offset=_non_negative_int(_first(query, "offset")) or 0,
        )

    if len(segments) == 2:
        return RequestParams(
            shape=PathShape.RECORD,
            table=segments[0],
            id=_int(segments[1]),
        )

    return RequestParams(shape=PathShape.INVALID)
