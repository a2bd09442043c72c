from datetime import date, datetime, time
from enum import Enum
from typing import Any, Callable, Dict, Optional

from dbexplorer.core.schemas import DbType, Value


class ValueKind(str, Enum):
    """Tag of a dynamic field value."""

    NULL = "null"
    INTEGER = "integer"
    TEXT = "text"
    BOOLEAN = "boolean"
    FLOAT = "float"


def kind_of(value: Any) -> Optional[ValueKind]:
    """
    Classify a raw value into its kind, or None when it has no kind
    (lists, objects and anything else a JSON body may carry).
    """
    if value is None:
        return ValueKind.NULL
    # bool is a subclass of int, check it first
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int):
        return ValueKind.INTEGER
    if isinstance(value, float):
        return ValueKind.FLOAT
    if isinstance(value, str):
        return ValueKind.TEXT
    return None


# Which value kind a writable column accepts. Types missing here cannot be written.
COLUMN_KINDS: Dict[DbType, ValueKind] = {
    DbType.INTEGER: ValueKind.INTEGER,
    DbType.TEXT: ValueKind.TEXT,
    DbType.BOOLEAN: ValueKind.BOOLEAN,
    DbType.FLOAT: ValueKind.FLOAT,
}


def _as_text(raw: Any) -> str:
    if isinstance(raw, (bytes, bytearray, memoryview)):
        return bytes(raw).decode("utf-8", errors="replace")
    return raw if isinstance(raw, str) else str(raw)


def _as_timestamp(raw: Any) -> str:
    if isinstance(raw, (datetime, date, time)):
        return raw.isoformat()
    return _as_text(raw)


# How a non-null database value of each column type is read back
DECODERS: Dict[DbType, Callable[[Any], Value]] = {
    DbType.INTEGER: int,
    DbType.TEXT: _as_text,
    DbType.BOOLEAN: bool,
    DbType.FLOAT: float,
    DbType.TIMESTAMP: _as_timestamp,
    DbType.UUID: _as_text,
    DbType.OTHER: _as_text,
}

# Every column type must have a decoder
_missing = set(DbType) - set(DECODERS)
if _missing:
    raise RuntimeError(f"no decoder for column types: {sorted(t.value for t in _missing)}")


def decode_value(db_type: DbType, raw: Any) -> Value:
    if raw is None:
        return None
    return DECODERS[db_type](raw)
