import math
from typing import Any, Mapping

from dbexplorer.core.errors import MissingRequiredField, TypeMismatch, UnsupportedColumnType
from dbexplorer.core.schemas import ColumnInfo, GenericRecord, TableSchema, Value
from dbexplorer.core.values import COLUMN_KINDS, ValueKind, kind_of

_TRUE_WORDS = {"true", "t", "yes", "y", "on", "1"}
_FALSE_WORDS = {"false", "f", "no", "n", "off", "0"}


def _from_text(column: ColumnInfo, expected: ValueKind, raw: str) -> Value:
    """Parse a form field (always a string) into the column's kind."""
    try:
        if expected is ValueKind.TEXT:
            return raw
        if expected is ValueKind.INTEGER:
            return int(raw.strip())
        if expected is ValueKind.FLOAT:
            return _finite(column, float(raw.strip()))
        if expected is ValueKind.BOOLEAN:
            word = raw.strip().lower()
            if word in _TRUE_WORDS:
                return True
            if word in _FALSE_WORDS:
                return False
    except ValueError:
        pass
    raise TypeMismatch(column.name, expected.value)


def _finite(column: ColumnInfo, value: float) -> float:
    # NaN and infinities have no JSON form, a stored one breaks every read
    if not math.isfinite(value):
        raise TypeMismatch(column.name, ValueKind.FLOAT.value)
    return value


def _check_kind(column: ColumnInfo, expected: ValueKind, raw: Any) -> Value:
    actual = kind_of(raw)
    if actual is ValueKind.FLOAT and expected is ValueKind.FLOAT:
        return _finite(column, raw)
    if actual is expected:
        return raw
    # Integers widen into float columns
    if expected is ValueKind.FLOAT and actual is ValueKind.INTEGER:
        try:
            return float(raw)
        except OverflowError:
            raise TypeMismatch(column.name, expected.value)
    raise TypeMismatch(column.name, expected.value)


def coerce_value(column: ColumnInfo, raw: Any, textual: bool = False) -> Value:
    """Validate one non-null body value against its column."""
    expected = COLUMN_KINDS.get(column.db_type)
    if expected is None:
        raise UnsupportedColumnType(column.name, column.db_type.value)
    if textual and isinstance(raw, str):
        return _from_text(column, expected, raw)
    return _check_kind(column, expected, raw)


def coerce(
    schema: TableSchema,
    body: Mapping[str, Any],
    for_insert: bool,
    textual: bool = False,
) -> GenericRecord:
    """
    Turn untyped body fields into a record of settable columns.

    Args:
        schema: Table the body is written to.
        body: Raw fields from the request; keys that are not columns are ignored.
        for_insert: Insert requires every non-nullable column without a default,
            update only touches the columns present in the body.
        textual: Body came from a form, values are strings to be parsed.

    Returns:
        Sparse record: primary key and unresolved columns are omitted, not nulled.

    Raises:
        MissingRequiredField, TypeMismatch, UnsupportedColumnType
    """
    record: GenericRecord = {}

    for column in schema.columns:
        # Never settable from the request
        if column.primary_key:
            continue

        if column.name not in body:
            if for_insert and not column.nullable and not column.has_default:
                raise MissingRequiredField(column.name)
            continue

        raw = body[column.name]
        if raw is None:
            if not column.nullable:
                raise MissingRequiredField(column.name)
            record[column.name] = None
            continue

        record[column.name] = coerce_value(column, raw, textual)

    return record
