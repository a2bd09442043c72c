import pytest

from dbexplorer.core.coercion import coerce
from dbexplorer.core.errors import MissingRequiredField, TypeMismatch, UnsupportedColumnType
from dbexplorer.core.schemas import ColumnInfo, DbType, TableSchema

ITEMS = TableSchema(
    name="items",
    columns=(
        ColumnInfo(name="id", db_type=DbType.INTEGER, nullable=False, primary_key=True),
        ColumnInfo(name="title", db_type=DbType.TEXT, nullable=False),
        ColumnInfo(name="description", db_type=DbType.TEXT, nullable=True),
        ColumnInfo(name="quantity", db_type=DbType.INTEGER, nullable=True),
        ColumnInfo(name="price", db_type=DbType.FLOAT, nullable=True),
        ColumnInfo(name="in_stock", db_type=DbType.BOOLEAN, nullable=False, has_default=True),
        ColumnInfo(name="created_at", db_type=DbType.TIMESTAMP, nullable=True),
    ),
)


def test_insert_full_body():
    body = {"title": "Lamp", "description": "Desk lamp", "quantity": 2, "price": 4.5, "in_stock": True}
    assert coerce(ITEMS, body, for_insert=True) == body


def test_primary_key_never_settable():
    record = coerce(ITEMS, {"id": 99, "title": "Lamp"}, for_insert=True)
    assert "id" not in record


def test_insert_omitted_nullable_is_absent():
    """Sparse result: omitted columns are not set to null"""
    assert coerce(ITEMS, {"title": "Lamp"}, for_insert=True) == {"title": "Lamp"}


def test_insert_missing_required_field():
    with pytest.raises(MissingRequiredField) as error:
        coerce(ITEMS, {"description": "no title"}, for_insert=True)
    assert error.value.column == "title"


def test_update_skips_absent_required_fields():
    assert coerce(ITEMS, {"quantity": 1}, for_insert=False) == {"quantity": 1}
    assert coerce(ITEMS, {}, for_insert=False) == {}


def test_explicit_null():
    assert coerce(ITEMS, {"description": None}, for_insert=False) == {"description": None}
    with pytest.raises(MissingRequiredField):
        coerce(ITEMS, {"title": None}, for_insert=False)


@pytest.mark.parametrize(
    "body",
    [
        {"title": 1},
        {"quantity": "1"},
        {"quantity": 1.5},
        {"quantity": True},  # bool is not an integer
        {"in_stock": 1},
        {"price": "9.99"},
        {"description": ["a", "b"]},
    ],
)
def test_type_mismatch(body):
    with pytest.raises(TypeMismatch):
        coerce(ITEMS, body, for_insert=False)


def test_integer_widens_into_float():
    record = coerce(ITEMS, {"price": 3}, for_insert=False)
    assert record == {"price": 3.0}
    assert isinstance(record["price"], float)


def test_unsupported_column_type():
    with pytest.raises(UnsupportedColumnType):
        coerce(ITEMS, {"created_at": "2024-01-01"}, for_insert=False)
    # Null is still fine for a nullable column of any type
    assert coerce(ITEMS, {"created_at": None}, for_insert=False) == {"created_at": None}


def test_textual_values_are_parsed():
    body = {"title": "Lamp", "quantity": " 12 ", "price": "1.25", "in_stock": "Yes"}
    record = coerce(ITEMS, body, for_insert=True, textual=True)
    assert record == {"title": "Lamp", "quantity": 12, "price": 1.25, "in_stock": True}


@pytest.mark.parametrize("body", [{"quantity": "twelve"}, {"in_stock": "maybe"}, {"price": ""}])
def test_textual_values_unparsable(body):
    with pytest.raises(TypeMismatch):
        coerce(ITEMS, body, for_insert=False, textual=True)


@pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan")])
def test_non_finite_float_rejected(value):
    with pytest.raises(TypeMismatch):
        coerce(ITEMS, {"price": value}, for_insert=False)


@pytest.mark.parametrize("text", ["inf", "-Infinity", "nan", "1e400"])
def test_non_finite_float_text_rejected(text):
    with pytest.raises(TypeMismatch):
        coerce(ITEMS, {"price": text}, for_insert=False, textual=True)


def test_integer_too_large_for_float():
    with pytest.raises(TypeMismatch):
        coerce(ITEMS, {"price": 10**400}, for_insert=False)
