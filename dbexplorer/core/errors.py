from fastapi import status


class ExplorerError(Exception):
    """Base for every failure the dispatcher turns into an error envelope."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# =========================
# Routing
# =========================
class RoutingError(ExplorerError):
    status_code = status.HTTP_404_NOT_FOUND


class UnknownTableError(RoutingError):
    def __init__(self, table: str):
        super().__init__("unknown table")
        self.table = table


class RecordNotFoundError(RoutingError):
    def __init__(self, table: str, record_id: int):
        super().__init__("record not found")
        self.table = table
        self.record_id = record_id


class MethodNotAllowed(RoutingError):
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED


class UnsupportedPath(RoutingError):
    status_code = status.HTTP_406_NOT_ACCEPTABLE


# =========================
# Bad input
# =========================
class BadRequestError(ExplorerError):
    status_code = status.HTTP_400_BAD_REQUEST


class MalformedBody(BadRequestError):
    pass


class InvalidRecordId(BadRequestError):
    pass


class CoercionError(BadRequestError):
    """Request body does not fit the table's columns."""

    def __init__(self, message: str, column: str):
        super().__init__(message)
        self.column = column


class MissingRequiredField(CoercionError):
    def __init__(self, column: str):
        super().__init__(f"field {column} is required", column)


class TypeMismatch(CoercionError):
    def __init__(self, column: str, expected: str):
        super().__init__(f"field {column} has invalid type, expected {expected}", column)
        self.expected = expected


class UnsupportedColumnType(CoercionError):
    def __init__(self, column: str, db_type: str):
        super().__init__(f"field {column} has unsupported type {db_type}", column)
        self.db_type = db_type


# =========================
# Schema / query
# =========================
class SchemaError(ExplorerError):
    """Introspection failed; the catalog cannot be built."""


class NoPrimaryKeyError(ExplorerError):
    def __init__(self, table: str):
        super().__init__(f"table {table} has no primary key")
        self.table = table


class UnknownColumnError(ExplorerError):
    def __init__(self, table: str, column: str):
        super().__init__(f"unknown column {column} in table {table}")
        self.table = table
        self.column = column


class QueryError(ExplorerError):
    """Statement execution failed."""
