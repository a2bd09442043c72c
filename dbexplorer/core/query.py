from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy.engine import Dialect
from sqlalchemy.engine.default import DefaultDialect

from dbexplorer.core.catalog import SchemaCatalog
from dbexplorer.core.errors import QueryError, UnknownColumnError
from dbexplorer.core.schemas import GenericRecord, TableSchema
from dbexplorer.core.values import decode_value


@dataclass(frozen=True)
class Statement:
    sql: str
    params: Dict[str, Any] = field(default_factory=dict)
    # Ask the database for the generated primary key
    fetch_id: bool = False


class QueryBuilder:
    """
    Builds parameterized SQL for one catalog.

    Identifiers cannot be bound, so every table and column name is checked
    against the catalog and quoted by the dialect before it reaches the SQL
    text. Values always travel as bound parameters.
    """

    def __init__(self, catalog: SchemaCatalog, dialect: Optional[Dialect] = None):
        self.catalog = catalog
        self.dialect = dialect or DefaultDialect()
        self._preparer = self.dialect.identifier_preparer

    # -------------------------------------------------------------------------
    # Identifiers
    # -------------------------------------------------------------------------
    def _quote(self, name: str) -> str:
        return self._preparer.quote_identifier(name)

    def _column(self, schema: TableSchema, name: str) -> str:
        if schema.column(name) is None:
            raise UnknownColumnError(schema.name, name)
        return self._quote(name)

    def _column_list(self, schema: TableSchema) -> str:
        return ", ".join(self._quote(name) for name in schema.column_names)

    # -------------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------------
    def select_list(self, table: str, limit: int, offset: int) -> Statement:
        schema = self.catalog.lookup(table)
        sql = f"SELECT {self._column_list(schema)} FROM {self._quote(table)}"
        # Stable pages need a stable order
        if schema.primary_key is not None:
            sql += f" ORDER BY {self._quote(schema.primary_key.name)}"
        sql += " LIMIT :limit OFFSET :offset"
        return Statement(sql, {"limit": limit, "offset": offset})

    def select_one(self, table: str, pk_column: str, record_id: int) -> Statement:
        schema = self.catalog.lookup(table)
        sql = (
            f"SELECT {self._column_list(schema)} FROM {self._quote(table)}"
            f" WHERE {self._column(schema, pk_column)} = :id"
        )
        return Statement(sql, {"id": record_id})

    def insert(self, table: str, record: Mapping[str, Any]) -> Statement:
        schema = self.catalog.lookup(table)
        params = {f"p{i}": value for i, value in enumerate(record.values())}

        if record:
            columns = ", ".join(self._column(schema, name) for name in record)
            placeholders = ", ".join(f":{key}" for key in params)
            sql = f"INSERT INTO {self._quote(table)} ({columns}) VALUES ({placeholders})"
        else:
            sql = f"INSERT INTO {self._quote(table)} DEFAULT VALUES"

        primary_key = schema.primary_key
        if primary_key is not None and self.dialect.insert_returning:
            sql += f" RETURNING {self._quote(primary_key.name)}"
        return Statement(sql, params, fetch_id=primary_key is not None)

    def update(
        self, table: str, pk_column: str, record_id: int, record: Mapping[str, Any]
    ) -> Statement:
        if not record:
            raise QueryError("nothing to update")
        schema = self.catalog.lookup(table)

        params: Dict[str, Any] = {}
        assignments = []
        for i, (name, value) in enumerate(record.items()):
            key = f"p{i}"
            assignments.append(f"{self._column(schema, name)} = :{key}")
            params[key] = value
        params["id"] = record_id

        sql = (
            f"UPDATE {self._quote(table)} SET {', '.join(assignments)}"
            f" WHERE {self._column(schema, pk_column)} = :id"
        )
        return Statement(sql, params)

    def delete(self, table: str, pk_column: str, record_id: int) -> Statement:
        schema = self.catalog.lookup(table)
        sql = (
            f"DELETE FROM {self._quote(table)}"
            f" WHERE {self._column(schema, pk_column)} = :id"
        )
        return Statement(sql, {"id": record_id})

    # -------------------------------------------------------------------------
    # Rows
    # -------------------------------------------------------------------------
    def decode_row(self, table: str, row: Mapping[str, Any]) -> GenericRecord:
        schema = self.catalog.lookup(table)
        try:
            return {
                column.name: decode_value(column.db_type, row.get(column.name))
                for column in schema.columns
            }
        except (TypeError, ValueError) as error:
            raise QueryError(f"cannot decode row of table {table}: {error}") from error

    def decode_rows(
        self, table: str, rows: Iterable[Mapping[str, Any]]
    ) -> List[GenericRecord]:
        return [self.decode_row(table, row) for row in rows]
