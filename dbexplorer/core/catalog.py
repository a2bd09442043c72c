import logging
from types import MappingProxyType
from typing import Dict, List, Mapping

from fastapi import Request

from dbexplorer.core.errors import NoPrimaryKeyError, SchemaError, UnknownTableError
from dbexplorer.core.schemas import TableSchema

logger = logging.getLogger(__name__)


class SchemaCatalog:
    """
    Read-only map of table name -> TableSchema.
    Built once at startup and shared by every request; never mutated afterwards.
    """

    def __init__(self, tables: Mapping[str, TableSchema]):
        self._tables = MappingProxyType(dict(sorted(tables.items())))

    @classmethod
    async def build(cls, db) -> "SchemaCatalog":
        """
        Introspect every table of the database.
        Any failure aborts the whole build.

        Args:
            db: Database collaborator exposing list_tables/list_columns.

        Returns:
            A complete catalog.

        Raises:
            SchemaError: when any introspection step fails.
        """
        tables: Dict[str, TableSchema] = {}
        try:
            for name in await db.list_tables():
                columns = tuple(await db.list_columns(name))
                primary_keys = [c.name for c in columns if c.primary_key]
                if len(primary_keys) > 1:
                    raise SchemaError(
                        f"table {name} declares more than one primary key: {primary_keys}"
                    )
                tables[name] = TableSchema(name=name, columns=columns)
        except SchemaError:
            raise
        except Exception as error:
            logger.error(f"Schema introspection failed: {error}")
            raise SchemaError(f"cannot read database schema: {error}") from error

        logger.info(f"Schema catalog built with {len(tables)} tables")
        for name, schema in sorted(tables.items()):
            logger.debug(f"[{name}] columns={list(schema.column_names)}")
        return cls(tables)

    @property
    def tables(self) -> Mapping[str, TableSchema]:
        return self._tables

    def list_tables(self) -> List[str]:
        return list(self._tables)

    def lookup(self, table: str) -> TableSchema:
        try:
            return self._tables[table]
        except KeyError:
            raise UnknownTableError(table)

    def primary_key_of(self, table: str) -> str:
        primary_key = self.lookup(table).primary_key
        if primary_key is None:
            raise NoPrimaryKeyError(table)
        return primary_key.name

    def __contains__(self, table: object) -> bool:
        return table in self._tables

    def __len__(self) -> int:
        return len(self._tables)


# The catalog lives on app.state, built once by the lifespan
def get_catalog(request: Request) -> SchemaCatalog:
    return request.app.state.catalog
