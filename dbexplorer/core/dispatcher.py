import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Tuple

from fastapi import status

from dbexplorer.core import coercion
from dbexplorer.core.catalog import SchemaCatalog
from dbexplorer.core.errors import (
    ExplorerError,
    InvalidRecordId,
    MethodNotAllowed,
    RecordNotFoundError,
    UnsupportedPath,
)
from dbexplorer.core.parser import parse_request
from dbexplorer.core.query import QueryBuilder, Statement
from dbexplorer.core.schemas import (
    ErrorEnvelope,
    PathShape,
    RequestBody,
    RequestParams,
    SuccessEnvelope,
)

logger = logging.getLogger(__name__)

BodyReader = Callable[[], Awaitable[RequestBody]]

DEFAULT_LIMIT = 1000

# (verb, path shape) -> operation name
ROUTES: Dict[Tuple[str, PathShape], str] = {
    ("GET", PathShape.ROOT): "list_tables",
    ("GET", PathShape.TABLE): "list_records",
    ("GET", PathShape.RECORD): "get_record",
    ("PUT", PathShape.TABLE): "create_record",
    ("POST", PathShape.RECORD): "update_record",
    ("DELETE", PathShape.RECORD): "delete_record",
}
SUPPORTED_METHODS = frozenset(method for method, _ in ROUTES)


async def _empty_body() -> RequestBody:
    return RequestBody()


class Dispatcher:
    """
    Maps (verb, path shape) onto a CRUD operation over the catalog.

    dispatch() is the only place failures are caught: every operation raises
    typed errors and they are turned into the error envelope there.
    """

    def __init__(
        self,
        catalog: SchemaCatalog,
        db,
        builder: Optional[QueryBuilder] = None,
        default_limit: int = DEFAULT_LIMIT,
    ):
        self.catalog = catalog
        self.db = db
        self.builder = builder or QueryBuilder(catalog, getattr(db, "dialect", None))
        self.default_limit = default_limit

    async def dispatch(
        self,
        method: str,
        path: str,
        query: Optional[Mapping] = None,
        read_body: Optional[BodyReader] = None,
    ) -> Tuple[int, Dict[str, Any]]:
        """
        Run one request and wrap its outcome.

        Returns:
            (status code, envelope) where the envelope is either
            {"response": ...} or {"error": ...}.
        """
        method = method.upper()
        try:
            params = parse_request(path, query)
            operation = self._route(method, params.shape)
            payload = await operation(params, read_body or _empty_body)
            return status.HTTP_200_OK, SuccessEnvelope(response=payload).model_dump()

        except ExplorerError as error:
            if error.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
                logger.error(f"{method} {path} failed: {error.message}")
            else:
                logger.warning(f"{method} {path} rejected: {error.message}")
            return error.status_code, ErrorEnvelope(error=error.message).model_dump()

        except Exception as error:
            logger.exception(f"Unhandled exception in {method} {path}: {error}")
            return (
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                ErrorEnvelope(error="internal server error").model_dump(),
            )

    def _route(self, method: str, shape: PathShape):
        if method not in SUPPORTED_METHODS:
            raise MethodNotAllowed("unknown method")
        name = ROUTES.get((method, shape))
        if name is None:
            raise UnsupportedPath("bad method")
        return getattr(self, name)

    def _record_id(self, params: RequestParams) -> int:
        if params.id is None:
            raise InvalidRecordId("invalid record id")
        return params.id

    async def _fetch(self, table: str, statement: Statement):
        rows = await self.db.query_rows(statement.sql, statement.params)
        return self.builder.decode_rows(table, rows)

    # =========================
    # Operations
    # =========================
    async def list_tables(self, params: RequestParams, read_body: BodyReader):
        return {"tables": self.catalog.list_tables()}

    async def list_records(self, params: RequestParams, read_body: BodyReader):
        self.catalog.lookup(params.table)
        limit = params.limit or self.default_limit
        statement = self.builder.select_list(params.table, limit, params.offset)
        return {"records": await self._fetch(params.table, statement)}

    async def get_record(self, params: RequestParams, read_body: BodyReader):
        self.catalog.lookup(params.table)
        record_id = self._record_id(params)
        pk = self.catalog.primary_key_of(params.table)

        records = await self._fetch(
            params.table, self.builder.select_one(params.table, pk, record_id)
        )
        if not records:
            raise RecordNotFoundError(params.table, record_id)
        return {"record": records[0]}

    async def create_record(self, params: RequestParams, read_body: BodyReader):
        schema = self.catalog.lookup(params.table)
        pk = self.catalog.primary_key_of(params.table)

        body = await read_body()
        record = coercion.coerce(schema, body.fields, for_insert=True, textual=body.textual)

        statement = self.builder.insert(params.table, record)
        result = await self.db.execute(statement.sql, statement.params, fetch_id=statement.fetch_id)
        return {pk: result.generated_id}

    async def update_record(self, params: RequestParams, read_body: BodyReader):
        schema = self.catalog.lookup(params.table)
        record_id = self._record_id(params)
        pk = self.catalog.primary_key_of(params.table)

        body = await read_body()
        record = coercion.coerce(schema, body.fields, for_insert=False, textual=body.textual)
        if not record:
            return {"updated": 0}

        statement = self.builder.update(params.table, pk, record_id, record)
        result = await self.db.execute(statement.sql, statement.params)
        return {"updated": result.rows_affected}

    async def delete_record(self, params: RequestParams, read_body: BodyReader):
        self.catalog.lookup(params.table)
        record_id = self._record_id(params)
        pk = self.catalog.primary_key_of(params.table)

        statement = self.builder.delete(params.table, pk, record_id)
        result = await self.db.execute(statement.sql, statement.params)
        return {"deleted": result.rows_affected}
