import json
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from dbexplorer.core.catalog import SchemaCatalog, get_catalog
from dbexplorer.core.config import settings
from dbexplorer.core.database import SqlDatabase, get_db
from dbexplorer.core.dispatcher import Dispatcher
from dbexplorer.core.errors import MalformedBody
from dbexplorer.core.schemas import RequestBody

router = APIRouter(tags=["Explorer"])

# Modern Dependency Injection
db_dep = Annotated[AsyncSession, Depends(get_db)]
catalog_dep = Annotated[SchemaCatalog, Depends(get_catalog)]

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

# Every verb reaches the dispatcher, so unsupported ones still get the envelope
ALL_METHODS = ["GET", "PUT", "POST", "DELETE", "PATCH", "HEAD", "OPTIONS"]


def _reject_constant(name: str):
    # NaN, Infinity and -Infinity are not JSON
    raise MalformedBody(f"request body contains non-finite number {name}")


async def read_body(request: Request) -> RequestBody:
    """
    Read the request body as column -> value fields.
    JSON objects keep their value types; form fields arrive as text.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        fields = {key: value for key, value in form.items() if isinstance(value, str)}
        return RequestBody(fields=fields, textual=True)

    raw = await request.body()
    if not raw.strip():
        return RequestBody()

    try:
        data = json.loads(raw, parse_constant=_reject_constant)
    except ValueError:
        raise MalformedBody("cannot parse request body")

    if not isinstance(data, dict):
        raise MalformedBody("request body must be an object")
    return RequestBody(fields=data)


@router.api_route("/{path:path}", methods=ALL_METHODS)
async def explore(path: str, request: Request, db: db_dep, catalog: catalog_dep):
    dispatcher = Dispatcher(
        catalog, SqlDatabase(db), default_limit=settings.DEFAULT_LIMIT
    )
    status_code, envelope = await dispatcher.dispatch(
        request.method,
        f"/{path}",
        request.query_params,
        lambda: read_body(request),
    )
    return JSONResponse(status_code=status_code, content=envelope)
