import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from dbexplorer.core.catalog import SchemaCatalog
from dbexplorer.core.config import settings
from dbexplorer.core.database import AsyncSessionLocal, SqlDatabase, engine
from dbexplorer.core.schemas import ErrorEnvelope
from dbexplorer.api.router import api_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


# Read the schema once before serving, close the engine once everything is done
@asynccontextmanager
async def lifespan(app: FastAPI):
    # A failed introspection aborts startup, no partial catalog is served
    async with AsyncSessionLocal() as session:
        app.state.catalog = await SchemaCatalog.build(SqlDatabase(session))
    logger.info(f"Serving tables: {app.state.catalog.list_tables()}")

    yield
    await engine.dispose()


# Every path is a table path, so the docs routes would shadow tables named "docs"
app = FastAPI(
    title="DB Explorer API",
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)

# Include the master router containing all our endpoints
app.include_router(api_router)


# Verbs the router never registered are rejected by Starlette before the dispatcher runs
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    logger.warning(f"{request.method} {request.url.path} rejected: {exc.detail}")
    message = "unknown method" if exc.status_code == 405 else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorEnvelope(error=message).model_dump(),
        headers=getattr(exc, "headers", None),
    )
