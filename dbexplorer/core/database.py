import logging
from typing import Any, Dict, List, Mapping

from sqlalchemy import inspect, text
from sqlalchemy import types as sqltypes
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from dbexplorer.core.config import settings
from dbexplorer.core.errors import QueryError
from dbexplorer.core.schemas import ColumnInfo, DbType, ExecResult

logger = logging.getLogger(__name__)

engine = create_async_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)

# Talk to the DB through async sessions without refreshes after closed conn to avoid errors in async programming
AsyncSessionLocal = async_sessionmaker(
    bind=engine, class_=AsyncSession, expire_on_commit=False
)


# This is the "Bridge" that gives the routes access to the database
async def get_db():
    async with AsyncSessionLocal() as session:
        yield session


def db_type_of(column_type: sqltypes.TypeEngine) -> DbType:
    """Map a reflected SQLAlchemy column type onto its coarse DbType."""
    # Order matters: Boolean before Integer, Float before Numeric
    if isinstance(column_type, sqltypes.Boolean):
        return DbType.BOOLEAN
    if isinstance(column_type, sqltypes.Integer):
        return DbType.INTEGER
    if isinstance(column_type, (sqltypes.Float, sqltypes.Numeric)):
        return DbType.FLOAT
    if isinstance(column_type, sqltypes.Uuid):
        return DbType.UUID
    if isinstance(column_type, sqltypes.String):
        return DbType.TEXT
    if isinstance(column_type, (sqltypes.DateTime, sqltypes.Date, sqltypes.Time)):
        return DbType.TIMESTAMP
    return DbType.OTHER


def _reflect_columns(sync_conn, table: str) -> List[ColumnInfo]:
    inspector = inspect(sync_conn)
    pk_columns = inspector.get_pk_constraint(table).get("constrained_columns") or []
    # Composite keys are not addressable by a single id
    primary_key = pk_columns[0] if len(pk_columns) == 1 else None

    columns = []
    for column in inspector.get_columns(table):
        is_pk = column["name"] == primary_key
        columns.append(
            ColumnInfo(
                name=column["name"],
                db_type=db_type_of(column["type"]),
                nullable=bool(column.get("nullable", True)),
                primary_key=is_pk,
                has_default=column.get("default") is not None
                or column.get("identity") is not None,
            )
        )
    return columns


class SqlDatabase:
    """
    Database collaborator on top of an AsyncSession.
    Every method is one round trip; writes commit straight away.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    @property
    def dialect(self):
        return self.session.get_bind().dialect

    async def list_tables(self) -> List[str]:
        conn = await self.session.connection()
        return await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())

    async def list_columns(self, table: str) -> List[ColumnInfo]:
        conn = await self.session.connection()
        return await conn.run_sync(_reflect_columns, table)

    async def query_rows(
        self, sql: str, params: Mapping[str, Any]
    ) -> List[Dict[str, Any]]:
        try:
            result = await self.session.execute(text(sql), dict(params))
            return [dict(row) for row in result.mappings().all()]
        except SQLAlchemyError as error:
            logger.error(f"Query failed: {error}")
            raise QueryError("query failed") from error

    async def execute(
        self, sql: str, params: Mapping[str, Any], fetch_id: bool = False
    ) -> ExecResult:
        try:
            result = await self.session.execute(text(sql), dict(params))
            generated_id = None
            if fetch_id:
                # INSERT ... RETURNING hands the key back as a row
                if result.returns_rows:
                    generated_id = result.scalar_one_or_none()
                else:
                    generated_id = result.lastrowid
            rows_affected = result.rowcount
            await self.session.commit()
            return ExecResult(generated_id=generated_id, rows_affected=rows_affected)
        except SQLAlchemyError as error:
            await self.session.rollback()  # Undo changes if something went wrong
            logger.error(f"Failed to commit a change: {error}")
            raise QueryError("statement failed") from error
