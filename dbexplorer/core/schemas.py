from typing import Any, Dict, Optional, Tuple, Union
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# =========================
# Enums
# =========================
class DbType(str, Enum):
    INTEGER = "integer"
    TEXT = "text"
    BOOLEAN = "boolean"
    FLOAT = "float"
    TIMESTAMP = "timestamp"
    UUID = "uuid"
    OTHER = "other"


class PathShape(str, Enum):
    ROOT = "root"
    TABLE = "table"
    RECORD = "record"
    INVALID = "invalid"


# A single decoded or coerced field value
Value = Union[None, bool, int, float, str]
GenericRecord = Dict[str, Value]


# =========================
# SCHEMA
# =========================
class ColumnInfo(BaseModel):
    name: str
    db_type: DbType
    nullable: bool
    primary_key: bool = False
    # Server default or autoincrement, so insert may omit it
    has_default: bool = False

    model_config = ConfigDict(frozen=True)


class TableSchema(BaseModel):
    name: str
    columns: Tuple[ColumnInfo, ...]

    model_config = ConfigDict(frozen=True)

    @property
    def column_names(self) -> Tuple[str, ...]:
        return tuple(column.name for column in self.columns)

    @property
    def primary_key(self) -> Optional[ColumnInfo]:
        return next((c for c in self.columns if c.primary_key), None)

    def column(self, name: str) -> Optional[ColumnInfo]:
        return next((c for c in self.columns if c.name == name), None)


# =========================
# REQUEST
# =========================
class RequestParams(BaseModel):
    shape: PathShape = PathShape.ROOT
    table: str = ""
    limit: int = Field(default=0, ge=0)
    offset: int = Field(default=0, ge=0)
    id: Optional[int] = None


class RequestBody(BaseModel):
    """
    Untyped request fields.
    Form bodies arrive as strings only, so they are flagged as textual.
    """

    fields: Dict[str, Any] = {}
    textual: bool = False


# =========================
# DATABASE
# =========================
class ExecResult(BaseModel):
    generated_id: Optional[Any] = None
    rows_affected: int = 0


# =========================
# ENVELOPES
# =========================
class SuccessEnvelope(BaseModel):
    response: Any


class ErrorEnvelope(BaseModel):
    error: str
