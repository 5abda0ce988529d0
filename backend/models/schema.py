"""Pydantic schemas for the engine-neutral database schema model."""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    # JSON form uses camelCase keys (defaultValue, primaryKey, ...)
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ColumnInfo(_CamelModel):
    type: str
    nullable: bool
    default_value: Optional[str] = None


class ForeignKeyInfo(_CamelModel):
    column: str          # local column
    references: str      # referenced table
    on_column: str       # referenced column


class TableSchema(_CamelModel):
    columns: dict[str, ColumnInfo] = Field(default_factory=dict)   # ordinal order
    primary_key: list[str] = Field(default_factory=list)
    foreign_keys: list[ForeignKeyInfo] = Field(default_factory=list)


# table name → TableSchema
DatabaseSchema = dict[str, TableSchema]
