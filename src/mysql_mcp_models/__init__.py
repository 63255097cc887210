"""Shared Pydantic models for mysql-mcp."""

from mysql_mcp_models.schema import (
    SYSTEM_SCHEMAS,
    ColumnInfo,
    ForeignKeyInfo,
    IndexInfo,
    SchemaInfo,
    TableInfo,
    ViewInfo,
    is_system_schema,
)

__version__ = "0.1.0"

__all__ = [
    # Schemas
    "SchemaInfo",
    "SYSTEM_SCHEMAS",
    "is_system_schema",
    # Tables
    "TableInfo",
    "ColumnInfo",
    "IndexInfo",
    "ForeignKeyInfo",
    # Views
    "ViewInfo",
]
