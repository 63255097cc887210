"""Catalog introspection MCP tools."""

import asyncio
import logging
from typing import Any

from pydantic import BaseModel

from mysql_mcp.db.connection import DatabaseError
from mysql_mcp.db.introspection import IntrospectionEngine

logger = logging.getLogger(__name__)

_engine: IntrospectionEngine | None = None


def get_introspection_engine() -> IntrospectionEngine:
    """Get the introspection engine, resolving the connection string once."""
    global _engine
    if _engine is None:
        _engine = IntrospectionEngine.from_settings()
    return _engine


def set_introspection_engine(engine: IntrospectionEngine | None) -> None:
    """Replace the cached engine (None forces re-resolution on next use)."""
    global _engine
    _engine = engine


def _dump(record: BaseModel) -> dict[str, Any]:
    return record.model_dump(by_alias=True, exclude_none=True)


async def _call(description: str, operation: str, *args: Any) -> Any:
    """Run a blocking engine method in a worker thread, logging failures.

    Resolving the engine can fail on a bad config file and is logged too.
    """
    try:
        engine = get_introspection_engine()
        return await asyncio.to_thread(getattr(engine, operation), *args)
    except DatabaseError:
        logger.exception(f"Error {description}")
        raise


async def _list_schemas() -> dict:
    """Lists all accessible database schemas with basic metadata.

    System schemas (information_schema, mysql, performance_schema, sys) are
    flagged with is_system and carry no table or view counts.
    """
    schemas = await _call("listing schemas", "list_schemas")
    return {"schemas": [_dump(s) for s in schemas]}


async def _describe_schema(schema_name: str) -> dict:
    """Returns detailed schema information including table count and view count.

    Args:
        schema_name: The name of the schema to describe
    """
    schema = await _call(f"describing schema {schema_name}", "describe_schema", schema_name)
    if schema is None:
        return {"error": f"Schema '{schema_name}' not found"}
    return _dump(schema)


async def _list_tables(schema_name: str | None = None) -> dict:
    """Returns table names and types (BASE TABLE/VIEW) for a schema.

    Args:
        schema_name: The name of the schema (optional - defaults to current database)
    """
    tables = await _call(
        f"listing tables for schema {schema_name}", "list_tables", schema_name
    )
    return {"tables": [_dump(t) for t in tables]}


async def _describe_table(table_name: str, schema_name: str | None = None) -> dict:
    """Returns comprehensive table information including columns, primary keys,
    indexes, and foreign key constraints.

    Args:
        table_name: The name of the table to describe
        schema_name: The name of the schema (optional - defaults to current database)
    """
    table = await _call(
        f"describing table {table_name} in schema {schema_name}",
        "describe_table",
        table_name,
        schema_name,
    )
    if table is None:
        return {"error": f"Table '{table_name}' not found in schema '{schema_name or 'current'}'"}
    return _dump(table)


async def _list_columns(table_name: str, schema_name: str | None = None) -> dict:
    """Returns column information with data types, constraints, and properties for a table.

    Columns are listed in their declared order.

    Args:
        table_name: The name of the table
        schema_name: The name of the schema (optional - defaults to current database)
    """
    columns = await _call(
        f"listing columns for table {table_name} in schema {schema_name}",
        "list_columns",
        table_name,
        schema_name,
    )
    return {"columns": [_dump(c) for c in columns]}


async def _list_indexes(table_name: str, schema_name: str | None = None) -> dict:
    """Returns index information including type, columns, and uniqueness for a table.

    Args:
        table_name: The name of the table
        schema_name: The name of the schema (optional - defaults to current database)
    """
    indexes = await _call(
        f"listing indexes for table {table_name} in schema {schema_name}",
        "list_indexes",
        table_name,
        schema_name,
    )
    return {"indexes": [_dump(i) for i in indexes]}


async def _list_foreign_keys(table_name: str | None = None, schema_name: str | None = None) -> dict:
    """Returns foreign key relationships with referenced tables and columns.

    Args:
        table_name: The name of the table (optional - if not provided, returns all
            foreign keys in the schema)
        schema_name: The name of the schema (optional - defaults to current database)
    """
    foreign_keys = await _call(
        f"listing foreign keys for table {table_name} in schema {schema_name}",
        "list_foreign_keys",
        table_name,
        schema_name,
    )
    return {"foreign_keys": [_dump(fk) for fk in foreign_keys]}


async def _list_views(schema_name: str | None = None) -> dict:
    """Returns the views of a schema.

    Args:
        schema_name: The name of the schema (optional - defaults to current database)
    """
    views = await _call(f"listing views for schema {schema_name}", "list_views", schema_name)
    return {"views": [_dump(v) for v in views]}


async def _test_connection() -> dict:
    """Test database connection.

    Returns:
        Connection status, current database and server version
    """
    return await _call("testing connection", "test_connection")
