"""Database connectivity and introspection."""

from mysql_mcp.db.connection import (
    ConfigurationError,
    DatabaseError,
    QueryError,
    connect,
    get_engine,
    test_connection,
)
from mysql_mcp.db.introspection import IntrospectionEngine, group_ordered

__all__ = [
    "ConfigurationError",
    "DatabaseError",
    "QueryError",
    "connect",
    "get_engine",
    "test_connection",
    "IntrospectionEngine",
    "group_ordered",
]
