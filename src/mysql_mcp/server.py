"""FastMCP server for mysql-mcp."""

import logging
import sys

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from mysql_mcp.config import get_settings
from mysql_mcp.tools.introspection import (
    _describe_schema,
    _describe_table,
    _list_columns,
    _list_foreign_keys,
    _list_indexes,
    _list_schemas,
    _list_tables,
    _list_views,
    _test_connection,
    get_introspection_engine,
)


class HealthCheckFilter(logging.Filter):
    """Filter out health check requests from uvicorn access logs."""

    def filter(self, record: logging.LogRecord) -> bool:
        return "GET /health" not in record.getMessage()


logging.getLogger("uvicorn.access").addFilter(HealthCheckFilter())


INSTRUCTIONS = """
MySQL catalog introspection server. All tools are read-only.

## Discovery order

1. list_schemas() to see the available schemas
2. list_tables(schema_name="...") for the tables and views of a schema
3. describe_table(table_name="...", schema_name="...") for columns, indexes
   and foreign keys in one call

When schema_name is omitted, the connection's default database is used.

## Not found

describe_schema and describe_table return {"error": "... not found"} when the
named object does not exist. List tools return empty lists.
"""


def _create_server() -> FastMCP:
    """Create and configure the MCP server."""
    server = FastMCP(name="mysql-mcp", instructions=INSTRUCTIONS)

    # Health check endpoint for the HTTP transport
    @server.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> JSONResponse:
        """Health check endpoint for load balancers and k8s probes."""
        return JSONResponse({"status": "healthy", "service": "mysql-mcp"})

    async def _ping() -> dict:
        """Health check - verify server is running."""
        return {
            "status": "ok",
            "database_configured": get_introspection_engine().configured,
        }

    server.tool(name="ping")(_ping)
    server.tool(name="test_connection")(_test_connection)

    # Catalog introspection tools
    server.tool(name="list_schemas")(_list_schemas)
    server.tool(name="describe_schema")(_describe_schema)
    server.tool(name="list_tables")(_list_tables)
    server.tool(name="describe_table")(_describe_table)
    server.tool(name="list_columns")(_list_columns)
    server.tool(name="list_indexes")(_list_indexes)
    server.tool(name="list_foreign_keys")(_list_foreign_keys)
    server.tool(name="list_views")(_list_views)

    return server


# Create the server instance
mcp = _create_server()


def _configure_logging():
    """Configure logging before anything else.

    Logs go to stderr since stdout carries the stdio MCP transport.
    """
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main():
    """Run the MCP server."""
    _configure_logging()

    settings = get_settings()
    logger = logging.getLogger(__name__)
    logger.info(f"Starting mysql-mcp ({settings.transport} transport)")

    if settings.transport == "http":
        mcp.run(
            transport="http",
            host=settings.host,
            port=settings.port,
            path=settings.path,
        )
    else:
        # Default: stdio for local MCP clients
        mcp.run()


if __name__ == "__main__":
    main()
