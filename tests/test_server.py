"""Tests for the MCP server."""

import logging

import pytest

from mysql_mcp.server import HealthCheckFilter, _create_server

EXPECTED_TOOLS = {
    "ping",
    "test_connection",
    "list_schemas",
    "describe_schema",
    "list_tables",
    "describe_table",
    "list_columns",
    "list_indexes",
    "list_foreign_keys",
    "list_views",
}


def test_mcp_server_created():
    """Test MCP server is properly configured."""
    server = _create_server()
    assert server.name == "mysql-mcp"


@pytest.mark.asyncio
async def test_server_tools_registered():
    """All introspection tools are exposed."""
    server = _create_server()
    tools = await server.get_tools()
    assert set(tools) == EXPECTED_TOOLS


@pytest.mark.asyncio
async def test_tool_parameters_are_optional_where_expected():
    server = _create_server()
    tools = await server.get_tools()

    describe = tools["describe_table"].parameters
    assert describe["required"] == ["table_name"]

    foreign_keys = tools["list_foreign_keys"].parameters
    assert not foreign_keys.get("required")


def _record(message: str) -> logging.LogRecord:
    return logging.LogRecord("uvicorn.access", logging.INFO, __file__, 0, message, None, None)


def test_health_check_filter():
    log_filter = HealthCheckFilter()
    assert not log_filter.filter(_record('127.0.0.1 - "GET /health HTTP/1.1" 200'))
    assert log_filter.filter(_record('127.0.0.1 - "POST /mcp HTTP/1.1" 200'))
