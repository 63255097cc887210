"""Click command group for mysql-mcp.

Commands stay thin: they delegate to the introspection engine and render
results with rich.
"""

import os
import sys
from importlib.metadata import PackageNotFoundError, version

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from mysql_mcp.config import (
    CONNECTION_STRING_KEY,
    connection_environ,
    find_connection_string,
    get_settings,
    load_config_file,
    reset_settings,
)
from mysql_mcp.db.connection import DatabaseError, mask_connection_string
from mysql_mcp.db.introspection import IntrospectionEngine

console = Console()


def _get_cli_version() -> str:
    """Get installed package version.

    Falls back to "unknown" when package metadata isn't available
    (e.g. running from a source checkout without installation).
    """
    try:
        return version("mysql-mcp")
    except PackageNotFoundError:
        return "unknown"


def _get_engine() -> IntrospectionEngine:
    try:
        return IntrospectionEngine.from_settings()
    except DatabaseError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)


def _flag(value: bool) -> str:
    return "[green]✓[/green]" if value else ""


@click.group()
@click.version_option(version=_get_cli_version())
def main():
    """mysql-mcp - MySQL catalog introspection MCP server."""
    pass


@main.command()
@click.option(
    "--transport",
    type=click.Choice(["stdio", "http"]),
    default=None,
    help="MCP transport (default: from MYSQL_MCP_TRANSPORT or stdio)",
)
@click.option("--host", default=None, help="Host to bind for the HTTP transport")
@click.option("--port", type=int, default=None, help="Port for the HTTP transport")
def start(transport: str | None, host: str | None, port: int | None):
    """Start the MCP server."""
    if transport:
        os.environ["MYSQL_MCP_TRANSPORT"] = transport
    if host:
        os.environ["MYSQL_MCP_HOST"] = host
    if port:
        os.environ["MYSQL_MCP_PORT"] = str(port)
    reset_settings()

    from mysql_mcp.server import main as run_server

    run_server()


@main.command()
def status():
    """Show where the connection string comes from and test connectivity."""
    console.print(Panel.fit("[bold blue]mysql-mcp Status[/bold blue]", border_style="blue"))

    settings = get_settings()
    console.print("\n[bold]Configuration[/bold]")
    console.print(f"  Config file: {settings.config_file}")

    try:
        config = load_config_file(settings.config_file)
    except DatabaseError as e:
        console.print(f"  [red]{e}[/red]")
        sys.exit(1)

    connection_string, source = find_connection_string(connection_environ(settings), config)
    if connection_string is None:
        console.print(f"  [yellow]{CONNECTION_STRING_KEY} is not set[/yellow]")
        console.print(
            f"  [dim]Set the {CONNECTION_STRING_KEY} environment variable "
            f"or add it to {settings.config_file}.[/dim]"
        )
        sys.exit(1)

    label = "environment" if source == "environment" else "config file"
    console.print(f"  Connection:  {mask_connection_string(connection_string)} ({label})")

    console.print("\n[bold]Database[/bold]")
    result = IntrospectionEngine(connection_string).test_connection()
    if result["connected"]:
        console.print("  [green]Connected[/green]")
        console.print(f"  Database: {result['database'] or '[dim]none[/dim]'}")
        console.print(f"  Server:   {result['server_version']}")
    else:
        console.print(f"  [red]{result['error']}[/red]")
        sys.exit(1)


@main.command()
def schemas():
    """List schemas with table and view counts."""
    engine = _get_engine()
    try:
        rows = engine.list_schemas()
    except DatabaseError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    table = Table(title="Schemas")
    table.add_column("Name", style="cyan")
    table.add_column("System")
    table.add_column("Tables", justify="right")
    table.add_column("Views", justify="right")
    for schema in rows:
        table.add_row(
            schema.name,
            _flag(schema.is_system),
            "" if schema.table_count is None else str(schema.table_count),
            "" if schema.view_count is None else str(schema.view_count),
        )
    console.print(table)


@main.command()
@click.argument("schema_name", required=False)
def tables(schema_name: str | None):
    """List tables and views of SCHEMA_NAME (default: current database)."""
    engine = _get_engine()
    try:
        rows = engine.list_tables(schema_name)
    except DatabaseError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    if not rows:
        console.print("[dim]No tables found.[/dim]")
        return

    table = Table(title=f"Tables in {rows[0].schema_name}")
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    for row in rows:
        table.add_row(row.name, row.type)
    console.print(table)


@main.command()
@click.argument("table_name")
@click.option("--schema", "schema_name", default=None, help="Schema (default: current database)")
def describe(table_name: str, schema_name: str | None):
    """Describe TABLE_NAME: columns, indexes and foreign keys."""
    engine = _get_engine()
    try:
        info = engine.describe_table(table_name, schema_name)
    except DatabaseError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    if info is None:
        console.print(
            f"[red]Table '{table_name}' not found in schema '{schema_name or 'current'}'[/red]"
        )
        sys.exit(1)

    columns = Table(title=f"{info.full_name} ({info.type})")
    columns.add_column("Column", style="cyan")
    columns.add_column("Type")
    columns.add_column("Null")
    columns.add_column("PK")
    columns.add_column("Auto")
    columns.add_column("Indexed")
    columns.add_column("Unique")
    columns.add_column("Default")
    for col in info.columns or []:
        columns.add_row(
            col.name,
            col.data_type,
            _flag(col.is_nullable),
            _flag(col.is_primary_key),
            _flag(col.is_auto_increment),
            _flag(col.has_index),
            _flag(col.is_unique),
            col.default_value or "",
        )
    console.print(columns)

    if info.indexes:
        indexes = Table(title="Indexes")
        indexes.add_column("Name", style="cyan")
        indexes.add_column("Type")
        indexes.add_column("Columns")
        indexes.add_column("Unique")
        for index in info.indexes:
            indexes.add_row(index.name, index.type, ", ".join(index.columns), _flag(index.is_unique))
        console.print(indexes)

    if info.foreign_keys:
        fks = Table(title="Foreign keys")
        fks.add_column("Name", style="cyan")
        fks.add_column("Columns")
        fks.add_column("References")
        for fk in info.foreign_keys:
            fks.add_row(
                fk.name,
                ", ".join(fk.local_columns),
                f"{fk.referenced_schema}.{fk.referenced_table}({', '.join(fk.referenced_columns)})",
            )
        console.print(fks)


if __name__ == "__main__":
    main()
