"""Database schema introspection.

Catalog queries run against ``information_schema``. Each query has a typed
row projection (``_*Row``) that is decoded as soon as rows are fetched, and
multi-row entities (indexes, foreign keys) are regrouped with
:func:`group_ordered` so that column order within a group is the order the
catalog reports.
"""

import logging
from collections.abc import Callable, Hashable, Iterable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, TypeVar

from sqlalchemy import Connection, Row, bindparam, text
from sqlalchemy.exc import SQLAlchemyError

from mysql_mcp.config import (
    Settings,
    connection_environ,
    get_settings,
    load_config_file,
    resolve_connection_string,
)
from mysql_mcp.db.connection import QueryError, connect
from mysql_mcp.db.connection import test_connection as db_test_connection
from mysql_mcp_models import (
    ColumnInfo,
    ForeignKeyInfo,
    IndexInfo,
    SchemaInfo,
    TableInfo,
    ViewInfo,
    is_system_schema,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)

# =============================================================================
# Catalog queries
# =============================================================================

_CURRENT_SCHEMA_SQL = text("SELECT DATABASE()")

_SCHEMAS_SQL = text(
    """
    SELECT SCHEMA_NAME AS name
    FROM information_schema.SCHEMATA
    ORDER BY SCHEMA_NAME
    """
)

_SCHEMA_SQL = text(
    """
    SELECT SCHEMA_NAME AS name
    FROM information_schema.SCHEMATA
    WHERE SCHEMA_NAME = :schema_name
    """
)

_OBJECT_COUNTS_SQL = text(
    """
    SELECT
        TABLE_SCHEMA AS schema_name,
        COUNT(CASE WHEN TABLE_TYPE = 'BASE TABLE' THEN 1 END) AS table_count,
        COUNT(CASE WHEN TABLE_TYPE = 'VIEW' THEN 1 END) AS view_count
    FROM information_schema.TABLES
    WHERE TABLE_SCHEMA IN :schema_names
    GROUP BY TABLE_SCHEMA
    """
).bindparams(bindparam("schema_names", expanding=True))

_TABLES_SQL = text(
    """
    SELECT TABLE_SCHEMA AS schema_name, TABLE_NAME AS name, TABLE_TYPE AS type
    FROM information_schema.TABLES
    WHERE TABLE_SCHEMA = :schema_name
    ORDER BY TABLE_NAME
    """
)

_TABLE_SQL = text(
    """
    SELECT TABLE_SCHEMA AS schema_name, TABLE_NAME AS name, TABLE_TYPE AS type
    FROM information_schema.TABLES
    WHERE TABLE_SCHEMA = :schema_name AND TABLE_NAME = :table_name
    """
)

_COLUMNS_SQL = text(
    """
    SELECT
        COLUMN_NAME AS name,
        COLUMN_TYPE AS data_type,
        IS_NULLABLE AS is_nullable,
        COLUMN_KEY AS column_key,
        EXTRA AS extra,
        COLUMN_DEFAULT AS default_value
    FROM information_schema.COLUMNS
    WHERE TABLE_SCHEMA = :schema_name AND TABLE_NAME = :table_name
    ORDER BY ORDINAL_POSITION
    """
)

_INDEXES_SQL = text(
    """
    SELECT
        INDEX_NAME AS name,
        INDEX_TYPE AS type,
        NON_UNIQUE AS non_unique,
        COLUMN_NAME AS column_name,
        SEQ_IN_INDEX AS seq_in_index
    FROM information_schema.STATISTICS
    WHERE TABLE_SCHEMA = :schema_name AND TABLE_NAME = :table_name
    ORDER BY INDEX_NAME, SEQ_IN_INDEX
    """
)

_FOREIGN_KEYS_SQL = text(
    """
    SELECT
        kcu.TABLE_NAME AS table_name,
        kcu.CONSTRAINT_NAME AS name,
        kcu.COLUMN_NAME AS local_column,
        kcu.REFERENCED_TABLE_SCHEMA AS referenced_schema,
        kcu.REFERENCED_TABLE_NAME AS referenced_table,
        kcu.REFERENCED_COLUMN_NAME AS referenced_column
    FROM information_schema.KEY_COLUMN_USAGE kcu
    WHERE kcu.TABLE_SCHEMA = :schema_name
      AND kcu.REFERENCED_TABLE_NAME IS NOT NULL
      AND (:table_name IS NULL OR kcu.TABLE_NAME = :table_name)
    ORDER BY kcu.TABLE_NAME, kcu.CONSTRAINT_NAME, kcu.ORDINAL_POSITION
    """
)

_VIEWS_SQL = text(
    """
    SELECT TABLE_SCHEMA AS schema_name, TABLE_NAME AS name
    FROM information_schema.VIEWS
    WHERE TABLE_SCHEMA = :schema_name
    ORDER BY TABLE_NAME
    """
)


# =============================================================================
# Row projections
# =============================================================================


def _str(value: Any) -> str | None:
    # Some server/driver combinations return catalog text columns as bytes
    if isinstance(value, bytes | bytearray):
        return value.decode("utf-8")
    return None if value is None else str(value)


@dataclass(frozen=True)
class _SchemaRow:
    name: str

    @classmethod
    def from_row(cls, row: Row) -> "_SchemaRow":
        return cls(name=_str(row._mapping["name"]))


@dataclass(frozen=True)
class _ObjectCountRow:
    schema_name: str
    table_count: int
    view_count: int

    @classmethod
    def from_row(cls, row: Row) -> "_ObjectCountRow":
        m = row._mapping
        return cls(
            schema_name=_str(m["schema_name"]),
            table_count=int(m["table_count"] or 0),
            view_count=int(m["view_count"] or 0),
        )


@dataclass(frozen=True)
class _TableRow:
    schema_name: str
    name: str
    type: str

    @classmethod
    def from_row(cls, row: Row) -> "_TableRow":
        m = row._mapping
        return cls(schema_name=_str(m["schema_name"]), name=_str(m["name"]), type=_str(m["type"]))


@dataclass(frozen=True)
class _ColumnRow:
    name: str
    data_type: str
    is_nullable: str
    column_key: str
    extra: str
    default_value: str | None

    @classmethod
    def from_row(cls, row: Row) -> "_ColumnRow":
        m = row._mapping
        return cls(
            name=_str(m["name"]),
            data_type=_str(m["data_type"]),
            is_nullable=_str(m["is_nullable"]) or "",
            column_key=_str(m["column_key"]) or "",
            extra=_str(m["extra"]) or "",
            default_value=_str(m["default_value"]),
        )

    def to_model(self) -> ColumnInfo:
        """Build a ColumnInfo, deriving key flags from COLUMN_KEY and EXTRA."""
        return ColumnInfo(
            name=self.name,
            data_type=self.data_type,
            is_nullable=self.is_nullable == "YES",
            is_primary_key=self.column_key == "PRI",
            is_auto_increment="auto_increment" in self.extra.lower(),
            has_index=self.column_key in ("MUL", "UNI"),
            is_unique=self.column_key == "UNI",
            default_value=self.default_value,
        )


@dataclass(frozen=True)
class _IndexRow:
    name: str
    type: str
    is_unique: bool
    column_name: str | None
    seq_in_index: int

    @classmethod
    def from_row(cls, row: Row) -> "_IndexRow":
        m = row._mapping
        return cls(
            name=_str(m["name"]),
            type=_str(m["type"]),
            is_unique=int(m["non_unique"]) == 0,
            column_name=_str(m["column_name"]),
            seq_in_index=int(m["seq_in_index"]),
        )


@dataclass(frozen=True)
class _ForeignKeyRow:
    table_name: str
    name: str
    local_column: str
    referenced_schema: str
    referenced_table: str
    referenced_column: str

    @classmethod
    def from_row(cls, row: Row) -> "_ForeignKeyRow":
        m = row._mapping
        return cls(
            table_name=_str(m["table_name"]),
            name=_str(m["name"]),
            local_column=_str(m["local_column"]),
            referenced_schema=_str(m["referenced_schema"]),
            referenced_table=_str(m["referenced_table"]),
            referenced_column=_str(m["referenced_column"]),
        )


@dataclass(frozen=True)
class _ViewRow:
    schema_name: str
    name: str

    @classmethod
    def from_row(cls, row: Row) -> "_ViewRow":
        m = row._mapping
        return cls(schema_name=_str(m["schema_name"]), name=_str(m["name"]))


# =============================================================================
# Grouping
# =============================================================================


def group_ordered(rows: Iterable[T], key: Callable[[T], K]) -> list[tuple[K, list[T]]]:
    """Group rows by key, keeping first-seen group order and row order.

    Unlike ``itertools.groupby`` the input does not need to be sorted by key,
    and unlike a set-based aggregation nothing is reordered: each group lists
    its rows exactly as they arrived.
    """
    groups: dict[K, list[T]] = {}
    for row in rows:
        groups.setdefault(key(row), []).append(row)
    return list(groups.items())


def build_indexes(rows: Iterable[_IndexRow]) -> list[IndexInfo]:
    """Collapse one-row-per-column STATISTICS rows into IndexInfo records."""
    return [
        IndexInfo(
            name=name,
            type=index_type,
            columns=[r.column_name for r in group if r.column_name is not None],
            is_unique=is_unique,
        )
        for (name, index_type, is_unique), group in group_ordered(
            rows, lambda r: (r.name, r.type, r.is_unique)
        )
    ]


def build_foreign_keys(rows: Iterable[_ForeignKeyRow]) -> list[ForeignKeyInfo]:
    """Collapse one-row-per-column KEY_COLUMN_USAGE rows into ForeignKeyInfo records."""
    return [
        ForeignKeyInfo(
            name=name,
            local_columns=[r.local_column for r in group],
            referenced_schema=referenced_schema,
            referenced_table=referenced_table,
            referenced_columns=[r.referenced_column for r in group],
        )
        for (_, name, referenced_schema, referenced_table), group in group_ordered(
            rows, lambda r: (r.table_name, r.name, r.referenced_schema, r.referenced_table)
        )
    ]


def _target(schema_name: str | None, table_name: str | None = None) -> str:
    schema = schema_name or "current schema"
    if table_name is None:
        return f"schema '{schema}'"
    return f"table '{table_name}' in schema '{schema}'"


# =============================================================================
# Engine
# =============================================================================


class IntrospectionEngine:
    """Read-only introspection of a MySQL catalog.

    Every public method opens its own connection and closes it before
    returning, so methods can be called concurrently from separate threads.
    Lookups of a named schema or table that does not exist return None or an
    empty list; configuration and query failures raise
    :class:`~mysql_mcp.db.connection.ConfigurationError` and
    :class:`~mysql_mcp.db.connection.QueryError`.
    """

    def __init__(self, connection_string: str | None) -> None:
        self._connection_string = connection_string

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> "IntrospectionEngine":
        """Create an engine from the environment and the configured YAML file.

        Raises:
            ConfigurationError: If the config file cannot be read
        """
        settings = settings or get_settings()
        environ = connection_environ(settings) if environ is None else environ
        config = load_config_file(settings.config_file)
        return cls(resolve_connection_string(environ, config))

    @property
    def configured(self) -> bool:
        """Whether a connection string was resolved."""
        return bool(self._connection_string)

    @property
    def connection_string(self) -> str | None:
        return self._connection_string

    def test_connection(self) -> dict:
        """Test database connectivity."""
        return db_test_connection(self._connection_string)

    @contextmanager
    def _session(self, operation: str, target: str) -> Iterator[Connection]:
        logger.debug(f"{operation}: {target}")
        with connect(self._connection_string) as conn:
            try:
                yield conn
            except SQLAlchemyError as e:
                raise QueryError(operation, target, e) from e

    def _resolve_schema(self, conn: Connection, schema_name: str | None) -> str | None:
        if schema_name:
            return schema_name
        current = _str(conn.execute(_CURRENT_SCHEMA_SQL).scalar())
        if current is None:
            logger.warning("No schema given and the connection has no default database")
        return current

    # -------------------------------------------------------------------------
    # Schemas
    # -------------------------------------------------------------------------

    def _build_schemas(self, conn: Connection, names: list[str]) -> list[SchemaInfo]:
        user_schemas = [name for name in names if not is_system_schema(name)]
        counts: dict[str, _ObjectCountRow] = {}
        if user_schemas:
            result = conn.execute(_OBJECT_COUNTS_SQL, {"schema_names": user_schemas})
            for row in result:
                count = _ObjectCountRow.from_row(row)
                counts[count.schema_name] = count

        schemas = []
        for name in names:
            if is_system_schema(name):
                schemas.append(SchemaInfo(name=name, is_system=True))
                continue
            count = counts.get(name)
            schemas.append(
                SchemaInfo(
                    name=name,
                    is_system=False,
                    table_count=count.table_count if count else 0,
                    view_count=count.view_count if count else 0,
                )
            )
        return schemas

    def list_schemas(self) -> list[SchemaInfo]:
        """List all schemas ordered by name."""
        with self._session("list schemas", "catalog") as conn:
            names = [_SchemaRow.from_row(r).name for r in conn.execute(_SCHEMAS_SQL)]
            return self._build_schemas(conn, names)

    def describe_schema(self, schema_name: str) -> SchemaInfo | None:
        """Describe one schema, or None if it does not exist."""
        with self._session("describe schema", _target(schema_name)) as conn:
            row = conn.execute(_SCHEMA_SQL, {"schema_name": schema_name}).first()
            if row is None:
                return None
            return self._build_schemas(conn, [_SchemaRow.from_row(row).name])[0]

    # -------------------------------------------------------------------------
    # Tables
    # -------------------------------------------------------------------------

    def list_tables(self, schema_name: str | None = None) -> list[TableInfo]:
        """List tables and views of a schema ordered by name, without children."""
        with self._session("list tables", _target(schema_name)) as conn:
            schema_name = self._resolve_schema(conn, schema_name)
            if schema_name is None:
                return []
            rows = [
                _TableRow.from_row(r)
                for r in conn.execute(_TABLES_SQL, {"schema_name": schema_name})
            ]

        return [TableInfo(schema_name=r.schema_name, name=r.name, type=r.type) for r in rows]

    def describe_table(
        self, table_name: str, schema_name: str | None = None
    ) -> TableInfo | None:
        """Describe a table with its columns, indexes and foreign keys.

        Returns:
            TableInfo, or None if no such table exists in the schema
        """
        with self._session("describe table", _target(schema_name, table_name)) as conn:
            schema_name = self._resolve_schema(conn, schema_name)
            if schema_name is None:
                return None

            params = {"schema_name": schema_name, "table_name": table_name}
            row = conn.execute(_TABLE_SQL, params).first()
            if row is None:
                return None
            table = _TableRow.from_row(row)

            columns = self._fetch_columns(conn, params)
            indexes = self._fetch_indexes(conn, params)
            foreign_keys = self._fetch_foreign_keys(conn, params)

        return TableInfo(
            schema_name=table.schema_name,
            name=table.name,
            type=table.type,
            columns=columns,
            indexes=indexes,
            foreign_keys=foreign_keys,
        )

    # -------------------------------------------------------------------------
    # Columns, indexes, foreign keys
    # -------------------------------------------------------------------------

    @staticmethod
    def _fetch_columns(conn: Connection, params: dict) -> list[ColumnInfo]:
        rows = [_ColumnRow.from_row(r) for r in conn.execute(_COLUMNS_SQL, params)]
        return [r.to_model() for r in rows]

    @staticmethod
    def _fetch_indexes(conn: Connection, params: dict) -> list[IndexInfo]:
        return build_indexes([_IndexRow.from_row(r) for r in conn.execute(_INDEXES_SQL, params)])

    @staticmethod
    def _fetch_foreign_keys(conn: Connection, params: dict) -> list[ForeignKeyInfo]:
        rows = [_ForeignKeyRow.from_row(r) for r in conn.execute(_FOREIGN_KEYS_SQL, params)]
        return build_foreign_keys(rows)

    def list_columns(self, table_name: str, schema_name: str | None = None) -> list[ColumnInfo]:
        """List a table's columns in declared (ordinal) order."""
        with self._session("list columns", _target(schema_name, table_name)) as conn:
            schema_name = self._resolve_schema(conn, schema_name)
            if schema_name is None:
                return []
            return self._fetch_columns(
                conn, {"schema_name": schema_name, "table_name": table_name}
            )

    def list_indexes(self, table_name: str, schema_name: str | None = None) -> list[IndexInfo]:
        """List a table's indexes, each with columns in index sequence order."""
        with self._session("list indexes", _target(schema_name, table_name)) as conn:
            schema_name = self._resolve_schema(conn, schema_name)
            if schema_name is None:
                return []
            return self._fetch_indexes(
                conn, {"schema_name": schema_name, "table_name": table_name}
            )

    def list_foreign_keys(
        self, table_name: str | None = None, schema_name: str | None = None
    ) -> list[ForeignKeyInfo]:
        """List foreign keys of a table, or of every table in the schema."""
        with self._session("list foreign keys", _target(schema_name, table_name)) as conn:
            schema_name = self._resolve_schema(conn, schema_name)
            if schema_name is None:
                return []
            return self._fetch_foreign_keys(
                conn, {"schema_name": schema_name, "table_name": table_name}
            )

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def list_views(self, schema_name: str | None = None) -> list[ViewInfo]:
        """List views of a schema ordered by name. Definitions are not fetched."""
        with self._session("list views", _target(schema_name)) as conn:
            schema_name = self._resolve_schema(conn, schema_name)
            if schema_name is None:
                return []
            rows = [
                _ViewRow.from_row(r)
                for r in conn.execute(_VIEWS_SQL, {"schema_name": schema_name})
            ]

        return [ViewInfo(schema_name=r.schema_name, name=r.name) for r in rows]
