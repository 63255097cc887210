"""Catalog metadata models returned by the introspection engine."""

from pydantic import BaseModel, ConfigDict, Field

# Schemas reserved by the MySQL server itself
SYSTEM_SCHEMAS = frozenset({"information_schema", "mysql", "performance_schema", "sys"})


def is_system_schema(name: str) -> bool:
    """Check whether a schema name is one of the reserved system schemas.

    Matching is case-insensitive since the catalog may report
    ``INFORMATION_SCHEMA`` or ``information_schema`` depending on the server.
    """
    return name.lower() in SYSTEM_SCHEMAS


class _Record(BaseModel):
    """Base for immutable catalog records."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class SchemaInfo(_Record):
    """A schema (database) in the catalog."""

    name: str = Field(..., description="Schema name")
    is_system: bool = Field(default=False, description="Reserved by the database server")
    table_count: int | None = Field(
        default=None, description="Number of base tables (user schemas only)"
    )
    view_count: int | None = Field(default=None, description="Number of views (user schemas only)")


class ColumnInfo(_Record):
    """A table column."""

    name: str = Field(..., description="Column name")
    data_type: str = Field(..., description="Declared type, e.g. varchar(255)")
    is_nullable: bool = Field(default=True)
    is_primary_key: bool = Field(default=False)
    is_auto_increment: bool = Field(default=False)
    has_index: bool = Field(default=False, description="Column is the leading part of an index")
    is_unique: bool = Field(default=False)
    default_value: str | None = Field(default=None, description="Column default expression")


class IndexInfo(_Record):
    """An index, with its columns in index sequence order."""

    name: str = Field(..., description="Index name (PRIMARY for the primary key)")
    type: str = Field(..., description="Index type, e.g. BTREE or FULLTEXT")
    columns: list[str] = Field(default_factory=list, description="Columns in index order")
    is_unique: bool = Field(default=False)


class ForeignKeyInfo(_Record):
    """A foreign key constraint, with local and referenced columns aligned."""

    name: str = Field(..., description="Constraint name")
    local_columns: list[str] = Field(default_factory=list)
    referenced_schema: str = Field(..., description="Schema of the referenced table")
    referenced_table: str = Field(..., description="Referenced table name")
    referenced_columns: list[str] = Field(default_factory=list)


class TableInfo(_Record):
    """A table or view.

    Listing leaves ``columns``, ``indexes`` and ``foreign_keys`` unset; describing
    a table populates all three (possibly empty) lists.
    """

    schema_name: str = Field(..., description="Schema name", alias="schema")
    name: str = Field(..., description="Table name")
    type: str = Field(..., description="BASE TABLE or VIEW")
    columns: list[ColumnInfo] | None = Field(default=None)
    indexes: list[IndexInfo] | None = Field(default=None)
    foreign_keys: list[ForeignKeyInfo] | None = Field(default=None)

    @property
    def full_name(self) -> str:
        """Get the schema-qualified table name."""
        return f"{self.schema_name}.{self.name}"


class ViewInfo(_Record):
    """A view. Definition text is not retrieved."""

    schema_name: str = Field(..., description="Schema name", alias="schema")
    name: str = Field(..., description="View name")
    definition: str | None = Field(default=None)
