"""Tests for catalog metadata models."""

import pytest
from pydantic import ValidationError

from mysql_mcp_models import (
    ColumnInfo,
    IndexInfo,
    SchemaInfo,
    TableInfo,
    ViewInfo,
    is_system_schema,
)


@pytest.mark.parametrize(
    "name", ["information_schema", "INFORMATION_SCHEMA", "mysql", "Performance_Schema", "SYS"]
)
def test_system_schema_names(name):
    assert is_system_schema(name)


def test_user_schema_name():
    assert not is_system_schema("shop")
    assert not is_system_schema("mysql_app")


def test_records_are_frozen():
    schema = SchemaInfo(name="shop", table_count=1, view_count=0)
    with pytest.raises(ValidationError):
        schema.name = "other"


def test_table_serializes_schema_alias_and_omits_children():
    table = TableInfo(schema_name="shop", name="users", type="BASE TABLE")
    assert table.model_dump(by_alias=True, exclude_none=True) == {
        "schema": "shop",
        "name": "users",
        "type": "BASE TABLE",
    }
    assert table.full_name == "shop.users"


def test_table_accepts_alias():
    table = TableInfo(schema="shop", name="users", type="BASE TABLE")
    assert table.schema_name == "shop"


def test_described_table_keeps_empty_children():
    table = TableInfo(
        schema_name="shop",
        name="log",
        type="BASE TABLE",
        columns=[ColumnInfo(name="msg", data_type="text")],
        indexes=[],
        foreign_keys=[],
    )
    data = table.model_dump(by_alias=True, exclude_none=True)
    assert data["indexes"] == []
    assert data["foreign_keys"] == []
    assert data["columns"][0]["is_nullable"] is True


def test_system_schema_counts_omitted():
    data = SchemaInfo(name="mysql", is_system=True).model_dump(exclude_none=True)
    assert data == {"name": "mysql", "is_system": True}


def test_index_and_view_defaults():
    assert IndexInfo(name="PRIMARY", type="BTREE").columns == []
    view = ViewInfo(schema_name="shop", name="order_totals")
    assert view.definition is None
