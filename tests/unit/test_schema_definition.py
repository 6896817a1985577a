"""
Unit tests for schema definition Pydantic schemas.

Tests definition validation, map extraction and report serialization.
"""

import json

import pytest
from pydantic import ValidationError

from sqlite_base.schemas.schema_definition import (
    SchemaDefinition,
    SchemaReport,
    TableDefinition,
    load_schema_definition,
)


class TestTableDefinition:
    """Test TableDefinition validation."""

    def test_columns_optional(self):
        table = TableDefinition(ddl="CREATE TABLE t (id INTEGER)")

        assert table.columns is None

    def test_blank_ddl_rejected(self):
        with pytest.raises(ValidationError):
            TableDefinition(ddl="   ")

    def test_empty_ddl_rejected(self):
        with pytest.raises(ValidationError):
            TableDefinition(ddl="")


class TestSchemaDefinition:
    """Test SchemaDefinition map extraction."""

    @pytest.fixture
    def definition(self):
        return SchemaDefinition(tables={
            "users": TableDefinition(
                ddl="CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT)",
                columns={"id": "INTEGER", "name": "TEXT"},
            ),
            "audit_log": TableDefinition(ddl="CREATE TABLE audit_log (id INTEGER)"),
        })

    def test_table_schemas(self, definition):
        assert definition.table_schemas() == {
            "users": "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT)",
            "audit_log": "CREATE TABLE audit_log (id INTEGER)",
        }

    def test_expected_columns_skip_undeclared(self, definition):
        """Tables without columns are left out of the expectation map."""
        assert definition.expected_columns() == {"users": {"id": "INTEGER", "name": "TEXT"}}

    def test_requires_a_table(self):
        with pytest.raises(ValidationError):
            SchemaDefinition(tables={})


class TestLoadSchemaDefinition:
    """Test loading definitions from JSON files."""

    def test_preserves_table_order(self, tmp_path):
        path = tmp_path / "schema.json"
        path.write_text(json.dumps({"tables": {
            "zeta": {"ddl": "CREATE TABLE zeta (id INTEGER)"},
            "alpha": {"ddl": "CREATE TABLE alpha (id INTEGER)"},
        }}))

        definition = load_schema_definition(path)

        assert list(definition.table_schemas()) == ["zeta", "alpha"]

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "schema.json"
        path.write_text("{not json")

        with pytest.raises(ValidationError):
            load_schema_definition(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load_schema_definition(tmp_path / "absent.json")

    def test_invalid_utf8(self, tmp_path):
        path = tmp_path / "schema.json"
        path.write_bytes(b'{"tables": {"\xff": {"ddl": "CREATE TABLE t (id)"}}}')

        with pytest.raises(ValidationError):
            load_schema_definition(path)


class TestSchemaReport:
    """Test SchemaReport serialization."""

    def test_empty_report_is_valid(self):
        report = SchemaReport()

        assert report.valid is True
        assert report.to_dict()["valid"] is True

    def test_to_dict_counts(self):
        report = SchemaReport(
            missing_tables=["posts"],
            missing_columns={"users": ["email"]},
            type_mismatches={"users": {"name": {"expected": "TEXT", "found": "INTEGER"}}},
        )

        data = report.to_dict()

        assert data["valid"] is False
        assert data["total_missing_tables"] == 1
        assert data["total_tables_with_missing_columns"] == 1
        assert data["total_tables_with_type_mismatches"] == 1
