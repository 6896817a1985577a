"""
Pydantic schemas for declarative table definitions and validation reports.

A schema definition file is JSON of the form:

    {
        "tables": {
            "users": {
                "ddl": "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT)",
                "columns": {"id": "INTEGER", "name": "TEXT"}
            }
        }
    }

Tables listed without "columns" are created on a new database but skipped
when validating an existing one.
"""

from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator


class TableDefinition(BaseModel):
    """Creation statement and expected columns for one table."""

    ddl: str = Field(
        ...,
        description="CREATE TABLE statement executed when the database is new",
        min_length=1,
    )
    columns: Optional[Dict[str, str]] = Field(
        default=None,
        description="Mapping of column names to their expected declared types",
    )

    @field_validator("ddl")
    @classmethod
    def validate_ddl_not_blank(cls, v: str) -> str:
        """Reject whitespace-only statements."""
        if not v.strip():
            raise ValueError("ddl must not be blank")
        return v


class SchemaDefinition(BaseModel):
    """Ordered set of table definitions for one database file."""

    tables: Dict[str, TableDefinition] = Field(
        ...,
        description="Table definitions keyed by table name, in creation order",
        min_length=1,
    )

    def table_schemas(self) -> Dict[str, str]:
        """Mapping of table name to creation statement."""
        return {name: table.ddl for name, table in self.tables.items()}

    def expected_columns(self) -> Dict[str, Dict[str, str]]:
        """Mapping of table name to expected columns, for tables that declare them."""
        return {
            name: dict(table.columns)
            for name, table in self.tables.items()
            if table.columns is not None
        }


class SchemaReport(BaseModel):
    """Result of a full schema sweep over an existing database."""

    missing_tables: List[str] = Field(default_factory=list)
    missing_columns: Dict[str, List[str]] = Field(default_factory=dict)
    type_mismatches: Dict[str, Dict[str, Dict[str, str]]] = Field(
        default_factory=dict,
        description="table -> column -> {'expected': ..., 'found': ...}",
    )

    @property
    def valid(self) -> bool:
        return not (self.missing_tables or self.missing_columns or self.type_mismatches)

    def to_dict(self) -> dict:
        """Generate a structured schema validation report."""
        return {
            "valid": self.valid,
            "missing_tables": self.missing_tables,
            "missing_columns": self.missing_columns,
            "type_mismatches": self.type_mismatches,
            "total_missing_tables": len(self.missing_tables),
            "total_tables_with_missing_columns": len(self.missing_columns),
            "total_tables_with_type_mismatches": len(self.type_mismatches),
        }


def load_schema_definition(path: Union[str, Path]) -> SchemaDefinition:
    """
    Load and validate a schema definition JSON file.

    Raises:
        OSError: If the file cannot be read
        pydantic.ValidationError: If the content is not valid UTF-8 JSON or not
            a valid definition
    """
    return SchemaDefinition.model_validate_json(Path(path).read_bytes())
