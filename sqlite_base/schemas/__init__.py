"""
Pydantic schemas for table definitions and validation reports.
"""

from .schema_definition import (
    SchemaDefinition,
    SchemaReport,
    TableDefinition,
    load_schema_definition,
)

__all__ = [
    "SchemaDefinition",
    "SchemaReport",
    "TableDefinition",
    "load_schema_definition",
]
