"""Schema reconciliation and validation."""

from .reconciler import TableCreationError, init_schema, initialize_database
from .schema_validator import (
    ColumnMissingError,
    ColumnTypeMismatchError,
    SchemaIntrospectionError,
    SchemaValidationError,
    TableMissingError,
    get_table_columns,
    table_exists,
    validate_table_schema,
    verify_schema,
)

__all__ = [
    "ColumnMissingError",
    "ColumnTypeMismatchError",
    "SchemaIntrospectionError",
    "SchemaValidationError",
    "TableCreationError",
    "TableMissingError",
    "get_table_columns",
    "init_schema",
    "initialize_database",
    "table_exists",
    "validate_table_schema",
    "verify_schema",
]
