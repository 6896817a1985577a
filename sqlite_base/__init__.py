"""
Startup schema initialization for SQLite data files.

Typical use:

    engine = initialize_database(path, TABLE_SCHEMAS, EXPECTED_COLUMNS)
"""

from .core.database import (
    DatabaseConnectionError,
    DatabaseInitError,
    DatabaseProbeError,
    database_exists,
    open_database,
)
from .db.reconciler import TableCreationError, init_schema, initialize_database
from .db.schema_validator import (
    ColumnMissingError,
    ColumnTypeMismatchError,
    SchemaIntrospectionError,
    SchemaValidationError,
    TableMissingError,
)

__version__ = "1.0.0"

__all__ = [
    "ColumnMissingError",
    "ColumnTypeMismatchError",
    "DatabaseConnectionError",
    "DatabaseInitError",
    "DatabaseProbeError",
    "SchemaIntrospectionError",
    "SchemaValidationError",
    "TableCreationError",
    "TableMissingError",
    "database_exists",
    "init_schema",
    "initialize_database",
    "open_database",
]
