"""Database schema validation for startup health checks.

This module verifies that expected tables exist and that their columns carry
the expected declared types, catching drift between the code and an existing
database file before it causes runtime errors.

Type comparison is an exact match on the declared type string reported by
PRAGMA table_info: "VARCHAR" and "TEXT" are different types here.
Columns present in a table but not listed in the expectation are accepted.
"""

import logging
from contextlib import closing
from typing import Mapping

from sqlalchemy import exc, text
from sqlalchemy.engine import Connection, Engine

from ..core.database import DatabaseInitError
from ..schemas.schema_definition import SchemaReport

logger = logging.getLogger(__name__)


class SchemaValidationError(DatabaseInitError):
    """Raised when a table does not match its expected definition."""

    def __init__(self, table_name: str, message: str):
        self.table_name = table_name
        super().__init__(message)


class TableMissingError(SchemaValidationError):
    """Raised when an expected table is absent from the database."""

    def __init__(self, table_name: str):
        super().__init__(table_name, f"table '{table_name}' does not exist in the database")


class ColumnMissingError(SchemaValidationError):
    """Raised when an expected column is absent from its table."""

    def __init__(self, table_name: str, column_name: str):
        self.column_name = column_name
        super().__init__(table_name, f"missing expected column: '{column_name}'")


class ColumnTypeMismatchError(SchemaValidationError):
    """Raised when a column's declared type differs from the expected one."""

    def __init__(self, table_name: str, column_name: str, expected_type: str, found_type: str):
        self.column_name = column_name
        self.expected_type = expected_type
        self.found_type = found_type
        super().__init__(
            table_name,
            f"column '{column_name}' has unexpected type: "
            f"expected '{expected_type}', got '{found_type}'",
        )


class SchemaIntrospectionError(SchemaValidationError):
    """Raised when the catalog or column-info query itself fails."""


def table_exists(conn: Connection, table_name: str) -> bool:
    """Check sqlite_master for a table with the given name."""
    try:
        count = conn.execute(
            text("SELECT count(*) FROM sqlite_master WHERE type = 'table' AND name = :name"),
            {"name": table_name},
        ).scalar_one()
    except exc.SQLAlchemyError as e:
        raise SchemaIntrospectionError(
            table_name, f"error checking if table '{table_name}' exists: {e}"
        ) from e
    return count > 0


def get_table_columns(conn: Connection, table_name: str) -> dict[str, str]:
    """
    Get the declared type of every column of a table.

    Returns:
        Mapping of column name to declared type string (e.g. "INTEGER").
        Columns declared without a type map to "".
    """
    quoted = conn.dialect.identifier_preparer.quote_identifier(table_name)
    try:
        with closing(conn.exec_driver_sql(f"PRAGMA table_info({quoted})")) as result:
            # Row layout: cid, name, type, notnull, dflt_value, pk
            return {row[1]: row[2] for row in result}
    except exc.SQLAlchemyError as e:
        raise SchemaIntrospectionError(
            table_name, f"error querying table info for '{table_name}': {e}"
        ) from e


def validate_table_schema(
    conn: Connection,
    table_name: str,
    expected_columns: Mapping[str, str],
) -> None:
    """
    Validate one table against its expected columns.

    Stops at the first problem found, checking columns in the order the
    expectation lists them.

    Raises:
        TableMissingError: The table does not exist
        ColumnMissingError: An expected column is absent
        ColumnTypeMismatchError: A column's declared type differs
        SchemaIntrospectionError: A catalog query failed
    """
    if not table_exists(conn, table_name):
        raise TableMissingError(table_name)

    found_columns = get_table_columns(conn, table_name)

    for column_name, expected_type in expected_columns.items():
        if column_name not in found_columns:
            raise ColumnMissingError(table_name, column_name)
        found_type = found_columns[column_name]
        if found_type != expected_type:
            raise ColumnTypeMismatchError(table_name, column_name, expected_type, found_type)


def verify_schema(
    engine: Engine,
    expected_columns: Mapping[str, Mapping[str, str]],
) -> SchemaReport:
    """
    Check every expected table and collect all problems instead of stopping.

    Args:
        engine: Open database engine
        expected_columns: Mapping of table name to {column name: declared type}

    Returns:
        SchemaReport listing missing tables, missing columns and type mismatches

    Raises:
        SchemaIntrospectionError: If a catalog query fails
    """
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    type_mismatches: dict[str, dict[str, dict[str, str]]] = {}

    with engine.connect() as conn:
        for table_name, expected in expected_columns.items():
            if not table_exists(conn, table_name):
                missing_tables.append(table_name)
                logger.warning(f"Schema validation: Missing table '{table_name}'")
                continue

            found_columns = get_table_columns(conn, table_name)
            missing = [col for col in expected if col not in found_columns]
            if missing:
                missing_columns[table_name] = missing
                logger.warning(f"Schema validation: Table '{table_name}' missing columns: {missing}")

            mismatched = {
                col: {"expected": expected_type, "found": found_columns[col]}
                for col, expected_type in expected.items()
                if col in found_columns and found_columns[col] != expected_type
            }
            if mismatched:
                type_mismatches[table_name] = mismatched
                logger.warning(
                    f"Schema validation: Table '{table_name}' has columns with unexpected types: "
                    f"{sorted(mismatched)}"
                )

    report = SchemaReport(
        missing_tables=missing_tables,
        missing_columns=missing_columns,
        type_mismatches=type_mismatches,
    )

    if report.valid:
        logger.info("Schema validation passed: All expected tables and columns exist")
    else:
        logger.error(
            f"Schema validation failed: {len(missing_tables)} missing tables, "
            f"{len(missing_columns)} tables with missing columns, "
            f"{len(type_mismatches)} tables with type mismatches"
        )

    return report
