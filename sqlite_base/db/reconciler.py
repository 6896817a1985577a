"""Schema reconciliation run once at process startup.

For a brand-new database file every table is created from its DDL. For an
existing file every table is validated against its expected columns instead.
Tables are processed one at a time, in the order the mapping lists them.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Mapping, Optional, Union

from sqlalchemy import exc
from sqlalchemy.engine import Engine

from ..core.config import Settings
from ..core.database import DatabaseInitError, database_exists, dispose_database, open_database
from .schema_validator import SchemaValidationError, validate_table_schema

logger = logging.getLogger(__name__)


class TableCreationError(DatabaseInitError):
    """Raised when a table's creation statement fails."""

    def __init__(self, table_name: str, reason: str):
        self.table_name = table_name
        self.reason = reason
        super().__init__(f"Error creating table '{table_name}': {reason}")


def _create_table(engine: Engine, table_name: str, ddl: str) -> None:
    logger.debug(f"INIT: DB - Creating table '{table_name}'...")
    try:
        raw = engine.raw_connection()
    except exc.SQLAlchemyError as e:
        logger.error(f"Error creating table '{table_name}': {e}")
        raise TableCreationError(table_name, str(e)) from e

    try:
        # executescript runs every statement of the entry (table plus its
        # indexes) and commits; earlier tables survive a later failure
        raw.driver_connection.executescript(ddl)
    except sqlite3.Error as e:
        logger.error(f"Error creating table '{table_name}': {e}")
        raise TableCreationError(table_name, str(e)) from e
    finally:
        raw.close()

    logger.debug(f"INIT: DB - Table '{table_name}' created successfully!")


def _validate_table(
    engine: Engine,
    db_path: Union[str, Path],
    table_name: str,
    expected_columns: Mapping[str, Mapping[str, str]],
) -> None:
    logger.debug(
        f"INIT: DB - Database file '{db_path}' found. Validating schema for table '{table_name}'..."
    )
    expected = expected_columns.get(table_name)
    if expected is None:
        logger.warning(
            f"No expected column definitions for table '{table_name}'. "
            f"Skipping schema validation for this table."
        )
        return

    try:
        with engine.connect() as conn:
            validate_table_schema(conn, table_name, expected)
    except SchemaValidationError as e:
        logger.error(f"Schema validation failed for table '{table_name}': {e}")
        raise

    logger.debug(f"INIT: DB - Schema for table '{table_name}' validated successfully.")


def init_schema(
    db_path: Union[str, Path],
    engine: Engine,
    table_schemas: Mapping[str, str],
    expected_columns: Mapping[str, Mapping[str, str]],
    db_exists: bool,
) -> None:
    """
    Create or validate every table in table_schemas.

    Args:
        db_path: Database file path, used for diagnostics only
        engine: Open database engine
        table_schemas: Mapping of table name to CREATE TABLE statement
        expected_columns: Mapping of table name to {column name: declared type};
            tables without an entry are skipped (with a warning) when validating
        db_exists: Whether the file existed before open_database() was called

    Raises:
        TableCreationError: A creation statement failed (new database)
        SchemaValidationError: A table failed validation (existing database)
    """
    for table_name, ddl in table_schemas.items():
        if not db_exists:
            _create_table(engine, table_name, ddl)
        else:
            _validate_table(engine, db_path, table_name, expected_columns)

    logger.debug("INIT: DB - All tables processed successfully.")


def initialize_database(
    db_path: Union[str, Path],
    table_schemas: Mapping[str, str],
    expected_columns: Mapping[str, Mapping[str, str]],
    settings: Optional[Settings] = None,
) -> Engine:
    """
    Run the full startup sequence: probe, open, reconcile.

    Returns:
        Engine: The open engine, owned by the caller from here on

    Raises:
        DatabaseInitError: Any probe, connection, creation or validation failure.
            The engine is disposed before the error propagates.
    """
    db_exists = database_exists(db_path)
    engine = open_database(db_path, settings)

    try:
        init_schema(db_path, engine, table_schemas, expected_columns, db_exists)
    except DatabaseInitError:
        dispose_database(engine)
        raise

    return engine
