#!/usr/bin/env python3
"""Database initialization script for deploys and local setup.

Creates the tables of a schema definition file in a new SQLite database, or
validates an existing database against it.

Usage:
    sqlite-base-init SCHEMA_FILE [--database PATH] [--verify-only] [--json]

    --database     Database file (defaults to SQLITE_BASE_DATABASE_PATH)
    --verify-only  Report every schema problem of an existing database
                   without creating anything
    --json         Print the verification report as JSON

Exit codes:
    0 - Schema is valid (or was created)
    1 - Schema validation failed
    2 - Error during initialization
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from ..core.config import get_settings
from ..core.database import (
    DatabaseInitError,
    database_exists,
    dispose_database,
    open_database,
)
from ..db.reconciler import initialize_database
from ..db.schema_validator import SchemaIntrospectionError, SchemaValidationError, verify_schema
from ..schemas.schema_definition import SchemaReport, load_schema_definition

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_ERROR = 2


def print_report(report: SchemaReport) -> None:
    """Print a formatted schema validation report."""
    print("\n" + "=" * 60)
    print("DATABASE SCHEMA VALIDATION REPORT")
    print("=" * 60)

    if report.valid:
        print("\n✓ Schema is valid - all expected tables and columns exist\n")
    else:
        print("\n✗ Schema validation FAILED\n")

        if report.missing_tables:
            print(f"Missing tables ({len(report.missing_tables)}):")
            for table in report.missing_tables:
                print(f"  - {table}")
            print()

        if report.missing_columns:
            print(f"Tables with missing columns ({len(report.missing_columns)}):")
            for table, cols in report.missing_columns.items():
                print(f"  - {table}: {', '.join(cols)}")
            print()

        if report.type_mismatches:
            print(f"Tables with unexpected column types ({len(report.type_mismatches)}):")
            for table, cols in report.type_mismatches.items():
                for col, types in cols.items():
                    print(f"  - {table}.{col}: expected {types['expected']}, got {types['found']}")
            print()

    print("=" * 60)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create or validate a SQLite database schema")
    parser.add_argument("schema_file", type=Path, help="JSON schema definition file")
    parser.add_argument("--database", type=Path, help="Database file (defaults to SQLITE_BASE_DATABASE_PATH)")
    parser.add_argument("--verify-only", action="store_true", help="Only report schema problems")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON (with --verify-only)")
    return parser


def run_verify(db_path: Path, expected_columns: dict, as_json: bool) -> int:
    """Verify an existing database and print the report."""
    if not database_exists(db_path):
        print(f"Error: Database file not found at '{db_path}'")
        return EXIT_ERROR

    engine = open_database(db_path)
    try:
        report = verify_schema(engine, expected_columns)
    finally:
        dispose_database(engine)

    if as_json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print_report(report)

    return EXIT_OK if report.valid else EXIT_INVALID


def run_init(db_path: Path, table_schemas: dict, expected_columns: dict) -> int:
    """Create or validate the database, stopping at the first problem."""
    engine = initialize_database(db_path, table_schemas, expected_columns)
    dispose_database(engine)
    print(f"✓ Database '{db_path}' is ready ({len(table_schemas)} tables)")
    return EXIT_OK


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.json and not args.verify_only:
        parser.error("--json requires --verify-only")

    settings = get_settings()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    db_path = args.database or settings.database_path

    try:
        definition = load_schema_definition(args.schema_file)
    except (OSError, ValidationError) as e:
        print(f"Error: Invalid schema definition file '{args.schema_file}': {e}")
        return EXIT_ERROR

    try:
        if args.verify_only:
            return run_verify(db_path, definition.expected_columns(), args.json)
        return run_init(db_path, definition.table_schemas(), definition.expected_columns())
    except SchemaIntrospectionError as e:
        print(f"\nError reading schema of table '{e.table_name}': {e}")
        return EXIT_ERROR
    except SchemaValidationError as e:
        print(f"\n✗ Schema validation failed for table '{e.table_name}': {e}")
        return EXIT_INVALID
    except DatabaseInitError as e:
        print(f"\nError during database initialization: {e}")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
