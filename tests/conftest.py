"""
Pytest configuration and shared fixtures.

Every test works on its own SQLite file under pytest's tmp_path, so no
fixture shares state with another test.
"""

import os
from pathlib import Path
from typing import Generator

import pytest
from sqlalchemy.engine import Engine

from sqlite_base.core.config import Settings, get_settings
from sqlite_base.core.database import dispose_database, open_database


@pytest.fixture(autouse=True)
def clear_settings_cache(monkeypatch):
    """
    Isolate tests from the caller's environment.

    Drops SQLITE_BASE_* variables and the cached settings instance so each
    test sees the defaults unless it sets its own values.
    """
    for key in list(os.environ):
        if key.startswith("SQLITE_BASE_"):
            monkeypatch.delenv(key)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def db_path(tmp_path) -> Path:
    """Path to a database file that does not exist yet."""
    return tmp_path / "test.db"


@pytest.fixture
def test_settings(db_path) -> Settings:
    """Default pool settings pointed at the test database."""
    return Settings(database_path=db_path)


@pytest.fixture
def engine(db_path, test_settings) -> Generator[Engine, None, None]:
    """
    Open engine on a fresh database file.

    Disposed after the test so no pooled connection outlives tmp_path.
    """
    engine = open_database(db_path, test_settings)
    yield engine
    dispose_database(engine)


@pytest.fixture
def users_schema() -> dict[str, str]:
    """Single-table schema map."""
    return {
        "users": "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT, email TEXT)",
    }


@pytest.fixture
def users_columns() -> dict[str, dict[str, str]]:
    """Expected columns matching users_schema."""
    return {
        "users": {"id": "INTEGER", "name": "TEXT", "email": "TEXT"},
    }


@pytest.fixture
def blog_schema() -> dict[str, str]:
    """Two independent tables."""
    return {
        "users": "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT, email TEXT)",
        "posts": "CREATE TABLE posts (id INTEGER PRIMARY KEY, title TEXT, content TEXT)",
    }


@pytest.fixture
def blog_columns() -> dict[str, dict[str, str]]:
    """Expected columns matching blog_schema."""
    return {
        "users": {"id": "INTEGER", "name": "TEXT", "email": "TEXT"},
        "posts": {"id": "INTEGER", "title": "TEXT", "content": "TEXT"},
    }
