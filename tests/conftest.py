"""
Test Configuration Module
"""

import pytest
from typing import Generator

from table_dao.config import get_settings
from table_dao.infrastructure.database import DatabaseConnection
from table_dao.infrastructure.query_builder import QueryBuilder
from tests.fixtures import PostRepository, RecordingHooks, metadata


# Use in-memory database for testing
TEST_DATABASE_URL = "sqlite://"


@pytest.fixture
def db() -> Generator[DatabaseConnection, None, None]:
    """Connection to a fresh in-memory database with the test tables created"""
    connection = DatabaseConnection.from_url(TEST_DATABASE_URL)
    metadata.create_all(connection.connection)

    yield connection

    connection.close()
    connection.engine.dispose()


@pytest.fixture
def query(db) -> QueryBuilder:
    return QueryBuilder(db)


@pytest.fixture
def hooks() -> RecordingHooks:
    return RecordingHooks()


@pytest.fixture
def repo(db, hooks) -> PostRepository:
    return PostRepository(db, hooks)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
