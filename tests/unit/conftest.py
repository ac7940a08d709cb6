"""
Unit Test Fixtures.

Fixtures for unit tests - all external dependencies are mocked.
Unit tests should be fast and isolated, never touching real databases.
"""

from datetime import datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from notekeeper.models.note import Note, Priority, Status
from notekeeper.models.user import Role, User

OWNER_ID = "owner-1"
OTHER_OWNER_ID = "owner-2"


# =============================================================================
# Database Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_db_session() -> AsyncMock:
    """
    Mock database session for unit tests.

    Usage:
        def test_repository(mock_db_session: AsyncMock):
            repo = NoteRepository(mock_db_session)
    """
    session = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.execute = AsyncMock()
    session.add = MagicMock()
    session.delete = AsyncMock()
    return session


@pytest.fixture
def mock_db_result() -> MagicMock:
    """
    Mock database query result.

    Usage:
        def test_query(mock_db_session, mock_db_result):
            mock_db_result.scalar_one_or_none.return_value = note
            mock_db_session.execute.return_value = mock_db_result
    """
    result = MagicMock()
    result.scalar_one_or_none = MagicMock(return_value=None)
    result.scalar_one = MagicMock(return_value=0)
    result.scalars = MagicMock()
    result.scalars.return_value.all = MagicMock(return_value=[])
    return result


# =============================================================================
# Model Factories
# =============================================================================


def make_note(**overrides: Any) -> Note:
    """Build a transient Note with every column populated."""
    values: dict[str, Any] = {
        "id": "note-1",
        "title": "Write report",
        "content": "Quarterly numbers",
        "priority": Priority.MEDIUM,
        "status": Status.ACTIVE,
        "category": "work",
        "owner_id": OWNER_ID,
        "created_at": datetime(2024, 5, 1, 9, 0),
        "updated_at": datetime(2024, 5, 1, 9, 0),
        "completed_at": None,
    }
    values.update(overrides)
    return Note(**values)


def make_user(**overrides: Any) -> User:
    """Build a transient User with every column populated."""
    values: dict[str, Any] = {
        "id": OWNER_ID,
        "username": "alice",
        "email": "alice@notekeeper.io",
        "password_hash": "not-a-real-hash",
        "first_name": "Alice",
        "last_name": None,
        "role": Role.USER,
        "enabled": True,
        "created_at": datetime(2024, 1, 1),
        "updated_at": datetime(2024, 1, 1),
    }
    values.update(overrides)
    return User(**values)


async def apply_changes(instance: Any, **changes: Any) -> Any:
    """Side effect for a mocked ``repo.update``: set attributes like the real one."""
    for key, value in changes.items():
        setattr(instance, key, value)
    return instance


@pytest.fixture
def note_factory():
    """Provide make_note for building Note rows."""
    return make_note


@pytest.fixture
def user_factory():
    """Provide make_user for building User rows."""
    return make_user


@pytest.fixture
def update_side_effect():
    """Provide a side effect for mocked ``repo.update`` calls."""
    return apply_changes


# =============================================================================
# Logging Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_logger() -> MagicMock:
    """
    Mock logger for testing logging calls.

    Usage:
        def test_logging(mock_logger):
            service._logger = mock_logger
            ...
            mock_logger.warning.assert_called_once()
    """
    logger = MagicMock()
    logger.debug = MagicMock()
    logger.info = MagicMock()
    logger.warning = MagicMock()
    logger.error = MagicMock()
    logger.exception = MagicMock()
    return logger
