"""pytest configuration and fixtures."""

from typing import Iterator

import pytest

from cupid.services.container import ServiceContainer, build_services
from cupid.utils.database import Database
from tests.mocks.notifications import RecordingNotificationDispatcher

SEEDED_USERS = ["1", "2", "3", "4", "5"]


@pytest.fixture
def database_url(tmp_path) -> str:
    """File-backed SQLite URL, so several connections see the same data."""
    return f"sqlite:///{tmp_path / 'cupid_test.db'}"


@pytest.fixture
def db(database_url) -> Iterator[Database]:
    database = Database(database_url, max_retries=3, retry_backoff=0.01, echo=False)
    database.create_tables()
    yield database
    database.dispose()


@pytest.fixture
def dispatcher() -> RecordingNotificationDispatcher:
    return RecordingNotificationDispatcher()


@pytest.fixture
def services(db, dispatcher) -> ServiceContainer:
    """Service graph over a fresh database with users 1-5 registered."""
    container = build_services(db, dispatcher)
    for user_id in SEEDED_USERS:
        container.users.create_user(user_id, username=f"user{user_id}")
    return container


@pytest.fixture
def matched(services, dispatcher) -> ServiceContainer:
    """Users 1 and 2 are matched; the setup notifications are discarded."""
    services.interactions.like("1", "2")
    services.interactions.like("2", "1")
    dispatcher.clear()
    return services
