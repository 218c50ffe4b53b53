"""
Test configuration — puts the repo root on sys.path and keeps tests offline.

Tests never touch data/salon_clients.db: SQLite tests get a temp file and the
rest use the in-memory fakes from tests/fixtures.
"""

import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from salon_clients.config import logger as log  # noqa: E402
from salon_clients.container import reset_container  # noqa: E402
from tests.fixtures import FakeClientRepository, FakeTagRepository  # noqa: E402
from salon_clients.repositories.change_feed import LocalChangeFeed  # noqa: E402


log.set_level("error")


@pytest.fixture(autouse=True)
def _reset_container():
    yield
    reset_container()


@pytest.fixture
def feed():
    return LocalChangeFeed()


@pytest.fixture
def client_repo(feed):
    return FakeClientRepository(feed=feed)


@pytest.fixture
def tag_repo():
    return FakeTagRepository()


@pytest.fixture
def sqlite_db_path(tmp_path):
    return str(tmp_path / "clients.db")
