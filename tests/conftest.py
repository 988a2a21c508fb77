"""Shared test fixtures and configuration.

Sets environment variables so smarttask.config loads fast, test-friendly
settings, and provides repositories backed by temp files.
"""

import os

# Patch env vars BEFORE any smarttask imports
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATA_DIR", "data-test")
os.environ.setdefault("TIMEZONE", "")

from datetime import datetime

import pytest

# Wednesday 2024-01-10, mid-morning
FIXED_NOW = datetime(2024, 1, 10, 10, 0, 0)


class FakeClock:
    """Settable clock for predicates that depend on "now"."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def line_store():
    from smarttask.storage.line_store import LineStore
    return LineStore()


@pytest.fixture
def accounts_path(tmp_path):
    return tmp_path / "data" / "students.txt"


@pytest.fixture
def tasks_path(tmp_path):
    return tmp_path / "data" / "tasks.txt"


@pytest.fixture
def account_repo(accounts_path, clock):
    """Return an AccountRepository backed by a temp file."""
    from smarttask.data.accounts import AccountRepository
    return AccountRepository(path=accounts_path, clock=clock, bcrypt_rounds=4)


@pytest.fixture
def ann(account_repo):
    """A registered account for task tests."""
    return account_repo.register("Ann", "Lee", "ann@x.com", "S1", "CS", "secret1")


@pytest.fixture
def task_repo(account_repo, ann, tasks_path, clock):
    """Return a TaskRepository backed by a temp file, with Ann registered."""
    from smarttask.data.tasks import TaskRepository
    return TaskRepository(account_repo, path=tasks_path, clock=clock)
