"""
SmartTask — Process wiring.

Builds the one AccountRepository and one TaskRepository a process should
own. Front ends receive this container and never construct repositories
themselves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from smarttask.config import Settings
from smarttask.data.accounts import AccountRepository
from smarttask.data.models import wall_clock
from smarttask.data.tasks import TaskRepository
from smarttask.storage.line_store import LineStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Repositories:
    """Dependency registry shared across the process lifetime."""

    settings: Settings
    accounts: AccountRepository
    tasks: TaskRepository


def build_repositories(settings: Settings) -> Repositories:
    store = LineStore()
    clock = wall_clock(settings.TIMEZONE)
    accounts = AccountRepository(
        path=settings.ACCOUNTS_FILE,
        store=store,
        clock=clock,
        bcrypt_rounds=settings.BCRYPT_ROUNDS,
    )
    tasks = TaskRepository(accounts, path=settings.TASKS_FILE, store=store, clock=clock)
    logger.debug(
        "Repositories ready (accounts=%s, tasks=%s)",
        settings.ACCOUNTS_FILE, settings.TASKS_FILE,
    )
    return Repositories(settings=settings, accounts=accounts, tasks=tasks)
