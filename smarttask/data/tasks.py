"""
SmartTask — Task Repository & Query Engine.

Owns every Task in memory, assigns ids, and answers the per-owner queries
the front ends need (filters, search, sorting, stats). Owner emails match
case-insensitively. Every query returns a fresh list of copies.

Ids are positive and strictly increasing. On load the next id is the
highest id on file plus one; within a process ids are never handed out
twice, even after deletes.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path

from smarttask.core.errors import (
    AccountNotFoundError,
    EmptyOwnerError,
    EmptyTitleError,
    InvalidDueDateError,
    MissingDueDateError,
    PersistenceError,
    TaskNotFoundError,
)
from smarttask.data.accounts import AccountRepository
from smarttask.data.codec import decode_lines, decode_task, encode_task, parse_timestamp
from smarttask.data.models import (
    END_OF_DAY,
    Priority,
    Task,
    TaskStats,
    build_due,
    normalize_email,
    now_seconds,
)
from smarttask.data.schemas import TaskStatsView, TaskView
from smarttask.storage.line_store import LineStore, StorageError

logger = logging.getLogger(__name__)


def coerce_due(value: datetime | date | str | None) -> datetime:
    """Normalise a due value to a second-precision datetime.

    A bare date (or "YYYY-MM-DD" string) means the last second of that day.
    An offset is dropped and the clock reading kept, as the codec does on load.
    """
    if value is None:
        raise MissingDueDateError("Due date is required")
    if isinstance(value, datetime):
        return value.replace(microsecond=0, tzinfo=None)
    if isinstance(value, date):
        return datetime.combine(value, END_OF_DAY)
    raw = str(value).strip()
    if not raw:
        raise MissingDueDateError("Due date is required")
    try:
        if "T" in raw or " " in raw:
            return parse_timestamp(raw)
        return build_due(raw)
    except ValueError as exc:
        raise InvalidDueDateError(f"Invalid due date: {raw!r}") from exc


class TaskRepository:
    """File-backed storage and query engine for tasks."""

    def __init__(
        self,
        accounts: AccountRepository,
        path: str | Path | None = None,
        store: LineStore | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if path is None:
            from smarttask.config import settings
            path = settings.TASKS_FILE

        self._accounts = accounts
        self._path = Path(path)
        self._store = store or LineStore()
        self._clock = clock or now_seconds
        self._lock = threading.RLock()
        self._tasks: list[Task] = []
        self._next_id = 1
        self._load()

    # ---- persistence ----

    def _load(self) -> None:
        try:
            lines = self._store.read_lines(self._path)
        except StorageError as exc:
            logger.error("Could not read %s, starting with no tasks: %s", self._path, exc)
            lines = []

        records, skipped = decode_lines(lines, decode_task, str(self._path))
        seen: set[int] = set()
        tasks: list[Task] = []
        for task in records:
            if task.id in seen:
                skipped += 1
                logger.warning("Skipping duplicate task id %d in %s", task.id, self._path)
                continue
            seen.add(task.id)
            tasks.append(task)

        self._tasks = tasks
        self._next_id = max(seen, default=0) + 1
        logger.info(
            "Loaded %d tasks from %s (%d skipped), next id %d",
            len(tasks), self._path, skipped, self._next_id,
        )

    def _commit(self, tasks: list[Task]) -> None:
        """Flush `tasks` to disk, then make them the live collection."""
        try:
            self._store.write_lines(self._path, [encode_task(t) for t in tasks])
        except StorageError as exc:
            logger.error("Error saving tasks to %s: %s", self._path, exc)
            raise PersistenceError(f"Could not save tasks: {exc}") from exc
        self._tasks = tasks

    def _index_of(self, task_id: int) -> int | None:
        for i, task in enumerate(self._tasks):
            if task.id == task_id:
                return i
        return None

    def _mutate(self, task_id: int, change: Callable[[Task], None]) -> Task:
        with self._lock:
            idx = self._index_of(task_id)
            if idx is None:
                raise TaskNotFoundError(f"Task {task_id} not found")
            updated = replace(self._tasks[idx])
            change(updated)
            tasks = list(self._tasks)
            tasks[idx] = updated
            self._commit(tasks)
        return replace(updated)

    # ---- mutations ----

    def add_task(
        self,
        title: str,
        description: str | None,
        category: str | None,
        priority: Priority | str | None,
        due_date: datetime | date | str | None,
        owner_email: str,
    ) -> Task:
        """Create a task for a registered owner and assign it the next id."""
        if not title or not title.strip():
            raise EmptyTitleError("Task title cannot be empty")
        if not owner_email or not owner_email.strip():
            raise EmptyOwnerError("Owner email cannot be empty")
        due = coerce_due(due_date)

        with self._lock:
            if not self._accounts.email_exists(owner_email):
                raise AccountNotFoundError(f"No account for {owner_email!r}")
            task = Task(
                id=self._next_id,
                title=title.strip(),
                description=description or "",
                category=(category or "").strip(),
                priority=Priority.from_string(priority),
                due_date=due,
                owner_email=owner_email.strip(),
                created_at=self._clock(),
            )
            self._commit([*self._tasks, task])
            self._next_id += 1

        logger.info("Task added: #%d '%s' for %s", task.id, task.title, task.owner_email)
        return replace(task)

    def update_task(
        self,
        task_id: int,
        title: str | None = None,
        description: str | None = None,
        category: str | None = None,
        priority: Priority | str | None = None,
        due_date: datetime | date | str | None = None,
    ) -> Task:
        """Overwrite each field that is given; None (or a blank title) leaves the stored value alone."""
        due = coerce_due(due_date) if due_date is not None else None

        def _apply(task: Task) -> None:
            if title is not None and title.strip():
                task.title = title.strip()
            if description is not None:
                task.description = description
            if category is not None:
                task.category = category.strip()
            if priority is not None:
                task.priority = Priority.from_string(priority)
            if due is not None:
                task.due_date = due

        task = self._mutate(task_id, _apply)
        logger.info("Task #%d updated", task_id)
        return task

    def delete_task(self, task_id: int) -> None:
        with self._lock:
            idx = self._index_of(task_id)
            if idx is None:
                raise TaskNotFoundError(f"Task {task_id} not found")
            tasks = list(self._tasks)
            removed = tasks.pop(idx)
            self._commit(tasks)
        logger.info("Task #%d '%s' deleted", task_id, removed.title)

    def set_completed(self, task_id: int, completed: bool) -> Task:
        """Pending -> Completed stamps completed_at once; Completed -> Pending clears it."""
        task = self._mutate(task_id, lambda t: t.set_completed(completed, self._clock()))
        logger.info("Task #%d marked %s", task_id, "completed" if completed else "pending")
        return task

    def complete_task(self, task_id: int) -> Task:
        return self.set_completed(task_id, True)

    def mark_pending(self, task_id: int) -> Task:
        return self.set_completed(task_id, False)

    def toggle_completed(self, task_id: int) -> Task:
        with self._lock:
            current = self.by_id(task_id)
            if current is None:
                raise TaskNotFoundError(f"Task {task_id} not found")
            return self.set_completed(task_id, not current.completed)

    # ---- queries ----

    def _owned(self, email: str | None) -> list[Task]:
        """Copies of the owner's tasks in collection order. Caller holds the lock."""
        key = normalize_email(email)
        if not key:
            return []
        return [replace(t) for t in self._tasks if normalize_email(t.owner_email) == key]

    def _select(self, email: str | None, predicate: Callable[[Task], bool]) -> list[Task]:
        with self._lock:
            return [t for t in self._owned(email) if predicate(t)]

    def all_tasks(self) -> list[Task]:
        with self._lock:
            return [replace(t) for t in self._tasks]

    def by_id(self, task_id: int) -> Task | None:
        with self._lock:
            idx = self._index_of(task_id)
            return replace(self._tasks[idx]) if idx is not None else None

    def by_owner(self, email: str | None) -> list[Task]:
        with self._lock:
            return self._owned(email)

    def by_category(self, email: str | None, category: str | None) -> list[Task]:
        if category is None:
            return []
        wanted = category.strip().lower()
        return self._select(email, lambda t: t.category.strip().lower() == wanted)

    def by_priority(self, email: str | None, priority: Priority | str | None) -> list[Task]:
        if priority is None:
            return []
        wanted = Priority.from_string(priority)
        return self._select(email, lambda t: t.priority is wanted)

    def completed(self, email: str | None) -> list[Task]:
        return self._select(email, lambda t: t.completed)

    def pending(self, email: str | None) -> list[Task]:
        return self._select(email, lambda t: not t.completed)

    def overdue(self, email: str | None) -> list[Task]:
        now = self._clock()
        return self._select(email, lambda t: t.is_overdue(now))

    def due_today(self, email: str | None) -> list[Task]:
        """Pending tasks whose due date falls on today's calendar date."""
        now = self._clock()
        return self._select(email, lambda t: not t.completed and t.is_due_today(now))

    def search_by_title(self, email: str | None, term: str | None) -> list[Task]:
        if term is None:
            return []
        needle = term.lower()
        return self._select(email, lambda t: needle in t.title.lower())

    def sorted_by_due_date(self, email: str | None, ascending: bool = True) -> list[Task]:
        with self._lock:
            return sorted(self._owned(email), key=lambda t: t.due_date, reverse=not ascending)

    def sorted_by_priority(self, email: str | None) -> list[Task]:
        """HIGH, then MEDIUM, then LOW; ties keep collection order."""
        with self._lock:
            return sorted(self._owned(email), key=lambda t: t.priority.rank)

    def stats(self, email: str | None) -> TaskStats:
        """Counts computed now, against the current clock."""
        now = self._clock()
        with self._lock:
            tasks = self._owned(email)
        total = len(tasks)
        completed = sum(1 for t in tasks if t.completed)
        return TaskStats(
            total=total,
            completed=completed,
            pending=total - completed,
            overdue=sum(1 for t in tasks if t.is_overdue(now)),
            due_today=sum(1 for t in tasks if not t.completed and t.is_due_today(now)),
        )

    # ---- wire ----

    @staticmethod
    def to_wire(task: Task) -> dict:
        return TaskView.from_task(task).to_wire()

    @staticmethod
    def stats_to_wire(stats: TaskStats) -> dict:
        return TaskStatsView.from_stats(stats).to_wire()
