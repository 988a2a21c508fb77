"""
SmartTask — Data Models.

Accounts and tasks are plain dataclasses. Repositories hand out copies, so
mutating a returned record never changes stored state.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from zoneinfo import ZoneInfo

END_OF_DAY = time(23, 59, 59)


def now_seconds() -> datetime:
    """Local wall-clock time truncated to whole seconds (the stored precision)."""
    return datetime.now().replace(microsecond=0)


def wall_clock(tz_name: str = "") -> Callable[[], datetime]:
    """Clock returning naive wall time in `tz_name` (host local time when empty)."""
    if not tz_name:
        return now_seconds
    zone = ZoneInfo(tz_name)

    def _now() -> datetime:
        return datetime.now(zone).replace(tzinfo=None, microsecond=0)

    return _now


class Priority(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort key: HIGH first."""
        return _PRIORITY_RANK[self]

    @classmethod
    def from_string(cls, raw: str | Priority | None) -> Priority:
        """Lenient parse; anything unrecognised becomes MEDIUM."""
        if isinstance(raw, Priority):
            return raw
        if not raw:
            return cls.MEDIUM
        value = raw.strip().lower()
        for p in cls:
            if p.value == value:
                return p
        return cls.MEDIUM


_PRIORITY_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


@dataclass
class Account:
    """A registered user. Identity is the email, compared case-insensitively."""

    email: str
    first_name: str
    last_name: str
    student_id: str
    major: str
    password_hash: str
    created_at: datetime = field(default_factory=now_seconds)
    last_login_at: datetime | None = None
    is_active: bool = True

    @property
    def email_key(self) -> str:
        return normalize_email(self.email)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def initials(self) -> str:
        letters = [n[0] for n in (self.first_name, self.last_name) if n]
        return "".join(letters).upper()


@dataclass
class Task:
    """A unit of work owned by one account.

    `completed_at` follows `completed`: set when the task becomes completed,
    cleared when it goes back to pending.
    """

    id: int
    title: str
    description: str
    category: str
    priority: Priority
    due_date: datetime
    owner_email: str
    completed: bool = False
    created_at: datetime = field(default_factory=now_seconds)
    completed_at: datetime | None = None

    def set_completed(self, completed: bool, now: datetime | None = None) -> None:
        self.completed = completed
        if completed and self.completed_at is None:
            self.completed_at = now or now_seconds()
        elif not completed:
            self.completed_at = None

    def mark_completed(self, now: datetime | None = None) -> None:
        self.set_completed(True, now)

    def mark_pending(self) -> None:
        self.set_completed(False)

    def is_owned_by(self, email: str) -> bool:
        return normalize_email(self.owner_email) == normalize_email(email)

    def is_overdue(self, now: datetime) -> bool:
        return not self.completed and self.due_date < now

    def is_due_today(self, now: datetime) -> bool:
        return self.due_date.date() == now.date()

    def days_until_due(self, now: datetime) -> int:
        """Whole days between now and the due date, truncated toward zero."""
        seconds = (self.due_date - now).total_seconds()
        return math.trunc(seconds / 86400)


@dataclass(frozen=True)
class TaskStats:
    total: int
    completed: int
    pending: int
    overdue: int
    due_today: int


@dataclass(frozen=True)
class AccountStats:
    total: int
    active: int
    inactive: int


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def build_due(date_str: str, time_str: str | None = None) -> datetime:
    """Combine an ISO date with an optional HH:MM time.

    Without a time the task is due at the last second of that day.
    Raises ValueError on malformed input.
    """
    day = date.fromisoformat(date_str.strip())
    if time_str and time_str.strip():
        at = time.fromisoformat(time_str.strip()).replace(microsecond=0)
    else:
        at = END_OF_DAY
    return datetime.combine(day, at)
