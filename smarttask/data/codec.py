"""
SmartTask — Record Codec.

One record per line, fields joined with "|":

    accounts: email|firstName|lastName|studentId|major|passwordHash|createdAt|lastLoginAt|isActive
    tasks:    id|title|description|category|priority|dueDate|completed|createdAt|completedAt|ownerEmail

Free text is escaped (backslash, "|", CR, LF) so a title like "a|b" survives
a round trip. Timestamps are written as YYYY-MM-DDTHH:MM:SS; an absent
timestamp is the literal "null".

Decoders never raise: a line that cannot be parsed yields None and the
caller decides how to report it.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import TypeVar

from smarttask.data.models import Account, Priority, Task

logger = logging.getLogger(__name__)

DELIMITER = "|"
NULL = "null"

ACCOUNT_FIELDS = 9
TASK_FIELDS = 10

_ESCAPES = {"\\": "\\\\", DELIMITER: "\\" + DELIMITER, "\n": "\\n", "\r": "\\r"}
_UNESCAPES = {"n": "\n", "r": "\r"}

# Stored precision is whole seconds; older files may carry 3 or 9 fractional digits.
_FRACTION = re.compile(r"\.\d+")

R = TypeVar("R")


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def escape(text: str | None) -> str:
    if not text:
        return ""
    return "".join(_ESCAPES.get(ch, ch) for ch in text)


def split_fields(line: str) -> list[str]:
    """Split on unescaped delimiters and undo the escaping in each field."""
    fields: list[str] = []
    current: list[str] = []
    chars = iter(line)
    for ch in chars:
        if ch == "\\":
            nxt = next(chars, None)
            if nxt is None:
                current.append("\\")
            else:
                current.append(_UNESCAPES.get(nxt, nxt))
        elif ch == DELIMITER:
            fields.append("".join(current))
            current = []
        else:
            current.append(ch)
    fields.append("".join(current))
    return fields


def format_timestamp(value: datetime) -> str:
    return value.replace(microsecond=0).isoformat(timespec="seconds")


def format_nullable(value: datetime | None) -> str:
    return NULL if value is None else format_timestamp(value)


def parse_timestamp(raw: str) -> datetime:
    """Parse an ISO-8601 local date-time; accepts minute-only and fractional forms."""
    parsed = datetime.fromisoformat(_FRACTION.sub("", raw.strip(), count=1))
    # Everything in memory is naive local time
    return parsed.replace(tzinfo=None)


def parse_nullable(raw: str) -> datetime | None:
    if raw.strip() in ("", NULL):
        return None
    return parse_timestamp(raw)


def parse_bool(raw: str) -> bool:
    return raw.strip().lower() == "true"


def format_bool(value: bool) -> str:
    return "true" if value else "false"


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


def encode_account(account: Account) -> str:
    return DELIMITER.join([
        escape(account.email),
        escape(account.first_name),
        escape(account.last_name),
        escape(account.student_id),
        escape(account.major),
        escape(account.password_hash),
        format_timestamp(account.created_at),
        format_nullable(account.last_login_at),
        format_bool(account.is_active),
    ])


def decode_account(line: str) -> Account | None:
    parts = split_fields(line)
    if len(parts) < ACCOUNT_FIELDS:
        return None
    if not parts[0].strip():
        return None
    try:
        return Account(
            email=parts[0].strip(),
            first_name=parts[1],
            last_name=parts[2],
            student_id=parts[3],
            major=parts[4],
            password_hash=parts[5],
            created_at=parse_timestamp(parts[6]),
            last_login_at=parse_nullable(parts[7]),
            is_active=parse_bool(parts[8]),
        )
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


def encode_task(task: Task) -> str:
    return DELIMITER.join([
        str(task.id),
        escape(task.title),
        escape(task.description),
        escape(task.category),
        task.priority.value,
        format_timestamp(task.due_date),
        format_bool(task.completed),
        format_timestamp(task.created_at),
        format_nullable(task.completed_at),
        escape(task.owner_email),
    ])


def decode_task(line: str) -> Task | None:
    parts = split_fields(line)
    if len(parts) < TASK_FIELDS:
        return None
    try:
        task_id = int(parts[0].strip())
        if task_id <= 0:
            return None
        completed = parse_bool(parts[6])
        completed_at = parse_nullable(parts[8])
        return Task(
            id=task_id,
            title=parts[1],
            description=parts[2],
            category=parts[3],
            priority=Priority.from_string(parts[4]),
            due_date=parse_timestamp(parts[5]),
            owner_email=parts[9].strip(),
            completed=completed,
            created_at=parse_timestamp(parts[7]),
            # A pending task never carries a completion time
            completed_at=completed_at if completed else None,
        )
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Bulk load
# ---------------------------------------------------------------------------


def decode_lines(
    lines: Iterable[str], decode: Callable[[str], R | None], source: str = "",
) -> tuple[list[R], int]:
    """Decode every non-blank line. Returns (records, skipped_count)."""
    records: list[R] = []
    skipped = 0
    for lineno, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        record = decode(line)
        if record is None:
            skipped += 1
            logger.warning("Skipping corrupt record at %s:%d", source or "<lines>", lineno)
            continue
        records.append(record)
    return records, skipped
