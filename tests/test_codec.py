"""Tests for smarttask.data.codec — line encoding of accounts and tasks."""

from datetime import datetime

from smarttask.data.codec import (
    decode_account,
    decode_lines,
    decode_task,
    encode_account,
    encode_task,
    escape,
    split_fields,
)
from smarttask.data.models import Account, Priority, Task


def _task(**overrides) -> Task:
    fields = dict(
        id=7,
        title="Study",
        description="Chapter 4",
        category="study",
        priority=Priority.HIGH,
        due_date=datetime(2024, 1, 10, 23, 59, 59),
        owner_email="ann@x.com",
        completed=False,
        created_at=datetime(2024, 1, 5, 9, 12, 0),
        completed_at=None,
    )
    fields.update(overrides)
    return Task(**fields)


def _account(**overrides) -> Account:
    fields = dict(
        email="ann@x.com",
        first_name="Ann",
        last_name="Lee",
        student_id="S1",
        major="CS",
        password_hash="$2b$04$abcdefghijklmnopqrstuu",
        created_at=datetime(2024, 1, 1, 8, 0, 0),
        last_login_at=None,
        is_active=True,
    )
    fields.update(overrides)
    return Account(**fields)


class TestTaskLines:
    def test_encode_layout(self):
        line = encode_task(_task())
        assert line == (
            "7|Study|Chapter 4|study|high|2024-01-10T23:59:59|false|"
            "2024-01-05T09:12:00|null|ann@x.com"
        )

    def test_round_trip(self):
        task = _task(completed=True, completed_at=datetime(2024, 1, 9, 18, 30, 0))
        assert decode_task(encode_task(task)) == task

    def test_round_trip_with_delimiter_and_newlines_in_text(self):
        task = _task(title="a|b", description="line1\nline2\r\\end", category="x|y")
        line = encode_task(task)
        assert "\n" not in line
        assert decode_task(line) == task

    def test_decode_legacy_line(self):
        # Older files: minute-only due date, fractional created time
        line = "3|Essay||writing|LOW|2024-02-01T23:59|true|2024-01-20T10:15:30.123456789|2024-01-25T12:00|Ann@X.com"
        task = decode_task(line)
        assert task is not None
        assert task.id == 3
        assert task.description == ""
        assert task.priority is Priority.LOW
        assert task.due_date == datetime(2024, 2, 1, 23, 59, 0)
        assert task.created_at == datetime(2024, 1, 20, 10, 15, 30)
        assert task.completed is True
        assert task.completed_at == datetime(2024, 1, 25, 12, 0, 0)
        assert task.owner_email == "Ann@X.com"

    def test_unknown_priority_becomes_medium(self):
        line = encode_task(_task()).replace("|high|", "|urgent|")
        assert decode_task(line).priority is Priority.MEDIUM

    def test_too_few_fields(self):
        assert decode_task("1|Study|desc|study|high") is None

    def test_bad_id(self):
        assert decode_task(encode_task(_task()).replace("7|", "x|", 1)) is None

    def test_non_positive_id(self):
        assert decode_task(encode_task(_task(id=0))) is None

    def test_bad_timestamp(self):
        line = encode_task(_task()).replace("2024-01-10T23:59:59", "tomorrow")
        assert decode_task(line) is None

    def test_pending_task_drops_stray_completion_time(self):
        line = encode_task(_task()).replace("|null|", "|2024-01-09T10:00:00|")
        assert decode_task(line).completed_at is None


class TestAccountLines:
    def test_encode_layout(self):
        line = encode_account(_account(last_login_at=datetime(2024, 1, 2, 9, 0, 0)))
        assert line == (
            "ann@x.com|Ann|Lee|S1|CS|$2b$04$abcdefghijklmnopqrstuu|"
            "2024-01-01T08:00:00|2024-01-02T09:00:00|true"
        )

    def test_round_trip(self):
        account = _account(major="Math | Physics", is_active=False)
        assert decode_account(encode_account(account)) == account

    def test_null_last_login(self):
        assert decode_account(encode_account(_account())).last_login_at is None

    def test_too_few_fields(self):
        assert decode_account("ann@x.com|Ann|Lee") is None

    def test_blank_email_is_corrupt(self):
        assert decode_account(encode_account(_account(email=""))) is None

    def test_bad_created_at(self):
        line = encode_account(_account()).replace("2024-01-01T08:00:00", "yesterday")
        assert decode_account(line) is None


class TestEscaping:
    def test_escape_plain_text_unchanged(self):
        assert escape("plain text") == "plain text"

    def test_escape_none(self):
        assert escape(None) == ""

    def test_split_unescapes(self):
        assert split_fields(r"a\|b|c\\|d\ne") == ["a|b", "c\\", "d\ne"]

    def test_split_trailing_backslash_kept(self):
        assert split_fields("abc\\") == ["abc\\"]

    def test_split_empty_fields(self):
        assert split_fields("||") == ["", "", ""]


class TestDecodeLines:
    def test_skips_corrupt_and_blank_lines(self):
        good = encode_task(_task())
        records, skipped = decode_lines([good, "", "1|too|few", "   "], decode_task, "tasks.txt")
        assert len(records) == 1
        assert records[0].id == 7
        assert skipped == 1

    def test_logs_corrupt_line(self, caplog):
        with caplog.at_level("WARNING"):
            decode_lines(["garbage"], decode_account, "students.txt")
        assert "students.txt:1" in caplog.text
