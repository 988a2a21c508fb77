"""
SmartTask — Account Repository.

Owns every Account in memory and keeps the accounts file in sync. Emails are
unique case-insensitively. Accounts are never physically removed;
deactivation is the end of the line.

Each mutation builds the new collection, flushes it, and only then swaps it
in, so a failed write leaves memory exactly as it was.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from smarttask.core.errors import (
    AccountNotFoundError,
    DuplicateEmailError,
    InactiveAccountError,
    InvalidEmailError,
    InvalidNameError,
    PersistenceError,
    WeakPasswordError,
    WrongPasswordError,
)
from smarttask.core.passwords import hash_password, is_legacy_hash, verify_password
from smarttask.data.codec import decode_account, decode_lines, encode_account
from smarttask.data.models import Account, AccountStats, normalize_email, now_seconds
from smarttask.data.schemas import AccountView
from smarttask.storage.line_store import LineStore, StorageError

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def is_valid_email(email: str | None) -> bool:
    """Basic shape check: contains "@" and "." and is longer than 5 characters."""
    if email is None:
        return False
    email = email.strip()
    return "@" in email and "." in email and len(email) > 5


def is_valid_password(password: str | None) -> bool:
    return password is not None and len(password) >= MIN_PASSWORD_LENGTH


class AccountRepository:
    """File-backed storage for registered accounts."""

    def __init__(
        self,
        path: str | Path | None = None,
        store: LineStore | None = None,
        clock: Callable[[], datetime] | None = None,
        bcrypt_rounds: int | None = None,
    ) -> None:
        if path is None:
            from smarttask.config import settings
            path = settings.ACCOUNTS_FILE

        self._path = Path(path)
        self._store = store or LineStore()
        self._clock = clock or now_seconds
        self._rounds = bcrypt_rounds
        self._lock = threading.RLock()
        self._accounts: list[Account] = []
        self._load()

    # ---- persistence ----

    def _load(self) -> None:
        try:
            lines = self._store.read_lines(self._path)
        except StorageError as exc:
            logger.error("Could not read %s, starting with no accounts: %s", self._path, exc)
            lines = []

        records, skipped = decode_lines(lines, decode_account, str(self._path))
        seen: set[str] = set()
        accounts: list[Account] = []
        for account in records:
            if account.email_key in seen:
                skipped += 1
                logger.warning("Skipping duplicate account %s in %s", account.email, self._path)
                continue
            seen.add(account.email_key)
            accounts.append(account)

        self._accounts = accounts
        logger.info("Loaded %d accounts from %s (%d skipped)", len(accounts), self._path, skipped)

    def _commit(self, accounts: list[Account]) -> None:
        """Flush `accounts` to disk, then make them the live collection."""
        try:
            self._store.write_lines(self._path, [encode_account(a) for a in accounts])
        except StorageError as exc:
            logger.error("Error saving accounts to %s: %s", self._path, exc)
            raise PersistenceError(f"Could not save accounts: {exc}") from exc
        self._accounts = accounts

    def _index_of(self, email: str | None) -> int | None:
        key = normalize_email(email)
        if not key:
            return None
        for i, account in enumerate(self._accounts):
            if account.email_key == key:
                return i
        return None

    def _require(self, email: str | None) -> tuple[int, Account]:
        idx = self._index_of(email)
        if idx is None:
            raise AccountNotFoundError(f"No account for {email!r}")
        return idx, self._accounts[idx]

    def _replace_at(self, idx: int, account: Account) -> None:
        accounts = list(self._accounts)
        accounts[idx] = account
        self._commit(accounts)

    # ---- mutations ----

    def register(
        self,
        first_name: str,
        last_name: str,
        email: str,
        student_id: str,
        major: str,
        password: str,
    ) -> Account:
        """Create a new account. The password is hashed before it is stored."""
        if not is_valid_email(email):
            raise InvalidEmailError(f"Invalid email address: {email!r}")
        if not first_name or not first_name.strip() or not last_name or not last_name.strip():
            raise InvalidNameError("First and last name are required")
        if not is_valid_password(password):
            raise WeakPasswordError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )

        email = email.strip()
        with self._lock:
            if self._index_of(email) is not None:
                raise DuplicateEmailError(f"Email already registered: {email}")

            account = Account(
                email=email,
                first_name=first_name.strip(),
                last_name=last_name.strip(),
                student_id=(student_id or "").strip(),
                major=(major or "").strip(),
                password_hash=hash_password(password, self._rounds),
                created_at=self._clock(),
            )
            self._commit([*self._accounts, account])

        logger.info("Account registered: %s", email)
        return replace(account)

    def authenticate(self, email: str, password: str) -> Account:
        """Check credentials and record the login time."""
        with self._lock:
            idx, account = self._require(email)
            if not account.is_active:
                logger.warning("Login refused for inactive account %s", account.email)
                raise InactiveAccountError(f"Account {account.email} is deactivated")
            if not verify_password(password or "", account.password_hash):
                logger.warning("Wrong password for %s", account.email)
                raise WrongPasswordError("Invalid credentials")

            updated = replace(account, last_login_at=self._clock())
            if is_legacy_hash(account.password_hash):
                updated.password_hash = hash_password(password, self._rounds)
                logger.info("Upgraded legacy password hash for %s", account.email)
            self._replace_at(idx, updated)

        logger.info("Login: %s", updated.email)
        return replace(updated)

    def change_password(self, email: str, old_password: str, new_password: str) -> None:
        with self._lock:
            idx, account = self._require(email)
            if not verify_password(old_password or "", account.password_hash):
                raise WrongPasswordError("Current password is incorrect")
            if not is_valid_password(new_password):
                raise WeakPasswordError(
                    f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
                )
            self._replace_at(
                idx, replace(account, password_hash=hash_password(new_password, self._rounds)),
            )
        logger.info("Password changed for %s", account.email)

    def update_profile(
        self,
        email: str,
        first_name: str | None = None,
        last_name: str | None = None,
        major: str | None = None,
    ) -> Account:
        """Overwrite each given, non-blank field; blank or None fields stay as they are."""
        changes = {
            name: value.strip()
            for name, value in (
                ("first_name", first_name), ("last_name", last_name), ("major", major),
            )
            if value is not None and value.strip()
        }
        with self._lock:
            idx, account = self._require(email)
            updated = replace(account, **changes)
            if changes:
                self._replace_at(idx, updated)

        logger.info("Profile updated for %s: %s", account.email, sorted(changes) or "no changes")
        return replace(updated)

    def deactivate(self, email: str) -> None:
        """Soft-delete: the account stays on file but can no longer log in."""
        with self._lock:
            idx, account = self._require(email)
            self._replace_at(idx, replace(account, is_active=False))
        logger.info("Account deactivated: %s", account.email)

    # ---- queries ----

    def find_by_email(self, email: str | None) -> Account | None:
        with self._lock:
            idx = self._index_of(email)
            if idx is None:
                return None
            return replace(self._accounts[idx])

    def email_exists(self, email: str | None) -> bool:
        with self._lock:
            return self._index_of(email) is not None

    def list_all(self) -> list[Account]:
        with self._lock:
            return [replace(a) for a in self._accounts]

    def stats(self) -> AccountStats:
        with self._lock:
            total = len(self._accounts)
            active = sum(1 for a in self._accounts if a.is_active)
        return AccountStats(total=total, active=active, inactive=total - active)

    @staticmethod
    def to_wire(account: Account) -> dict:
        """JSON-safe dict for front ends (no password hash)."""
        return AccountView.from_account(account).to_wire()
