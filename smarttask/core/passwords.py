"""
SmartTask — Password hashing.

New hashes are salted bcrypt. Files written by the first release stored an
unsalted SHA-256 hex digest; those still verify so existing users can log in.
"""

from __future__ import annotations

import hashlib
import hmac
import re

import bcrypt

_LEGACY_SHA256 = re.compile(r"^[0-9a-f]{64}$")

# bcrypt only looks at the first 72 bytes; newer releases raise instead of truncating.
_BCRYPT_MAX_BYTES = 72


def _bcrypt_input(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int | None = None) -> str:
    """Return a bcrypt hash of `password` as text."""
    if rounds is None:
        from smarttask.config import settings
        rounds = settings.BCRYPT_ROUNDS
    return bcrypt.hashpw(_bcrypt_input(password), bcrypt.gensalt(rounds)).decode("utf-8")


def _sha256_hex(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def is_legacy_hash(password_hash: str) -> bool:
    return bool(_LEGACY_SHA256.match(password_hash))


def verify_password(password: str, password_hash: str) -> bool:
    """Check `password` against a stored bcrypt or legacy SHA-256 hash."""
    if not password_hash:
        return False
    if is_legacy_hash(password_hash):
        return hmac.compare_digest(_sha256_hex(password), password_hash)
    try:
        return bcrypt.checkpw(_bcrypt_input(password), password_hash.encode("utf-8"))
    except ValueError:
        # Not a bcrypt hash at all (corrupt field)
        return False
