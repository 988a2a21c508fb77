"""
SmartTask — Error taxonomy.

Every failure a repository can report is one of these types. Front ends
catch `SmartTaskError` (or a narrower subclass) and render it; nothing in
the core is meant to escape as an untyped fault.
"""

from __future__ import annotations


class SmartTaskError(Exception):
    """Base class for all errors raised by the record store."""


# ---------------------------------------------------------------------------
# Validation: rejected before any mutation
# ---------------------------------------------------------------------------


class ValidationError(SmartTaskError):
    """Input was rejected before touching any state."""


class InvalidEmailError(ValidationError):
    pass


class WeakPasswordError(ValidationError):
    pass


class InvalidNameError(ValidationError):
    pass


class EmptyTitleError(ValidationError):
    pass


class EmptyOwnerError(ValidationError):
    pass


class MissingDueDateError(ValidationError):
    pass


class InvalidDueDateError(ValidationError):
    """A due date/time string could not be parsed."""


class DuplicateEmailError(SmartTaskError):
    """An account with the same (case-insensitive) email already exists."""


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


class NotFoundError(SmartTaskError):
    pass


class AccountNotFoundError(NotFoundError):
    pass


class TaskNotFoundError(NotFoundError):
    pass


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


class AuthenticationError(SmartTaskError):
    pass


class InactiveAccountError(AuthenticationError):
    pass


class WrongPasswordError(AuthenticationError):
    pass


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


class PersistenceError(SmartTaskError):
    """The collection could not be flushed; in-memory state was left unchanged."""
