# mise/core/errors.py
from __future__ import annotations


class SchedulingError(Exception):
    """Base for every error the scheduling service raises on purpose."""

    code = "INTERNAL"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(SchedulingError, ValueError):
    """Malformed input; raised before any scheduling work starts."""

    code = "VALIDATION"


class NotFoundError(SchedulingError, LookupError):
    code = "NOT_FOUND"


class InternalError(SchedulingError, RuntimeError):
    """Algorithm fault, e.g. the equipment ledger disagrees with itself."""

    code = "INTERNAL"
