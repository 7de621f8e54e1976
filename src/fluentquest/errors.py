"""Error taxonomy for progression operations.

Every failure raised by the engine derives from ``ProgressionError`` and
carries a ``status`` classification plus an HTTP-style ``code`` so a calling
layer can map it to a response without inspecting the message.
"""
from typing import Any, Optional


class ProgressionError(Exception):
    status = "internal"
    code = 500

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error": self.__class__.__name__,
            "status": self.status,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(ProgressionError):
    """Referenced user, lesson, quest or quiz does not exist."""
    status = "not_found"
    code = 404


class InvalidStateError(ProgressionError):
    """Operation attempted out of order, e.g. claiming with no progress record."""
    status = "conflict"
    code = 409


class AlreadyClaimedError(ProgressionError):
    status = "conflict"
    code = 409


class AlreadyCompletedError(ProgressionError):
    status = "conflict"
    code = 409


class NotCompletedError(ProgressionError):
    status = "conflict"
    code = 409


class InvalidInputError(ProgressionError):
    status = "bad_request"
    code = 400


class UnauthorizedError(ProgressionError):
    status = "auth"
    code = 401


class XpGrantError(ProgressionError):
    """The XP counter could not be updated after a state write."""
