"""Error taxonomy shared by services and the HTTP boundary."""
from __future__ import annotations

from fastapi import status


class TaskBreakerError(Exception):
    """Base error carrying the HTTP status and the client-safe message."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(TaskBreakerError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class Unauthorized(TaskBreakerError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class NotFound(TaskBreakerError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Task not found"


class CompletionUnavailable(TaskBreakerError):
    """The completion service errored, timed out, or returned no content."""

    default_message = "Failed to generate task breakdown. Please try again."


class BreakdownParseError(TaskBreakerError):
    """The completion output could not be turned into usable subtasks."""

    default_message = "Failed to parse task breakdown. Please try again."


class PersistenceError(TaskBreakerError):
    default_message = "Failed to save task. Please try again."
