from __future__ import annotations

from fastapi import status


class TaskFlowError(Exception):
    """
    Base class for errors that map onto a client-facing HTTP response.

    `message` is returned to the caller as-is, so it must never contain
    internal details.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class UnauthorizedError(TaskFlowError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized"


class TodoValidationError(TaskFlowError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid input"


class NotFoundError(TaskFlowError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Todo not found"


class CategorizationError(TaskFlowError):
    """The categorization model could not be reached or gave an unusable answer."""

    status_code = status.HTTP_502_BAD_GATEWAY
    message = "Categorization service unavailable"
