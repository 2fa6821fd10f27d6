"""Error types raised by the planner workflow.

Every error carries a user-facing ``message`` and the HTTP status the API
layer should answer with. Orchestration code catches these and folds them
into session state; routes let them reach the exception handler in
``taskpilot.main``.
"""
from __future__ import annotations


class PlannerError(Exception):
    status_code: int = 500
    default_message: str = "Something went wrong."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(PlannerError):
    """Input rejected before any network call."""

    status_code = 422
    default_message = "Invalid input."


class NoTasks(ValidationError):
    default_message = "There are no tasks to accept."


class TooManyTasks(ValidationError):
    default_message = "Only up to 7 tasks can be accepted at once."


class NetworkError(PlannerError):
    status_code = 503
    default_message = "Network request failed. Please check your connection and try again."


class ServerError(PlannerError):
    """Non-2xx answer from the task backend."""

    status_code = 502
    default_message = "The server could not complete the request."

    def __init__(self, message: str | None = None, *, upstream_status: int | None = None) -> None:
        super().__init__(message)
        self.server_message = message
        self.upstream_status = upstream_status


class CancellationError(PlannerError):
    status_code = 409
    default_message = "Task generation cancelled."


class CompletionTimeout(CancellationError):
    status_code = 504
    default_message = "Task generation timed out. Please try again."


class InvalidResponseShape(PlannerError):
    status_code = 502
    default_message = "The AI response was not in the expected format."


class NoValidTasks(PlannerError):
    status_code = 502
    default_message = "No valid tasks generated."


class SessionNotFound(PlannerError):
    status_code = 404
    default_message = "Planner session not found."
