"""
Error kinds raised by the routine synchronization engine.

Every hard failure names the stage it came from so callers can tell a
broken routines document from a calendar outage.
"""

from typing import Any, Optional


class RoutineSyncError(Exception):
    """Base exception for routine synchronization failures."""

    stage: str = "sync"
    retryable: bool = False

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
        detail: Optional[Any] = None,
    ):
        super().__init__(message)
        self.message = message
        self.original_error = original_error
        self.detail = detail

    def to_dict(self) -> dict:
        """Render the error for API responses."""
        payload: dict = {
            "error_type": type(self).__name__,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
        }
        if self.original_error is not None:
            payload["cause"] = str(self.original_error)
        if self.detail is not None:
            payload["detail"] = self.detail
        return payload


class ConfigFetchError(RoutineSyncError):
    """The routines document could not be downloaded."""

    stage = "fetch"
    retryable = True

    def __init__(
        self,
        message: str,
        url: str,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            original_error=original_error,
            detail={"url": url, "status_code": status_code},
        )
        self.url = url
        self.status_code = status_code


class ConfigParseError(RoutineSyncError):
    """The routines document is not valid YAML/JSON or has the wrong shape."""

    stage = "parse"


class ExpansionSkip(RoutineSyncError):
    """
    A single recurrence spec cannot be expanded.

    Caught by the expander, which logs it and moves on to the next spec.
    """

    stage = "expand"


class ExistingListError(RoutineSyncError):
    """
    Listing existing events failed or came back truncated.

    Nothing is created after this error: deduplication needs the full set.
    """

    stage = "list"
    retryable = True


class CreateEventError(RoutineSyncError):
    """
    A creation call failed part-way through a run.

    Events created before the failure stay in the calendar; ``result``
    describes them.
    """

    stage = "create"
    retryable = True

    def __init__(
        self,
        message: str,
        result: Any,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, original_error=original_error)
        self.result = result
        self.detail = result.to_dict() if hasattr(result, "to_dict") else None
