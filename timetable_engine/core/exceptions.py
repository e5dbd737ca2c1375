# timetable_engine/core/exceptions.py
"""Exceptions raised by the timetable engine.

Each exception carries structured metadata so callers (an editor backend, an
export service, a test harness) can log it or translate it into an API
response without parsing the message:

- ``code`` and ``status_code`` for consistent translation at the boundary.
- ``context`` holds lightweight identifiers (course, section, tutorial ids).
- ``details`` holds larger diagnostic payloads such as search statistics.

An unsatisfiable request is *not* an error: the engine returns an empty list.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class TimetableEngineError(Exception):
    """Base engine exception with structured metadata.

    Attributes
    ----------
    message
        Human readable message.
    code
        Machine friendly error code (snake_case).
    status_code
        Suggested HTTP status code for callers that expose the engine over HTTP.
    details
        Arbitrary extra data useful for debugging.
    context
        Lightweight context dict (ids, phase names, counts).
    cause
        Optional underlying exception instance.
    timestamp
        UTC ISO timestamp when the exception was created.
    """

    code: str = "timetable_engine_error"
    status_code: int = 500

    def __init__(
        self,
        message: str = "A timetable engine error occurred",
        *,
        details: Optional[Any] = None,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        self.cause = cause
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def __str__(self) -> str:
        base = f"{self.__class__.__name__}({self.code}): {self.message}"
        if self.context:
            base += f" | context={self.context}"
        if self.details is not None:
            base += f" | details={self.details}"
        if self.cause is not None:
            base += f" | cause={repr(self.cause)}"
        return base

    def to_dict(self) -> Dict[str, Any]:
        """Return a serializable representation suitable for API responses."""
        return {
            "error": {
                "type": self.__class__.__name__,
                "code": self.code,
                "message": self.message,
                "status_code": self.status_code,
                "details": self.details,
                "context": self.context,
                "timestamp": self.timestamp,
            }
        }

    def with_context(self, **ctx: Any) -> "TimetableEngineError":
        """Return self after extending the context dict.

        Keys already present are kept, so the innermost (most specific)
        identifier wins when an error is re-raised through several layers:

        raise err.with_context(course_id=course.id)
        """
        for key, value in ctx.items():
            if value is not None:
                self.context.setdefault(key, value)
        return self

    @classmethod
    def from_exception(
        cls, exc: BaseException, message: Optional[str] = None
    ) -> "TimetableEngineError":
        """Wrap a generic exception preserving the cause."""
        return cls(message or str(exc), cause=exc)


class DomainError(TimetableEngineError):
    """Raised when the domain model is built from malformed input.

    Covers missing ids, zero-length or out-of-range intervals, empty day
    sets, negative selection bounds and tutorial-required sections without
    tutorials. Always raised before any search starts.
    """

    code = "domain_error"
    status_code = 422

    def __init__(
        self,
        message: str = "Invalid timetable input",
        *,
        course_id: Optional[str] = None,
        section_id: Optional[str] = None,
        tutorial_id: Optional[str] = None,
        validation_errors: Optional[List[Dict[str, Any]]] = None,
        details: Optional[Any] = None,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details, cause=cause, context=context)
        self.with_context(
            course_id=course_id, section_id=section_id, tutorial_id=tutorial_id
        )
        self.validation_errors = validation_errors or []
        if self.validation_errors:
            self.context.setdefault("error_count", len(self.validation_errors))

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["error"]["validation_errors"] = self.validation_errors
        return data


class SearchBudgetExceededError(TimetableEngineError):
    """Raised when a search visits more nodes than the configured budget.

    ``details`` carries the statistics gathered up to the abort so callers
    can tell how far the search got.
    """

    code = "search_budget_exceeded"
    status_code = 422

    def __init__(
        self,
        max_nodes: int,
        message: Optional[str] = None,
        *,
        details: Optional[Any] = None,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        msg = message or f"Search aborted after exceeding {max_nodes} visited nodes"
        super().__init__(msg, details=details, cause=cause, context=context)
        self.max_nodes = max_nodes
        self.context.setdefault("max_nodes", max_nodes)
