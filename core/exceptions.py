"""
Custom exceptions for the ingestion job with structured error context.

Every error raised by the job carries a short ``reason`` (the only detail
written to the failure artifact) plus a context dictionary and the original
exception for the operator logs.

Exception Hierarchy:
    IngestionJobError (base)
    ├── ConfigError
    ├── UnknownSourceError
    ├── FetchError
    ├── ParseError
    ├── EmptyResultError
    └── PersistenceError
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class IngestionJobError(Exception):
    """
    Base exception for all ingestion job errors.

    Attributes:
        message: Human-readable error message
        reason: Short reason reported to callers in error.json
        context: Additional context information (source, group, etc.)
        original_exception: The original exception that was caught (if any)
    """

    default_reason = "Job failed"

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
        reason: Optional[str] = None
    ):
        self.message = message
        self.reason = reason or self.default_reason
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        # Add timestamp to context
        self.context["error_timestamp"] = self.timestamp.isoformat()

        # Chain original exception if provided
        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "reason": self.reason,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


class ConfigError(IngestionJobError):
    """
    Raised when the job description or launch arguments are invalid.

    The reason is the validation message itself, e.g.
    "groupId is a required property".
    """

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("reason", message)
        super().__init__(message, **kwargs)


class UnknownSourceError(IngestionJobError):
    """
    Raised when no adapter is registered for a source key.

    Context should include:
        - source: The unregistered source key
    """

    def __init__(self, source: str, **kwargs):
        kwargs.setdefault("reason", f"Unknown data source[{source}]")
        context = kwargs.pop("context", None) or {}
        context.setdefault("source", source)
        super().__init__(f"No adapter registered for source[{source}]", context=context, **kwargs)
        self.source = source


class FetchError(IngestionJobError):
    """
    Raised when a source fetcher fails.

    The reason is the message of the failing fetch.

    Context should include:
        - source: Source key whose fetch failed
        - group_id: Group being ingested
    """

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("reason", message)
        super().__init__(message, **kwargs)


class ParseError(IngestionJobError):
    """
    Raised when a parser adapter fails mid-sequence.

    Context should include:
        - source: Source key whose parser failed
        - location: Blob location being parsed
    """
    default_reason = "Problem parsing data"


class EmptyResultError(IngestionJobError):
    """Raised when a structurally successful run produced zero records."""
    default_reason = "No results"


class PersistenceError(IngestionJobError):
    """
    Raised when deleting or storing records fails.

    Context should include:
        - operation: DELETE, INSERT or REPLACE
        - group_id: Group being written (if applicable)
        - records: Number of records in the write (if applicable)
    """
    default_reason = "Problem with DB"
