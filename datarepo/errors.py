"""Exception taxonomy for the repository core.

A missing value is never an exception: reads return ``None`` for it.
Everything else a caller may need to discriminate on lives here.
"""
from __future__ import annotations

from typing import Any, Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .models import WriteResult


def source_name(source: Any) -> str:
    """Human-readable name for a data source, used in logs and errors."""
    return getattr(source, "name", None) or type(source).__name__


class RepositoryError(Exception):
    """Base class for every error raised by the repository core."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(RepositoryError):
    """The repository has no source registered for the requested capability."""

    def __init__(self, capability: str, message: Optional[str] = None) -> None:
        self.capability = capability
        super().__init__(
            message or f"No {capability} data source configured for this operation",
            {"capability": capability},
        )


class SourceFailure(RepositoryError):
    """A single data source failed while reading or writing."""

    def __init__(
        self,
        source: Any,
        operation: str,
        cause: Optional[BaseException] = None,
        message: Optional[str] = None,
    ) -> None:
        self.source = source
        self.source_name = source_name(source)
        self.operation = operation
        self.cause = cause
        default = f"{self.source_name}.{operation} failed"
        if cause is not None:
            default = f"{default}: {cause}"
        super().__init__(
            message or default,
            {"source": self.source_name, "operation": operation},
        )
        if cause is not None:
            self.__cause__ = cause


class AggregatedWriteFailure(RepositoryError):
    """Every targeted writeable source failed (or, when strict, any of them)."""

    def __init__(self, result: "WriteResult", message: Optional[str] = None) -> None:
        self.result = result
        failed = ", ".join(result.failed_sources) or "none"
        super().__init__(
            message or f"{result.operation} failed for targets: {failed}",
            {"operation": result.operation, "failed": result.failed_sources},
        )
