"""Exception hierarchy for the Smart Rasid assistant.

Exception Hierarchy:
    RasidError (base)
    ├── ConfigurationError (unrecoverable - fix config or catalog)
    ├── EmptyInputError (usage error - caller bug)
    ├── DimensionMismatchError (usage error - caller bug)
    ├── EmbeddingProviderError (recoverable - degrade to lexical search)
    ├── UnknownToolError (recovered at the dispatcher)
    ├── ToolExecutionError (recovered at the dispatcher)
    │   └── ToolTimeoutError
    └── ModelInvocationError (recovered at the orchestrator)
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional


class RasidError(Exception):
    """Base exception for all assistant errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code
        details: Additional context as a dictionary
        timestamp: When the error occurred
        cause: The original exception that caused this error
        recoverable: Whether the caller may degrade instead of failing
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        recoverable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__.upper()
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)
        self.cause = cause
        self.recoverable = recoverable

        if cause:
            self.__cause__ = cause

    def __str__(self) -> str:
        parts = [f"[{self.code}]", self.message]
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            parts.append(f"({detail_str})")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "recoverable": self.recoverable,
            "cause": str(self.cause) if self.cause else None,
        }


class ConfigurationError(RasidError):
    """Raised when settings or the tool catalog are invalid at startup."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("code", "CONFIG_ERROR")
        super().__init__(message, recoverable=False, **kwargs)


class EmptyInputError(RasidError):
    """Raised when text to embed is empty or whitespace-only."""

    def __init__(self, message: str = "Cannot generate embedding for empty text", **kwargs):
        kwargs.setdefault("code", "EMPTY_INPUT")
        super().__init__(message, recoverable=False, **kwargs)


class DimensionMismatchError(RasidError):
    """Raised when two vectors of different lengths are compared."""

    def __init__(self, len_a: int, len_b: int):
        super().__init__(
            f"Vector dimension mismatch: {len_a} vs {len_b}",
            code="DIMENSION_MISMATCH",
            details={"len_a": len_a, "len_b": len_b},
            recoverable=False,
        )
        self.len_a = len_a
        self.len_b = len_b


class EmbeddingProviderError(RasidError):
    """Raised when the embedding service fails.

    Attributes:
        status_code: HTTP status returned by the provider, if any
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
    ):
        details = {"status_code": status_code} if status_code is not None else None
        super().__init__(
            message,
            code="EMBEDDING_PROVIDER_ERROR",
            details=details,
            cause=cause,
            recoverable=True,
        )
        self.status_code = status_code


class UnknownToolError(RasidError):
    """Raised when the model requests a tool outside the catalog."""

    def __init__(self, tool_name: str):
        super().__init__(
            f"unknown tool: {tool_name}",
            code="UNKNOWN_TOOL",
            details={"tool": tool_name},
            recoverable=True,
        )
        self.tool_name = tool_name


class ToolExecutionError(RasidError):
    """Raised when a tool handler fails."""

    def __init__(self, tool_name: str, message: str, cause: Optional[Exception] = None, **kwargs):
        kwargs.setdefault("code", "TOOL_EXECUTION_ERROR")
        super().__init__(
            message,
            details={"tool": tool_name},
            cause=cause,
            recoverable=True,
            **kwargs,
        )
        self.tool_name = tool_name


class ToolTimeoutError(ToolExecutionError):
    """Raised when a tool handler exceeds its time budget."""

    def __init__(self, tool_name: str, timeout_seconds: float):
        super().__init__(
            tool_name,
            f"tool {tool_name} timed out after {timeout_seconds}s",
            code="TOOL_TIMEOUT",
        )
        self.timeout_seconds = timeout_seconds


class ModelInvocationError(RasidError):
    """Raised when the language model call fails or returns garbage."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
    ):
        details = {"status_code": status_code} if status_code is not None else None
        super().__init__(
            message,
            code="MODEL_INVOCATION_ERROR",
            details=details,
            cause=cause,
            recoverable=True,
        )
        self.status_code = status_code
