"""
Trapline - Library error types.

These errors report misuse of the library itself (a cleanup step run
twice, a cause attached to two failures, a bad configuration value).
They are plain exceptions, not fault kinds, so a trap never routes them
to a kind handler by accident of naming.
"""

from typing import Any, Dict, Optional


class TraplineError(Exception):
    """Base error for all trapline misuse errors."""

    def __init__(
        self,
        message: str,
        *,
        suggestion: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def format_error(self) -> str:
        """Format error with its details and suggestion."""
        lines = [f"{self.__class__.__name__}: {self.message}"]

        if self.details:
            lines.append("  Details:")
            for key, value in self.details.items():
                lines.append(f"  - {key}: {value}")

        if self.suggestion:
            lines.append(f"  Suggestion: {self.suggestion}")

        return "\n".join(lines)

    def __str__(self) -> str:
        return self.format_error()


class CleanupError(TraplineError):
    """Cleanup was requested a second time for the same trap result."""

    def __init__(self, action: Any):
        name = getattr(action, "__qualname__", repr(action))
        super().__init__(
            "cleanup already ran for this trap result",
            suggestion="Register a single cleanup step per trap",
            details={"action": name},
        )


class ChainOwnershipError(TraplineError):
    """A failure was attached as the cause of a second failure."""

    def __init__(self, cause: Any):
        super().__init__(
            "failure is already the cause of another failure",
            suggestion="Wrap the outer failure instead of reusing the inner one",
            details={"cause": getattr(cause, "kind_name", repr(cause))},
        )


class ConfigError(TraplineError):
    """Raised when configuration validation fails."""
