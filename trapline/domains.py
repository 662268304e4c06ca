"""
Trapline - Built-in fault kinds.

Provides concrete kinds for common failure categories:
- Argument faults (null argument, out of range)
- Operation faults (invalid operation, also used for native faults)
- IO faults (file, network)

New kinds subclass Fault directly; nothing here needs to change.
"""

from typing import Any, Optional

from .core import Fault


# ============================================================================
# Argument Faults
# ============================================================================

class ArgumentNullFault(Fault):
    """A required argument was None."""

    kind_name = "ArgumentNullException"

    def __init__(self, param_name: str, message: str = ""):
        super().__init__(message, param_name=param_name)

    def render(self) -> str:
        return (
            f"{self.kind_name}: Parameter '{self.param_name}' cannot be null. "
            f"{self.message}"
        )


class ArgumentOutOfRangeFault(Fault):
    """An argument value fell outside its allowed range."""

    kind_name = "ArgumentOutOfRangeException"

    def __init__(self, param_name: str, value: Any, message: str = ""):
        super().__init__(message, param_name=param_name, value=value)

    def render(self) -> str:
        return (
            f"{self.kind_name}: Parameter '{self.param_name}' with value "
            f"'{self.value}' is out of range. {self.message}"
        )


# ============================================================================
# Operation Faults
# ============================================================================

class InvalidOperationFault(Fault):
    """
    An operation is not valid in the current state.

    Native exceptions intercepted by a trap also arrive as this kind,
    carrying the exception's text.
    """

    kind_name = "InvalidOperationException"

    def __init__(self, message: str):
        super().__init__(message)

    def render(self) -> str:
        return f"{self.kind_name}: {self.message}"


# ============================================================================
# IO Faults
# ============================================================================

class FileFault(Fault):
    """File system operation failed."""

    kind_name = "FileException"

    def __init__(
        self,
        filename: str,
        message: str,
        error: Optional[BaseException] = None,
    ):
        super().__init__(message, filename=filename, error=error)

    def render(self) -> str:
        if self.error is not None:
            return (
                f"{self.kind_name}: {self.message} "
                f"(File: {self.filename}, Cause: {self.error})"
            )
        return f"{self.kind_name}: {self.message} (File: {self.filename})"


class NetworkFault(Fault):
    """Network operation failed."""

    kind_name = "NetworkException"

    def __init__(
        self,
        url: str,
        message: str,
        error: Optional[BaseException] = None,
    ):
        super().__init__(message, url=url, error=error)

    def render(self) -> str:
        if self.error is not None:
            return (
                f"{self.kind_name}: {self.message} "
                f"(URL: {self.url}, Cause: {self.error})"
            )
        return f"{self.kind_name}: {self.message} (URL: {self.url})"
