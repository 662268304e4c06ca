"""
Trapline - Throw operations.

Every throw raises a Failure whose frames are captured at the throw site.
Inside a trap the Failure arrives unchanged; outside one it propagates
like any other exception.

Usage:
    ```python
    def load(path):
        throw_if_none("path", path)
        throw_if(not path.endswith(".yaml"),
                 ArgumentOutOfRangeFault("path", path, "expected YAML"))
        ...
    ```
"""

from __future__ import annotations

from typing import Any, NoReturn, Optional

from .core import Failure, Fault
from .domains import (
    ArgumentNullFault,
    ArgumentOutOfRangeFault,
    FileFault,
    InvalidOperationFault,
    NetworkFault,
)


def throw(kind: Fault) -> NoReturn:
    """Raise a new Failure for ``kind`` with no cause."""
    raise Failure(kind)


def throw_if(condition: Any, kind: Fault):
    """Raise a new Failure for ``kind`` when ``condition`` is truthy."""
    if condition:
        raise Failure(kind)


def throw_if_none(param_name: str, value: Any, message: str = ""):
    """Raise an ArgumentNullFault for ``param_name`` when ``value`` is None."""
    if value is None:
        raise Failure(ArgumentNullFault(param_name, message))


def throw_with_cause(kind: Fault, cause: Optional[BaseException]) -> NoReturn:
    """
    Raise a new Failure for ``kind`` wrapping ``cause``.

    The new Failure captures its own frames at this throw site. A cause
    that is not already a Failure is normalized the way a trap would
    normalize it.

    Args:
        kind: Fault kind of the outer failure
        cause: Preceding Failure, any exception, or None

    Raises:
        Failure: Always
        ChainOwnershipError: If ``cause`` already belongs to another failure
    """
    if cause is not None:
        cause = Failure.capture(cause)
    raise Failure(kind, cause=cause)


# ============================================================================
# Helpers for the built-in kinds
# ============================================================================

def throw_argument_null(param_name: str, message: str = "") -> NoReturn:
    raise Failure(ArgumentNullFault(param_name, message))


def throw_argument_out_of_range(
    param_name: str,
    value: Any,
    message: str = "",
) -> NoReturn:
    raise Failure(ArgumentOutOfRangeFault(param_name, value, message))


def throw_invalid_operation(message: str) -> NoReturn:
    raise Failure(InvalidOperationFault(message))


def throw_file_error(
    filename: str,
    message: str,
    error: Optional[BaseException] = None,
) -> NoReturn:
    raise Failure(FileFault(filename, message, error))


def throw_network_error(
    url: str,
    message: str,
    error: Optional[BaseException] = None,
) -> NoReturn:
    raise Failure(NetworkFault(url, message, error))
