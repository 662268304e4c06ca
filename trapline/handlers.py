"""
Trapline - Handler dispatch.

Three facades over one rule: the first handler whose declared kind is
exactly the failure's kind class fires, claims the result, and nothing
after it fires for that result.

- catch(result, Kind, fn):           direct registration
- result.when().on(Kind, fn)...:     chained builder
- result.dispatch(handler(Kind, fn), handler_any(fn)):  handler list

A catch-all (``fallback``/``any``/``handler_any``) fires only when no
earlier handler claimed the result. Cleanup always runs, once.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable

from .core import Failure
from .matching import KindSpec, kind_matches, resolve_kinds

if TYPE_CHECKING:
    from .engine import TrapResult

logger = logging.getLogger("trapline.handlers")

KindCallback = Callable[[Any, Failure], Any]
FailureCallback = Callable[[Failure], Any]


class FaultHandler(ABC):
    """
    Abstract base class for handler-list entries.

    An entry inspects a failure and reports whether it handled it.
    ``TrapResult.dispatch`` tries entries in order and stops at the
    first one that returns True.

    Example:
        ```python
        class AuditHandler(FaultHandler):
            def attempt(self, failure: Failure) -> bool:
                if failure.kind_name.startswith("Audit"):
                    audit_log.append(failure.full_message())
                    return True
                return False
        ```
    """

    @abstractmethod
    def attempt(self, failure: Failure) -> bool:
        """
        Try to handle a failure.

        Args:
            failure: Failure to handle

        Returns:
            True if the failure was handled
        """
        pass


class KindHandler(FaultHandler):
    """
    Handler for one fault kind (or a tuple of kinds).

    Invokes ``callback(kind_value, failure)`` when the failure's kind
    class is exactly one of the declared kinds.
    """

    def __init__(self, kind: KindSpec, callback: KindCallback):
        """
        Initialize kind handler.

        Args:
            kind: Fault class, or tuple of Fault classes
            callback: Receives the kind value and the full failure
        """
        self.kinds = resolve_kinds(kind)
        self.callback = callback

    def matches(self, failure: Failure) -> bool:
        return kind_matches(self.kinds, failure.kind)

    def attempt(self, failure: Failure) -> bool:
        if not self.matches(failure):
            return False
        self.callback(failure.kind, failure)
        return True

    def __repr__(self) -> str:
        names = ", ".join(k.__name__ for k in self.kinds)
        return f"KindHandler({names})"


class CatchAllHandler(FaultHandler):
    """Handler that accepts every failure."""

    def __init__(self, callback: FailureCallback):
        self.callback = callback

    def attempt(self, failure: Failure) -> bool:
        self.callback(failure)
        return True

    def __repr__(self) -> str:
        return "CatchAllHandler()"


def handler(kind: KindSpec, callback: KindCallback) -> KindHandler:
    """Create a handler-list entry for ``kind``."""
    return KindHandler(kind, callback)


def handler_any(callback: FailureCallback) -> CatchAllHandler:
    """Create a catch-all handler-list entry."""
    return CatchAllHandler(callback)


# ============================================================================
# Dispatch primitives
# ============================================================================

def run_handler(result: TrapResult, entry: FaultHandler) -> bool:
    """
    Offer the result's failure to one handler.

    Kind and catch-all handlers claim the result before their callback
    runs, so an exception raised by the callback propagates with the
    result already claimed. Custom handlers claim once ``attempt``
    reports success.

    Returns:
        True if the handler took the failure
    """
    failure = result.failure
    if failure is None or result.claimed:
        return False

    if isinstance(entry, KindHandler):
        if not entry.matches(failure):
            return False
        _claim(result, entry, failure)
        entry.callback(failure.kind, failure)
        return True
    if isinstance(entry, CatchAllHandler):
        _claim(result, entry, failure)
        entry.callback(failure)
        return True

    # Custom FaultHandler: it decides for itself
    if not entry.attempt(failure):
        return False
    _claim(result, entry, failure)
    return True


def _claim(result: TrapResult, entry: FaultHandler, failure: Failure):
    result._claim()
    logger.debug(
        f"{entry!r} claimed {failure.kind_name}",
        extra={"trace_id": failure.trace_id},
    )


def catch(result: TrapResult, kind: KindSpec, callback: KindCallback) -> TrapResult:
    """
    Register a kind handler directly against a trap result.

    If the result is unclaimed and its failure's kind class is exactly
    ``kind``, ``callback(kind_value, failure)`` runs and the result is
    claimed. Otherwise nothing happens.

    Args:
        result: Result returned by ``trap``
        kind: Fault class (or tuple of classes)
        callback: Receives the kind value and the full failure

    Returns:
        The same result
    """
    run_handler(result, KindHandler(kind, callback))
    return result


class CatchBuilder:
    """
    Chained handler registration for one trap result.

    Usage:
        ```python
        trap(connect).when().on(
            NetworkFault, lambda fault, failure: use_backup(fault.url)
        ).fallback(
            lambda failure: log.error(failure.full_message())
        ).cleanup(release)
        ```
    """

    def __init__(self, result: TrapResult):
        self.result = result

    def on(self, kind: KindSpec, callback: KindCallback) -> CatchBuilder:
        """Handle ``kind`` if still unclaimed; returns the builder."""
        run_handler(self.result, KindHandler(kind, callback))
        return self

    def fallback(self, callback: FailureCallback) -> CatchBuilder:
        """Handle any failure still unclaimed; returns the builder."""
        run_handler(self.result, CatchAllHandler(callback))
        return self

    any = fallback

    def cleanup(self, action: Callable[[], Any]) -> TrapResult:
        """Run ``action`` regardless of outcome and return the result."""
        return self.result.cleanup(action)

    def end(self) -> TrapResult:
        """Return the result without running cleanup."""
        return self.result


def dispatch(result: TrapResult, *handlers: FaultHandler) -> TrapResult:
    """
    Offer the result's failure to each handler in order.

    Stops at the first handler that reports it handled the failure.

    Raises:
        TypeError: If an entry is not a FaultHandler
    """
    for entry in handlers:
        if not isinstance(entry, FaultHandler):
            raise TypeError(
                f"dispatch() expects FaultHandler entries, got {type(entry).__name__}"
            )

    for entry in handlers:
        if result.claimed or result.failure is None:
            break
        if run_handler(result, entry):
            break

    return result
