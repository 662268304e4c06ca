"""
Trapline - Protected execution.

``trap`` runs a unit of work and turns whatever it raises into a Failure
held by a TrapResult:

1. Work completes: no failure, ``result.value`` is the return value
2. Work raises a Failure: carried unchanged
3. Work raises a bare Fault kind: wrapped in a fresh Failure
4. Work raises any other exception: wrapped as an InvalidOperationFault

Callers never need to tell a structured throw from a native fault.
Exceptions outside ``Exception`` (KeyboardInterrupt, SystemExit,
GeneratorExit) and trapline misuse errors are never intercepted.

The result then feeds handler dispatch (see ``trapline.handlers``).
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

from .core import Failure
from .errors import CleanupError, TraplineError
from .handlers import (
    CatchAllHandler,
    CatchBuilder,
    FailureCallback,
    FaultHandler,
    KindCallback,
    catch,
    dispatch,
    run_handler,
)
from .matching import KindSpec

logger = logging.getLogger("trapline.engine")

FailureListener = Callable[[Failure], None]

_listeners: list[FailureListener] = []
_listeners_lock = threading.Lock()


# ============================================================================
# TrapResult
# ============================================================================

class TrapResult:
    """
    Outcome of one protected execution.

    Holds the failure (if any), the work's return value, and the claimed
    flag. The flag goes from False to True once, when the first matching
    handler (or a catch-all) takes the failure; no handler fires after
    that. Cleanup may run once per result.

    A result belongs to the call stack that created it; it is not meant
    to be shared across threads.
    """

    def __init__(self, failure: Optional[Failure] = None, value: Any = None):
        self._failure = failure
        self.value = value
        self._claimed = False
        self._cleaned = False

    @property
    def failure(self) -> Optional[Failure]:
        return self._failure

    @property
    def failed(self) -> bool:
        return self._failure is not None

    def has_failure(self) -> bool:
        return self._failure is not None

    @property
    def claimed(self) -> bool:
        return self._claimed

    def _claim(self):
        self._claimed = True

    def _fail(self, failure: Failure):
        self._failure = failure

    # ------------------------------------------------------------------
    # Dispatch facades
    # ------------------------------------------------------------------

    def catch(self, kind: KindSpec, callback: KindCallback) -> TrapResult:
        """Run ``callback(kind_value, failure)`` if the kind matches."""
        return catch(self, kind, callback)

    def when(self) -> CatchBuilder:
        """Start a chained handler registration."""
        return CatchBuilder(self)

    def dispatch(self, *handlers: FaultHandler) -> TrapResult:
        """Offer the failure to ``handlers`` in order; first match wins."""
        return dispatch(self, *handlers)

    def fallback(self, callback: FailureCallback) -> TrapResult:
        """Run ``callback(failure)`` if there is an unclaimed failure."""
        run_handler(self, CatchAllHandler(callback))
        return self

    any = fallback

    def cleanup(self, action: Callable[[], Any]) -> TrapResult:
        """
        Run a cleanup action, whatever the outcome.

        Exceptions raised by ``action`` propagate to the caller.

        Raises:
            CleanupError: If cleanup already ran for this result
        """
        if self._cleaned:
            raise CleanupError(action)
        self._cleaned = True
        action()
        return self

    def rethrow(self):
        """Re-raise the failure if nobody claimed it."""
        if self._failure is not None and not self._claimed:
            logger.debug(
                f"Rethrowing unclaimed {self._failure.kind_name}",
                extra={"trace_id": self._failure.trace_id},
            )
            raise self._failure

    def __repr__(self) -> str:
        if self._failure is None:
            return "TrapResult(ok)"
        state = "claimed" if self._claimed else "unclaimed"
        return f"TrapResult({self._failure.kind_name}, {state})"


# ============================================================================
# Trap
# ============================================================================

def trap(work: Callable[..., Any], *args: Any, **kwargs: Any) -> TrapResult:
    """
    Run ``work(*args, **kwargs)`` under interception.

    Args:
        work: Unit of work to protect

    Returns:
        TrapResult describing the outcome

    Example:
        ```python
        trap(load_user, user_id).dispatch(
            handler(ArgumentNullFault, lambda fault, failure: reject(fault.param_name)),
            handler_any(lambda failure: log.error(failure.full_message())),
        ).cleanup(close_session)
        ```
    """
    if not callable(work):
        raise TypeError(f"trap() expects a callable, got {type(work).__name__}")

    try:
        value = work(*args, **kwargs)
    except TraplineError:
        raise
    except Exception as exc:
        failure = Failure.capture(exc)
        _emit(failure)
        return TrapResult(failure)

    return TrapResult(value=value)


@contextmanager
def trapped() -> Iterator[TrapResult]:
    """
    Context manager form of ``trap``.

    The exception raised by the block is normalized into the yielded
    result and suppressed.

    Example:
        ```python
        with trapped() as result:
            config = load(path)
        result.when().on(FileFault, use_defaults).end()
        ```
    """
    result = TrapResult()
    try:
        yield result
    except TraplineError:
        raise
    except Exception as exc:
        result._fail(Failure.capture(exc))
        _emit(result.failure)


# ============================================================================
# Failure listeners
# ============================================================================

def on_failure(listener: FailureListener) -> FailureListener:
    """
    Register a listener called with every failure a trap captures.

    Listeners run after capture and before any handler. A listener that
    raises is logged and ignored. Usable as a decorator.
    """
    with _listeners_lock:
        _listeners.append(listener)
    return listener


def remove_listener(listener: FailureListener):
    """Unregister a failure listener (no-op if not registered)."""
    with _listeners_lock:
        if listener in _listeners:
            _listeners.remove(listener)


def _emit(failure: Failure):
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            f"Trapped {failure.kind_name}: {failure.render()}",
            extra={
                "trace_id": failure.trace_id,
                "failure": failure.to_dict(),
            },
        )

    with _listeners_lock:
        listeners = list(_listeners)

    for listener in listeners:
        try:
            listener(failure)
        except Exception as e:
            logger.error(f"Failure listener raised exception: {e}", exc_info=True)
