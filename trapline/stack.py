"""
Trapline - Stack capture.

Frames are rendered as ``<file>:<line> <module>.<qualname>`` strings,
innermost first. Frames that belong to trapline itself, to modules listed
in ``TraplineConfig.skip_modules`` and to frozen import machinery are
dropped; at most ``stack_depth`` frames are kept.
"""

from __future__ import annotations

import traceback
from types import FrameType, TracebackType
from typing import Iterable, Iterator, Optional

from .config import get_config

_PACKAGE = __name__.rpartition(".")[0]


def format_frame(frame: FrameType, lineno: int) -> str:
    """Render one frame as ``file:line module.qualname``."""
    code = frame.f_code
    qualname = getattr(code, "co_qualname", code.co_name)
    module = frame.f_globals.get("__name__", "?")
    return f"{code.co_filename}:{lineno} {module}.{qualname}"


def is_internal(frame: FrameType, skip_modules: tuple[str, ...] = ()) -> bool:
    """Check whether a frame belongs to trapping/dispatch machinery."""
    module = frame.f_globals.get("__name__", "")
    if module == _PACKAGE or module.startswith(_PACKAGE + "."):
        return True
    if frame.f_code.co_filename.startswith("<frozen"):
        return True
    return any(
        module == prefix or module.startswith(prefix + ".")
        for prefix in skip_modules
    )


def _collect(frames: Iterable[tuple[FrameType, int]]) -> Iterator[str]:
    skip_modules = get_config().skip_modules
    for frame, lineno in frames:
        if not is_internal(frame, skip_modules):
            yield format_frame(frame, lineno)


def _bounded(frames: Iterator[str], limit: int) -> tuple[str, ...]:
    captured = []
    for frame in frames:
        if len(captured) >= limit:
            break
        captured.append(frame)
    return tuple(captured)


def capture_stack(limit: Optional[int] = None) -> tuple[str, ...]:
    """
    Capture the active call stack at the caller's throw site.

    Args:
        limit: Maximum frames to keep (defaults to config ``stack_depth``)

    Returns:
        Frame descriptors, innermost first
    """
    config = get_config()
    if not config.capture_stack:
        return ()
    if limit is None:
        limit = config.stack_depth
    return _bounded(_collect(traceback.walk_stack(None)), limit)


def capture_traceback(
    tb: Optional[TracebackType],
    limit: Optional[int] = None,
) -> tuple[str, ...]:
    """
    Capture frames for an intercepted exception.

    The frames between the interception point and the raise site come
    first (raise site first), followed by the frames of the code that
    is intercepting.

    Args:
        tb: Traceback of the intercepted exception
        limit: Maximum frames to keep (defaults to config ``stack_depth``)

    Returns:
        Frame descriptors, innermost first
    """
    config = get_config()
    if not config.capture_stack:
        return ()
    if limit is None:
        limit = config.stack_depth

    raised = list(traceback.walk_tb(tb))
    raised.reverse()
    # A with-block frame shows up both in the traceback and on the stack
    seen = {id(frame) for frame, _ in raised}

    def frames() -> Iterator[str]:
        yield from _collect(raised)
        yield from _collect(
            (frame, lineno)
            for frame, lineno in traceback.walk_stack(None)
            if id(frame) not in seen
        )

    return _bounded(frames(), limit)
