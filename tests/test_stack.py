"""
Stack capture for thrown and intercepted failures.
"""

import os
import sys

from trapline import (
    Failure,
    InvalidOperationFault,
    capture_stack,
    configure,
    throw,
    trap,
)
from trapline.stack import is_internal


def _throw_here():
    throw(InvalidOperationFault("deep"))


def _recurse(depth):
    if depth == 0:
        _throw_here()
    _recurse(depth - 1)


class TestThrowSiteFrames:

    def test_innermost_frame_is_throw_site(self):
        failure = trap(_throw_here).failure
        frames = failure.stack_frames()
        assert frames[0].endswith("._throw_here")
        assert os.path.basename(__file__) in frames[0]

    def test_frame_format(self):
        frame = trap(_throw_here).failure.stack_frames()[0]
        location, _, function = frame.partition(" ")
        filename, _, lineno = location.rpartition(":")
        assert os.path.basename(filename) == os.path.basename(__file__)
        assert lineno.isdigit()
        assert function.endswith("_throw_here")

    def test_no_trapline_frames(self):
        frames = trap(_throw_here).failure.stack_frames()
        assert not any("/trapline/" in frame for frame in frames)

    def test_default_depth_is_twelve(self):
        frames = trap(_recurse, 30).failure.stack_frames()
        assert len(frames) == 12
        assert frames[0].endswith("_throw_here")
        assert all(frame.endswith("_recurse") for frame in frames[1:])

    def test_configured_depth(self):
        configure(stack_depth=3)
        frames = trap(_recurse, 10).failure.stack_frames()
        assert len(frames) == 3

    def test_capture_disabled(self):
        configure(capture_stack=False)
        assert trap(_throw_here).failure.stack_frames() == ()


class TestInterceptedFrames:

    def test_native_fault_frames_start_at_raise_site(self):
        def parse():
            return int("x")

        frames = trap(parse).failure.stack_frames()
        assert frames[0].endswith(".<locals>.parse")
        assert frames[1].endswith("test_native_fault_frames_start_at_raise_site")

    def test_bare_kind_frames(self):
        def work():
            raise InvalidOperationFault("bare")

        frames = trap(work).failure.stack_frames()
        assert frames[0].endswith(".<locals>.work")


class TestCaptureStack:

    def test_caller_first(self):
        frames = capture_stack()
        assert frames[0].endswith("test_caller_first")

    def test_explicit_limit(self):
        assert len(capture_stack(limit=1)) == 1
        assert capture_stack(limit=0) == ()

    def test_explicit_stack_survives(self):
        failure = Failure(InvalidOperationFault("x"), stack=("f.py:3 m.fn",))
        assert failure.stack_frames() == ("f.py:3 m.fn",)

    def test_is_internal(self):
        assert is_internal(sys._getframe()) is False
        assert is_internal(sys._getframe(), skip_modules=(__name__,)) is True
