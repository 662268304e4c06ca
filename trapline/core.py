"""
Trapline - Core types.

Defines:
- Fault: base class of all fault kinds (kind-tagged failure data)
- Failure: the envelope raised and trapped (kind + stack + owned cause)
- Chain inspection on Failure (has_cause, full_message, flatten, find_cause)
"""

from __future__ import annotations

import hashlib
import time
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .errors import ChainOwnershipError
from .matching import KindSpec, kind_matches, resolve_kinds
from .stack import capture_stack, capture_traceback

CHAIN_SEPARATOR = " --> "


# ============================================================================
# Fault - Base Kind
# ============================================================================

class Fault(Exception):
    """
    Base fault kind - a typed, immutable value describing one failure.

    A fault kind is data first: a stable label, a message and the fields
    of its category. It is also an exception, so a bare ``raise`` of a kind
    inside a trap works and is wrapped into a fresh Failure.

    Dispatch matches on the kind's class, never on ``kind_name``.

    Attributes:
        kind_name: Stable human-readable label (defaults to the class name)
        message: Human-readable message

    Example:
        ```python
        class QuotaFault(Fault):
            kind_name = "QuotaExceeded"

            def __init__(self, tenant: str, limit: int):
                super().__init__("quota exceeded", tenant=tenant, limit=limit)

            def render(self) -> str:
                return f"QuotaExceeded: {self.tenant} over {self.limit}"
        ```
    """

    kind_name: str = "Fault"

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if not cls.__dict__.get("kind_name"):
            cls.kind_name = cls.__name__

    def __init__(self, message: str = "", **fields: Any):
        for name, value in fields.items():
            object.__setattr__(self, name, value)
        object.__setattr__(self, "message", message)
        object.__setattr__(self, "_fields", tuple(fields))
        super().__init__(message)
        object.__setattr__(self, "_sealed", True)

    def __setattr__(self, name: str, value: Any):
        # Interpreter-managed dunders (__traceback__, __cause__, ...) stay writable
        if self.__dict__.get("_sealed") and not name.startswith("__"):
            raise AttributeError(
                f"{type(self).__name__} is immutable; cannot set {name!r}"
            )
        super().__setattr__(name, value)

    def __delattr__(self, name: str):
        if self.__dict__.get("_sealed") and not name.startswith("__"):
            raise AttributeError(
                f"{type(self).__name__} is immutable; cannot delete {name!r}"
            )
        super().__delattr__(name)

    def __reduce__(self):
        # Exception.__reduce__ would replay state through the sealed __setattr__
        return _restore_fault, (type(self), dict(self.__dict__))

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Fault):
            return NotImplemented
        return (
            type(self) is type(other)
            and self.message == other.message
            and self.fields == other.fields
        )

    def __hash__(self) -> int:
        return hash((type(self), self.message, tuple(self.fields.items())))

    def render(self) -> str:
        """Render the kind as a stable descriptive string."""
        if self.message:
            return f"{self.kind_name}: {self.message}"
        return self.kind_name

    @property
    def fields(self) -> dict[str, Any]:
        """Category-specific fields of this kind."""
        return {name: getattr(self, name) for name in self.__dict__.get("_fields", ())}

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize kind to dictionary.

        Returns:
            Dictionary representation suitable for logging/serialization
        """
        return {
            "kind": self.kind_name,
            "message": self.message,
            "rendered": self.render(),
            "fields": self.fields,
        }

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        args = ", ".join(f"{k}={v!r}" for k, v in self.fields.items())
        if self.message:
            args = f"message={self.message!r}" + (f", {args}" if args else "")
        return f"{type(self).__name__}({args})"


def _restore_fault(cls: type, state: dict[str, Any]) -> Fault:
    """Rebuild a kind from its attribute state (copy and pickle support)."""
    fault = cls.__new__(cls)
    for name, value in state.items():
        object.__setattr__(fault, name, value)
    Exception.__init__(fault, state.get("message", ""))
    return fault


# ============================================================================
# Failure - Envelope
# ============================================================================

class Failure(Exception):
    """
    Failure envelope - a fault kind plus where and why it happened.

    A Failure owns:
    - exactly one fault kind
    - the stack frames captured when it was thrown or intercepted
    - zero or one cause (the Failure that preceded it)

    It is immutable after construction. A cause belongs to exactly one
    envelope; the chain is acyclic because a cause must exist before the
    envelope that wraps it.

    Attributes:
        kind: The fault kind value
        stack: Frame descriptors, innermost first
        cause: The preceding Failure, if any
        origin: The exception this envelope was synthesized from, if any
        metadata: Read-only extra data recorded at construction
        trace_id: Unique id of this occurrence
        timestamp: When the envelope was created (UTC)
    """

    def __init__(
        self,
        kind: Fault,
        *,
        stack: Optional[tuple[str, ...]] = None,
        cause: Optional[Failure] = None,
        origin: Optional[BaseException] = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ):
        if not isinstance(kind, Fault):
            raise TypeError(
                f"Failure kind must be a Fault instance, got {type(kind).__name__}"
            )
        if cause is not None:
            if not isinstance(cause, Failure):
                raise TypeError(
                    f"Failure cause must be a Failure, got {type(cause).__name__}"
                )
            if cause._owned:
                raise ChainOwnershipError(cause)

        super().__init__(kind.render())
        self._kind = kind
        self._stack = tuple(stack) if stack is not None else capture_stack()
        self._cause = cause
        self._origin = origin
        self._metadata = MappingProxyType(dict(metadata or {}))
        self._owned = False
        self._timestamp = datetime.now(timezone.utc)

        trace_data = f"{kind.kind_name}:{time.time_ns()}:{id(self)}"
        self._trace_id = hashlib.sha256(trace_data.encode()).hexdigest()[:16]

        # Python's own traceback printing follows __cause__
        if cause is not None:
            self.__cause__ = cause
            # Only a fully built envelope takes ownership of its cause
            cause._owned = True
        elif origin is not None:
            self.__cause__ = origin

    @classmethod
    def capture(cls, exc: BaseException) -> Failure:
        """
        Normalize an intercepted exception into a Failure.

        - A Failure is returned unchanged.
        - A bare Fault is wrapped with frames from its traceback.
        - Anything else is a native fault: it becomes an
          InvalidOperationFault carrying the exception's text.

        Args:
            exc: Exception caught by a trap

        Returns:
            Failure describing the exception
        """
        if isinstance(exc, Failure):
            return exc

        stack = capture_traceback(exc.__traceback__)

        if isinstance(exc, Fault):
            return cls(exc, stack=stack, origin=exc)

        from .domains import InvalidOperationFault

        return cls(
            InvalidOperationFault(describe(exc)),
            stack=stack,
            origin=exc,
            metadata={
                "exception_type": type(exc).__name__,
                "exception_args": exc.args,
            },
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def kind(self) -> Fault:
        return self._kind

    @property
    def kind_name(self) -> str:
        return self._kind.kind_name

    @property
    def stack(self) -> tuple[str, ...]:
        return self._stack

    def stack_frames(self) -> tuple[str, ...]:
        """Frames captured at throw time, innermost first."""
        return self._stack

    @property
    def cause(self) -> Optional[Failure]:
        return self._cause

    @property
    def origin(self) -> Optional[BaseException]:
        return self._origin

    @property
    def metadata(self) -> Mapping[str, Any]:
        return self._metadata

    @property
    def trace_id(self) -> str:
        return self._trace_id

    @property
    def timestamp(self) -> datetime:
        return self._timestamp

    def render(self) -> str:
        return self._kind.render()

    # ------------------------------------------------------------------
    # Chain inspection
    # ------------------------------------------------------------------

    def has_cause(self) -> bool:
        return self._cause is not None

    def full_message(self) -> str:
        """
        Render this failure and every cause below it.

        Returns:
            ``"<this> --> <cause> --> ..."``
        """
        return CHAIN_SEPARATOR.join(f.render() for f in self.flatten())

    def flatten(self) -> tuple[Failure, ...]:
        """This failure first, then each cause in order."""
        chain = []
        current: Optional[Failure] = self
        while current is not None:
            chain.append(current)
            current = current._cause
        return tuple(chain)

    def root_cause(self) -> Failure:
        """The innermost failure of the chain (self when there is no cause)."""
        return self.flatten()[-1]

    def find_cause(self, kind: KindSpec) -> Optional[Fault]:
        """
        Find the first kind value of the given class along the chain.

        The scan starts at this failure and walks down through causes.

        Args:
            kind: Fault class (or tuple of classes) to look for

        Returns:
            The matching kind value, or None
        """
        kinds = resolve_kinds(kind)
        for failure in self.flatten():
            if kind_matches(kinds, failure._kind):
                return failure._kind
        return None

    def find_failure(self, kind: KindSpec) -> Optional[Failure]:
        """Like find_cause, but returns the enclosing Failure."""
        kinds = resolve_kinds(kind)
        for failure in self.flatten():
            if kind_matches(kinds, failure._kind):
                return failure
        return None

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize failure to dictionary.

        Returns:
            Dictionary representation suitable for logging/serialization
        """
        return {
            "kind": self._kind.to_dict(),
            "trace_id": self.trace_id,
            "timestamp": self.timestamp.isoformat(),
            "stack": list(self._stack),
            "metadata": dict(self._metadata),
            "cause": self._cause.to_dict() if self._cause else None,
        }

    def __str__(self) -> str:
        return self._kind.render()

    def __repr__(self) -> str:
        return (
            f"Failure(kind={self._kind!r}, frames={len(self._stack)}, "
            f"has_cause={self.has_cause()})"
        )


def describe(exc: BaseException) -> str:
    """Textual form of a native exception's payload."""
    text = str(exc)
    return text if text else type(exc).__name__
