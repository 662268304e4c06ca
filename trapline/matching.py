"""
Trapline - Kind matching.

A handler declared for kind ``K`` matches a failure whose kind's class is
exactly ``K``. Subclasses do not match their parents and parents do not
match their subclasses; kinds are flat variants.

The match cache memoizes ``(declared, actual)`` decisions. It is keyed on
both types and a hit is trusted as-is, so it can never disagree with the
comparison it stands in for.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any, Union

from .config import get_config

if TYPE_CHECKING:
    from .core import Fault

KindSpec = Union[type, tuple]


class MatchCache:
    """
    Thread-safe memo of exact-type match decisions.

    Lookups read the dict directly; counters, writes and clears take the lock.
    The cache is dropped wholesale when it reaches ``cache_size``.
    """

    def __init__(self):
        self._entries: dict[tuple[type, type], bool] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def matches(self, declared: type, actual: type) -> bool:
        key = (declared, actual)
        cached = self._entries.get(key)
        if cached is not None:
            with self._lock:
                self.hits += 1
            return cached

        result = actual is declared
        limit = get_config().cache_size
        with self._lock:
            self.misses += 1
            if len(self._entries) >= limit:
                self._entries.clear()
            if limit:
                self._entries[key] = result
        return result

    def clear(self):
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def stats(self) -> dict[str, int]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "size": len(self._entries),
        }


_cache = MatchCache()


def resolve_kinds(kind: KindSpec) -> tuple[type, ...]:
    """
    Normalize a declared kind (a class or a tuple of classes).

    Raises:
        TypeError: If any declared kind is not a Fault subclass
    """
    from .core import Fault

    kinds = kind if isinstance(kind, tuple) else (kind,)
    if not kinds:
        raise TypeError("At least one fault kind must be declared")
    for item in kinds:
        if not (isinstance(item, type) and issubclass(item, Fault)):
            raise TypeError(f"Cannot match on {item!r}: not a Fault subclass")
    return kinds


def kind_matches(kinds: tuple[type, ...], value: "Fault | Any") -> bool:
    """Check whether a kind value's exact class is one of ``kinds``."""
    actual = type(value)
    use_cache = get_config().match_cache
    for declared in kinds:
        if use_cache:
            if _cache.matches(declared, actual):
                return True
        elif actual is declared:
            return True
    return False


def match_stats() -> dict[str, int]:
    """Hit/miss counters and size of the process-wide match cache."""
    return _cache.stats()


def clear_match_cache():
    """Empty the process-wide match cache and reset its counters."""
    _cache.clear()
