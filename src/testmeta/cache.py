"""Read-mostly lazy caches shared across threads.

Every cache in testmeta is keyed by an immutable piece of metadata (a
class, a function, an annotation type) and holds a value that is a pure
function of that key.  ``LazyCache`` therefore never blocks readers:
a missing value is computed outside any lock and then inserted with
insert-if-absent semantics.  Two threads racing on the same key may both
compute it, but only the first inserted value is kept and both callers
receive it.

A computation that raises leaves the cache untouched, so a later call
retries from scratch.
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Hashable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class LazyCache(Generic[K, V]):
    """Compute-once mapping with lock-free reads.

    Parameters
    ----------
    name:
        A human-readable name used in log messages.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._entries: dict[K, V] = {}
        # Guards structural mutation only; never held while computing.
        self._lock = threading.Lock()

    def get_or_compute(self, key: K, compute: Callable[[K], V]) -> V:
        """Return the cached value for ``key``, computing it on first access.

        Parameters
        ----------
        key:
            The cache key.
        compute:
            Pure function producing the value for ``key``.  Exceptions
            propagate to the caller and nothing is cached.

        Returns
        -------
        V
            The value stored for ``key``.  When several threads race, all
            of them receive the value that was inserted first.
        """
        try:
            return self._entries[key]
        except KeyError:
            pass

        value = compute(key)
        with self._lock:
            stored = self._entries.setdefault(key, value)
        if stored is value:
            logger.debug("Populated %s cache entry for %r", self._name, key)
        return stored

    def get(self, key: K) -> V | None:
        """Return the cached value for ``key`` without computing it."""
        return self._entries.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"LazyCache(name={self._name!r}, entries={len(self._entries)})"
