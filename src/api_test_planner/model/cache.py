"""Caller-owned memo caches.

Nothing here is process-global: a cache lives as long as the object that
created it, typically one generation run.
"""

import json
from collections import OrderedDict
from collections.abc import Callable, Hashable
from typing import Any


class LruCache:
    """Small bounded least-recently-used mapping with hit/miss counters."""

    def __init__(self, max_entries: int = 1024):
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self.hits = 0
        self.misses = 0
        self._data: OrderedDict[Hashable, Any] = OrderedDict()

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._data

    def get_or_compute(self, key: Hashable, compute: Callable[[], Any]) -> Any:
        if key in self._data:
            self.hits += 1
            self._data.move_to_end(key)
            return self._data[key]
        self.misses += 1
        value = compute()
        self._data[key] = value
        if len(self._data) > self.max_entries:
            self._data.popitem(last=False)
        return value

    def clear(self) -> None:
        self._data.clear()
        self.hits = 0
        self.misses = 0


def canonical_form(value: Any) -> str:
    """Stable JSON text for a value; non-JSON leaves fall back to ``repr``."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=repr, ensure_ascii=False)


class ValidationCache(LruCache):
    """Memo of ``Constraint.validate`` results.

    Keys combine the constraint fingerprint, the value's type name and its
    canonical form, so ``1``, ``1.0``, ``True`` and ``"1"`` never collide.
    """

    def __init__(self, max_entries: int = 4096):
        super().__init__(max_entries)

    def lookup(self, fingerprint: str, value: Any, compute: Callable[[], bool]) -> bool:
        key = (fingerprint, type(value).__name__, canonical_form(value))
        return self.get_or_compute(key, compute)
