"""Process-local memo for commit-history page walks.

The cache is keyed by a fingerprint of the exact GraphQL query parameters,
so two analyses of the same owner/name/branch with the same page sizes hit
the same entry. Replacement is ARC (adaptive replacement cache): two
resident lists track entries seen once (``_t1``) and more than once
(``_t2``), two ghost lists remember recently evicted keys, and the target
size ``_p`` of ``_t1`` adapts to whichever ghost list is being hit.

There is no expiry. Correctness never depends on a hit: a miss only costs
another walk of the remote API.
"""

from __future__ import annotations

import hashlib
import json
import threading
from collections import OrderedDict
from dataclasses import astuple, dataclass
from typing import Any

# Bump when the shape of HistoryQuery or the cached value changes.
FINGERPRINT_VERSION = 1

DEFAULT_CAPACITY = 256


@dataclass(frozen=True)
class HistoryQuery:
    """The full parameter set of one commit-history walk."""

    owner: str
    name: str
    branch: str
    commits_per_page: int = 100
    pull_requests_per_commit: int = 10
    reviews_per_pull_request: int = 10


def fingerprint(query: HistoryQuery) -> str:
    """Return a stable SHA-256 hex digest of ``query``.

    The key is encoded as a JSON array (field order fixed by the dataclass),
    prefixed with FINGERPRINT_VERSION, so the digest never depends on dict
    ordering or repr formatting.
    """
    payload = json.dumps([FINGERPRINT_VERSION, *astuple(query)], separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class ArcCache:
    """Bounded, thread-safe adaptive replacement cache."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._size = capacity
        self._p = 0.0
        self._t1: OrderedDict[str, Any] = OrderedDict()
        self._t2: OrderedDict[str, Any] = OrderedDict()
        self._b1: OrderedDict[str, None] = OrderedDict()
        self._b2: OrderedDict[str, None] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._size

    def get(self, key: str) -> tuple[Any, bool]:
        """Return ``(value, True)`` on a hit and ``(None, False)`` on a miss."""
        with self._lock:
            if key in self._t1:
                value = self._t1.pop(key)
                self._t2[key] = value
                return value, True
            if key in self._t2:
                self._t2.move_to_end(key)
                return self._t2[key], True
            return None, False

    def add(self, key: str, value: Any) -> None:
        with self._lock:
            if key in self._t1:
                del self._t1[key]
                self._t2[key] = value
                return

            if key in self._t2:
                self._t2[key] = value
                self._t2.move_to_end(key)
                return

            if key in self._b1:
                # Recency ghost hit: grow the recency target.
                delta = 1.0 if len(self._b1) >= len(self._b2) else len(self._b2) / len(self._b1)
                self._p = min(self._p + delta, float(self._size))
                if len(self._t1) + len(self._t2) >= self._size:
                    self._replace(in_b2=False)
                self._b1.pop(key, None)
                self._t2[key] = value
                return

            if key in self._b2:
                # Frequency ghost hit: shrink the recency target.
                delta = 1.0 if len(self._b2) >= len(self._b1) else len(self._b1) / len(self._b2)
                self._p = max(self._p - delta, 0.0)
                if len(self._t1) + len(self._t2) >= self._size:
                    self._replace(in_b2=True)
                self._b2.pop(key, None)
                self._t2[key] = value
                return

            if len(self._t1) + len(self._t2) >= self._size:
                self._replace(in_b2=False)
            if len(self._b1) > self._size - self._p:
                self._b1.popitem(last=False)
            if len(self._b2) > self._p:
                self._b2.popitem(last=False)
            self._t1[key] = value

    def _replace(self, in_b2: bool) -> None:
        t1_len = len(self._t1)
        if t1_len > 0 and (t1_len > self._p or (t1_len == self._p and in_b2) or not self._t2):
            evicted, _ = self._t1.popitem(last=False)
            self._b1[evicted] = None
            if len(self._b1) > self._size:
                self._b1.popitem(last=False)
        else:
            evicted, _ = self._t2.popitem(last=False)
            self._b2[evicted] = None
            if len(self._b2) > self._size:
                self._b2.popitem(last=False)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._t1 or key in self._t2

    def __len__(self) -> int:
        with self._lock:
            return len(self._t1) + len(self._t2)

    def clear(self) -> None:
        with self._lock:
            self._t1.clear()
            self._t2.clear()
            self._b1.clear()
            self._b2.clear()
            self._p = 0.0
