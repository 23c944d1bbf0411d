"""Persisted run data.

A Blob is one full run's results plus the moment it was written. The
encoding is plain JSON so any backend can treat it as an opaque string.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from yoloc_core.models import CheckResult

TTL = timedelta(hours=24)

_NON_WORD_RE = re.compile(r"\W+")


def sanitize_key(key: str) -> str:
    """Collapse every run of non-word characters to ``_`` (``a/b`` → ``a_b``)."""
    return _NON_WORD_RE.sub("_", key)


@dataclass
class Blob:
    results: list[CheckResult] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def is_stale(self, now: datetime | None = None, ttl: timedelta = TTL) -> bool:
        """True when the blob is older than ``ttl``, or claims to be from the future."""
        now = now or datetime.now(timezone.utc)
        if self.timestamp > now:
            return True
        return now - self.timestamp > ttl

    def encode(self) -> str:
        return json.dumps(
            {
                "timestamp": self.timestamp.isoformat(),
                "results": [r.to_dict() for r in self.results],
            }
        )

    @classmethod
    def decode(cls, data: str | bytes) -> Blob:
        """Parse an encoded blob. Raises ValueError on malformed input."""
        try:
            d = json.loads(data)
            ts = datetime.fromisoformat(d["timestamp"])
            results = [CheckResult.from_dict(r) for r in d.get("results", [])]
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"malformed blob: {e}") from e
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return cls(results=results, timestamp=ts)
