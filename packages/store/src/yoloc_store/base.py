"""Abstract persister interface.

Every storage backend (disk, Gist) implements this interface. The CLI and
the HTTP service depend on BasePersister, not on a concrete backend, so
backends are swappable without touching the run logic.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from yoloc_store.models import Blob

if TYPE_CHECKING:
    from yoloc_core.models import CheckResult

logger = logging.getLogger(__name__)


class BasePersister(ABC):
    """Durable memo of full run results, keyed by repository.

    ``get`` returns None for a miss, including a stale blob. Backends may
    raise on transport or decode failures; callers treat those as a miss.
    """

    @abstractmethod
    def get(self, key: str) -> list[CheckResult] | None:
        """Return the results persisted under ``key``, or None."""

    @abstractmethod
    def set(self, key: str, results: list[CheckResult]) -> None:
        """Persist ``results`` under ``key`` with the current timestamp."""

    def close(self) -> None:
        """Release any resources held by the persister.

        Optional. The default does nothing so callers can always call close().
        """

    @staticmethod
    def _fresh_results(key: str, blob: Blob) -> list[CheckResult] | None:
        if blob.is_stale():
            logger.info("Persisted results for %s from %s are stale", key, blob.timestamp.isoformat())
            return None
        return blob.results
