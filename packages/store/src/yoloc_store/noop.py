"""No-op persister, the default when no backend is configured.

Every run is computed from scratch. Using a NoOpPersister rather than None
lets callers always go through get()/set() without conditional checks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from yoloc_store.base import BasePersister

if TYPE_CHECKING:
    from yoloc_core.models import CheckResult


class NoOpPersister(BasePersister):
    def get(self, key: str) -> list[CheckResult] | None:
        return None

    def set(self, key: str, results: list[CheckResult]) -> None:
        pass  # intentional no-op
