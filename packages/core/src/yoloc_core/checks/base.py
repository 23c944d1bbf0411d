"""Checker interface.

A check inspects the shared run Config and returns zero or more scored
results. Checks are independent: the orchestrator runs them in sequence and
a failing check never prevents the others from running. The only state a
check may leave behind for later checks is ``Config.found_images``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from yoloc_core.models import CheckResult, Config


class Checker(ABC):
    #: Display name used for rendering and for tagging results.
    name: str = ""

    @abstractmethod
    def run(self, config: Config) -> list[CheckResult]:
        """Return this check's results.

        Raise CheckError (or let a remote-call error propagate) when no
        result can be produced; the orchestrator records it as a failed row.
        """

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"
