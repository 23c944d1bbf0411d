"""Domain types for a yoloc run.

``Config`` is the only mutable object: checks may append discovered image
references to ``found_images`` for later checks to consume. Everything the
commit-history analyzer builds is frozen once constructed.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from yoloc_core.cache import ArcCache


@dataclass(frozen=True)
class CheckResult:
    """One scored contribution from a check.

    ``check`` is filled in by the orchestrator so persisted results can be
    rendered again without the check object that produced them.
    """

    score: int
    max: int
    message: str
    level: int = 0
    check: str = ""

    def __post_init__(self):
        if self.max <= 0:
            raise ValueError(f"max must be positive, got {self.max}")
        if not 0 <= self.score <= self.max:
            raise ValueError(f"score {self.score} outside 0..{self.max}")

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "max": self.max,
            "message": self.message,
            "level": self.level,
            "check": self.check,
        }

    @classmethod
    def from_dict(cls, d: dict) -> CheckResult:
        return cls(
            score=int(d.get("score", 0)),
            max=int(d.get("max", 1)),
            message=d.get("message", ""),
            level=int(d.get("level", 0)),
            check=d.get("check", ""),
        )


@dataclass(frozen=True)
class User:
    login: str = ""


@dataclass(frozen=True)
class Review:
    author: User
    state: str


@dataclass(frozen=True)
class PullRequest:
    number: int
    head_sha: str
    merged_at: datetime | None
    author: User
    merged_by: User = field(default_factory=User)
    reviews: tuple[Review, ...] = ()


@dataclass(frozen=True)
class Commit:
    sha: str
    committed_date: datetime
    committer: User
    signed: bool = False
    approved: bool = False
    reviewed: bool = False
    pull_request: PullRequest | None = None


@dataclass
class Config:
    """Shared context for one run of the checks.

    ``repo`` is what the user typed; ``owner`` and ``name`` are filled in by
    ``normalize_repo`` before the first check runs.
    """

    repo: str
    image: str = ""
    owner: str = ""
    name: str = ""
    branch: str = "main"
    fallback_branch: str = "master"
    found_images: list[str] = field(default_factory=list)

    # Collaborators. Typed loosely so tests can inject fakes.
    graphql: Any = None
    github: Any = None
    http: Any = None
    commit_cache: ArcCache | None = None
    verifier: Any = None
    scanner: Any = None

    clone_root: str | None = None
    cancel: threading.Event = field(default_factory=threading.Event)

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.name}"

    def cancelled(self) -> bool:
        return self.cancel.is_set()
