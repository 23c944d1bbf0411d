"""Releaser check: are releases cut by automation or by hand?"""

from __future__ import annotations

import re

from yoloc_core.checks.base import Checker
from yoloc_core.errors import CheckError
from yoloc_core.gh.repository import get_recent_releases, get_repo
from yoloc_core.models import CheckResult, Config

AUTOMATION_RE = re.compile(r"bot|action|release|jenkins|auto")

MAX_SCORE = 10
MANUAL_SCORE = 4


class ReleaserCheck(Checker):
    name = "releaser"

    def run(self, config: Config) -> list[CheckResult]:
        if config.github is None:
            raise CheckError("no GitHub client configured")

        releases = get_recent_releases(get_repo(config.github, config.slug), limit=1)
        if not releases:
            return [CheckResult(score=MAX_SCORE, max=MAX_SCORE, message="No releases found. Great work!", level=1)]

        author = releases[0].author
        user = author.login if author is not None else ""
        if AUTOMATION_RE.search(user):
            return [
                CheckResult(score=0, max=MAX_SCORE, message=f"Previous release was created by automation ({user!r})")
            ]

        return [
            CheckResult(
                score=MANUAL_SCORE,
                max=MAX_SCORE,
                message=f"Releases found, last by {user or 'unknown'} (not automated)",
                level=1,
            )
        ]
