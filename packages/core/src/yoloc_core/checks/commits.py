"""Commit provenance check: signing, approval, review and PR hygiene."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from yoloc_core.checks.base import Checker
from yoloc_core.errors import CheckError
from yoloc_core.gh.commits import fetch_commits
from yoloc_core.models import CheckResult, Commit, Config

logger = logging.getLogger(__name__)

SIGNED_MAX = 5
APPROVED_MAX = 10
REVIEWED_MAX = 10
PULL_REQUEST_MAX = 5
STALENESS_MAX = 5

# A branch with no commit in this window counts as abandoned.
ABANDONED_AFTER = timedelta(days=90)


def _ceil_div(a: int, b: int) -> int:
    return -(-a // b)


def deficiency_score(max_score: int, hits: int, total: int) -> int:
    """Return ``max_score - ceil(max_score * hits / total)``.

    Integer arithmetic so 50% of 5 is exactly 2.5 → 3, never 2.9999.
    """
    return max_score - _ceil_div(max_score * hits, total)


def _pct(hits: int, total: int) -> float:
    return 100.0 * hits / total


def score_commits(commits: list[Commit], now: datetime | None = None) -> list[CheckResult]:
    """Turn a non-empty, newest-first commit list into sub-score results."""
    total = len(commits)
    if total == 0:
        raise ValueError("score_commits needs at least one commit")

    signed = sum(1 for c in commits if c.signed)
    approved = sum(1 for c in commits if c.approved)
    reviewed = sum(1 for c in commits if c.reviewed)
    with_pr = sum(1 for c in commits if c.pull_request is not None)

    results = [
        CheckResult(
            score=deficiency_score(SIGNED_MAX, signed, total),
            max=SIGNED_MAX,
            message=f"{_pct(signed, total):.1f}% of the last {total} commits were signed",
            level=2,
        ),
        CheckResult(
            score=deficiency_score(APPROVED_MAX, approved, total),
            max=APPROVED_MAX,
            message=f"{_pct(approved, total):.1f}% of the last {total} commits were approved",
            level=3,
        ),
        CheckResult(
            score=deficiency_score(REVIEWED_MAX, reviewed, total),
            max=REVIEWED_MAX,
            message=f"{_pct(reviewed, total):.1f}% of the last {total} commits were reviewed",
            level=3,
        ),
        CheckResult(
            score=deficiency_score(PULL_REQUEST_MAX, with_pr, total),
            max=PULL_REQUEST_MAX,
            message=f"{_pct(with_pr, total):.1f}% of the last {total} commits came from a pull request",
            level=2,
        ),
    ]

    newest = commits[0].committed_date
    now = now or datetime.now(timezone.utc)
    if newest is not None and now - newest > ABANDONED_AFTER:
        # An abandoned branch is as YOLO as it gets.
        results.append(
            CheckResult(
                score=STALENESS_MAX,
                max=STALENESS_MAX,
                message=f"Last commit was {(now - newest).days} days ago. Abandoned!",
                level=1,
            )
        )
    else:
        results.append(
            CheckResult(score=0, max=STALENESS_MAX, message="Commits within the last 90 days", level=1)
        )
    return results


class CommitsCheck(Checker):
    name = "commits"

    def run(self, config: Config) -> list[CheckResult]:
        if config.graphql is None:
            raise CheckError("no GraphQL client configured")

        commits = self._fetch(config, config.branch)
        if not commits and config.fallback_branch and config.fallback_branch != config.branch:
            logger.info(
                "No commits on %s for %s, retrying on %s", config.branch, config.slug, config.fallback_branch
            )
            commits = self._fetch(config, config.fallback_branch)

        if not commits:
            raise CheckError(f"no commits found on {config.branch} or {config.fallback_branch}")
        return score_commits(commits)

    @staticmethod
    def _fetch(config: Config, branch: str) -> list[Commit]:
        return fetch_commits(
            config.graphql,
            config.owner,
            config.name,
            branch,
            cache=config.commit_cache,
            cancel=config.cancel,
        )
