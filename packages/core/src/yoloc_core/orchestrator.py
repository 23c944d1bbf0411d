"""Check orchestration and score aggregation.

run_checks() runs every check in order against one shared Config, isolates
failures per check, and folds the successful results into one RunSummary.
run_cached() wraps that with a persister: read-through before, write-through
after. Neither function prints anything; callers that want streaming
output pass ``on_row``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Callable, Iterable, Optional

import httpx
from github import GithubException

from yoloc_core import scoring
from yoloc_core.errors import ConfigError, RunCancelled, YolocError
from yoloc_core.models import CheckResult, Config

if TYPE_CHECKING:
    from yoloc_core.checks.base import Checker
    from yoloc_store.base import BasePersister

logger = logging.getLogger(__name__)

_HOST_PREFIX_RE = re.compile(r"^(?:https?://)?(?:www\.)?github\.com/", re.IGNORECASE)

# Errors a check may raise that mark its row failed instead of aborting the run.
CHECK_FAILURES = (YolocError, httpx.HTTPError, GithubException, OSError, ValueError)


@dataclass
class RunRow:
    """One rendered line: a result, or the error that replaced it."""

    check: str
    result: Optional[CheckResult] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class RunSummary:
    score: int = 0
    max_score: int = 0
    percentage: int = 0
    level: int = 0
    observed_level: int = 0
    label: str = ""
    rows: list[RunRow] = field(default_factory=list)
    cached: bool = False

    @property
    def results(self) -> list[CheckResult]:
        return [r.result for r in self.rows if r.result is not None]


def default_checks() -> list[Checker]:
    from yoloc_core.checks.commits import CommitsCheck
    from yoloc_core.checks.private_keys import PrivateKeysCheck
    from yoloc_core.checks.releaser import ReleaserCheck
    from yoloc_core.checks.sbom import SbomCheck
    from yoloc_core.checks.signed_image import SignedImageCheck

    return [CommitsCheck(), SbomCheck(), PrivateKeysCheck(), SignedImageCheck(), ReleaserCheck()]


def normalize_repo(config: Config) -> Config:
    """Strip any GitHub host prefix from ``config.repo`` and fill owner/name.

    Raises ConfigError when the slug has no owner/name separator.
    """
    slug = _HOST_PREFIX_RE.sub("", config.repo.strip()).strip("/")
    if slug.endswith(".git"):
        slug = slug[: -len(".git")]
    parts = slug.split("/")
    if len(parts) < 2 or not parts[0] or not parts[1]:
        raise ConfigError(f"repository must be in owner/name form, got {config.repo!r}")
    config.owner, config.name = parts[0], parts[1]
    config.repo = f"{config.owner}/{config.name}"
    return config


def summarize(rows: list[RunRow]) -> RunSummary:
    """Aggregate rows into score, max, percentage, level and label.

    Failed rows contribute nothing. ``observed_level`` is the highest level
    among results that scored above zero.
    """
    summary = RunSummary(rows=list(rows))
    for row in rows:
        r = row.result
        if r is None:
            continue
        summary.score += r.score
        summary.max_score += r.max
        if r.score > 0 and r.level > summary.observed_level:
            summary.observed_level = r.level

    summary.percentage = scoring.percentage(summary.score, summary.max_score)
    summary.level = scoring.level(summary.percentage)
    summary.label = scoring.label(summary.percentage)
    return summary


def run_checks(
    checks: Iterable[Checker],
    config: Config,
    on_row: Callable[[RunRow], None] | None = None,
) -> RunSummary:
    """Run ``checks`` in order and aggregate their results.

    Raises ConfigError before anything runs if the repository is malformed,
    and RunCancelled if ``config.cancel`` is set between two checks.
    """
    normalize_repo(config)
    rows: list[RunRow] = []

    def emit(row: RunRow) -> None:
        rows.append(row)
        if on_row is not None:
            on_row(row)

    for check in checks:
        if config.cancelled():
            raise RunCancelled(f"run for {config.slug} cancelled before {check.name}")

        try:
            results = check.run(config)
        except RunCancelled:
            raise
        except CHECK_FAILURES as e:
            logger.warning("Check %s failed for %s: %s", check.name, config.slug, e)
            emit(RunRow(check=check.name, error=str(e) or type(e).__name__))
            continue

        for r in results or []:
            if r is None:
                continue
            emit(RunRow(check=check.name, result=replace(r, check=check.name)))

    return summarize(rows)


def persist_key(config: Config) -> str:
    """Key one run by repository, plus the image when one was given."""
    return f"{config.slug}@{config.image}" if config.image else config.slug


def run_cached(
    checks: Iterable[Checker],
    config: Config,
    persister: BasePersister,
    on_row: Callable[[RunRow], None] | None = None,
) -> RunSummary:
    """Like run_checks, but replay fresh persisted results when available.

    Only runs in which every check succeeded are persisted, so a replay
    always covers the same checks as a live run. Persistence failures never
    fail the run: a read error is a miss, a write error is logged.
    """
    normalize_repo(config)
    key = persist_key(config)

    try:
        cached = persister.get(key)
    except Exception as e:
        logger.warning("Reading persisted results for %s failed (%s): %s", key, type(e).__name__, e)
        cached = None

    if cached:
        logger.info("Using persisted results for %s", key)
        rows = []
        for r in cached:
            row = RunRow(check=r.check, result=r)
            rows.append(row)
            if on_row is not None:
                on_row(row)
        summary = summarize(rows)
        summary.cached = True
        return summary

    summary = run_checks(checks, config, on_row=on_row)

    failed = [row.check for row in summary.rows if row.failed]
    if failed:
        logger.info("Not persisting results for %s: %s failed", key, ", ".join(failed))
        return summary

    try:
        persister.set(key, summary.results)
    except Exception as e:
        logger.warning("Persisting results for %s failed (%s): %s", key, type(e).__name__, e)
    return summary
