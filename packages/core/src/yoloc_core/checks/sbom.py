"""SBOM check: does the project advertise a software bill of materials?"""

from __future__ import annotations

import re

from yoloc_core.checks.base import Checker
from yoloc_core.errors import CheckError
from yoloc_core.gh.repository import get_readme_text, get_recent_releases, get_repo
from yoloc_core.models import CheckResult, Config

SBOM_RE = re.compile(r"(?i)sbom|spdx|cyclonedx")

MAX_SCORE = 10
README_PENALTY = 4
RELEASES_PENALTY = 6


def _release_mentions_sbom(release) -> bool:
    if SBOM_RE.search(release.body or ""):
        return True
    return any(SBOM_RE.search(asset.name or "") for asset in release.get_assets())


class SbomCheck(Checker):
    name = "sbom"

    def run(self, config: Config) -> list[CheckResult]:
        if config.github is None:
            raise CheckError("no GitHub client configured")

        repo = get_repo(config.github, config.slug)
        score = MAX_SCORE
        msgs = []

        if SBOM_RE.search(get_readme_text(repo)):
            msgs.append("Found SBOM mention in README.")
            score -= README_PENALTY

        if any(_release_mentions_sbom(r) for r in get_recent_releases(repo)):
            msgs.append("Found SBOM mention in releases.")
            score -= RELEASES_PENALTY

        msg = " ".join(msgs) if msgs else f"No SBOM found at {config.slug}"
        return [CheckResult(score=score, max=MAX_SCORE, message=msg, level=2)]
