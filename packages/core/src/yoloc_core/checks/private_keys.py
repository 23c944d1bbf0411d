"""Private key check: how many secrets are checked into the default branch?

The same scan also harvests container image references that mention the
repository, and hands them (plus a few naming variations) to later checks
through ``Config.found_images``.
"""

from __future__ import annotations

import logging
from pathlib import Path

from yoloc_core.checks.base import Checker
from yoloc_core.clone import clone_repo, repo_lock
from yoloc_core.config import cache_dir
from yoloc_core.errors import CheckError
from yoloc_core.models import CheckResult, Config
from yoloc_core.scan import Match

logger = logging.getLogger(__name__)

MAX_SCORE = 10


def image_variations(image: str, name: str) -> list[str]:
    """Return ``image`` followed by plausible sub-images for project ``name``."""
    out = [image]
    if f"{name}/{name}" not in image:
        out.append(f"{image}/{name}")
    for suffix in ("server", "cli", "client"):
        candidate = f"{name}-{suffix}"
        if candidate not in image:
            out.append(f"{image}/{candidate}")
    return out


def classify(matches: list[Match], owner: str, name: str) -> tuple[list[str], list[str]]:
    """Split scanner matches into ``(key_paths, image_refs)``.

    Keys under a test path are ignored. Image references are kept only when
    they mention the repository owner or name, in first-seen order.
    """
    keys: list[str] = []
    images: list[str] = []
    for m in matches:
        if m.kind == "image":
            if (name in m.content or owner in m.content) and m.content not in images:
                images.append(m.content)
        elif m.kind == "key" and "test" not in m.path and m.path not in keys:
            keys.append(m.path)
    return keys, images


class PrivateKeysCheck(Checker):
    name = "private keys"

    def run(self, config: Config) -> list[CheckResult]:
        if config.scanner is None:
            raise CheckError("no secret scanner configured")

        root = Path(config.clone_root) if config.clone_root else cache_dir() / "clones"
        dest = root / config.owner / config.name
        url = f"https://github.com/{config.slug}.git"

        with repo_lock(config.owner, config.name):
            clone_repo(url, dest, config.branch, config.fallback_branch)
            matches = config.scanner.scan(dest)

        keys, images = classify(matches, config.owner, config.name)

        for image in images:
            for candidate in image_variations(image, config.name):
                if candidate not in config.found_images:
                    config.found_images.append(candidate)
        if images:
            logger.info("Discovered %d image reference(s) in %s", len(images), config.slug)

        if keys:
            return [
                CheckResult(
                    score=MAX_SCORE,
                    max=MAX_SCORE,
                    message=f"Found {len(keys)} possibly private key(s): {', '.join(keys)}",
                    level=2,
                )
            ]
        return [
            CheckResult(
                score=0,
                max=MAX_SCORE,
                message=f"Zero private keys checked into {config.slug}. Sharing is caring :(",
                level=2,
            )
        ]
