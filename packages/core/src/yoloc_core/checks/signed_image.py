"""Signed image check: does the published container image carry signatures?

Zero verified signatures is scored at full marks: nothing says YOLO like
shipping images nobody can verify.
"""

from __future__ import annotations

import logging

import httpx

from yoloc_core.checks.base import Checker
from yoloc_core.errors import CheckError, NoSignaturesError, VerificationError
from yoloc_core.models import CheckResult, Config
from yoloc_core.registry import list_tags, select_tag, split_reference

logger = logging.getLogger(__name__)

MAX_SCORE = 10


def _score(image: str, signatures: int) -> CheckResult:
    if signatures == 0:
        return CheckResult(score=MAX_SCORE, max=MAX_SCORE, message=f"Found no verified signatures for {image}", level=3)
    return CheckResult(score=0, max=MAX_SCORE, message=f"Found {signatures} verified signatures for {image}", level=3)


def resolve_tag(client: httpx.Client | None, image: str) -> str:
    """Pin a tagless ``image`` to its best tag; leave anything else alone.

    Registry errors and unusable tag lists fall back to the reference as
    given (cosign then resolves it as ``:latest``).
    """
    _, _, tag = split_reference(image)
    if tag is not None or client is None:
        return image
    try:
        chosen = select_tag(list_tags(client, image))
    except (httpx.HTTPError, ValueError) as e:
        logger.debug("Could not list tags for %s: %s", image, e)
        return image
    return f"{image}:{chosen}" if chosen else image


class SignedImageCheck(Checker):
    name = "signed image"

    def run(self, config: Config) -> list[CheckResult]:
        if config.verifier is None:
            raise CheckError("no signature verifier configured")

        if config.image:
            return [self._verify_explicit(config, config.image)]

        if not config.found_images:
            raise CheckError("Image URL not provided and none discovered")

        results = []
        for image in config.found_images:
            if config.cancelled():
                break
            ref = resolve_tag(config.http, image)
            try:
                signatures = config.verifier.verify(ref)
            except NoSignaturesError:
                signatures = []
            except VerificationError as e:
                # Discovered names are guesses; most variations do not exist.
                logger.debug("Skipping discovered image %s: %s", ref, e)
                continue
            results.append(_score(ref, len(signatures)))

        if not results:
            raise CheckError(f"none of {len(config.found_images)} discovered image(s) could be verified")
        return results

    @staticmethod
    def _verify_explicit(config: Config, image: str) -> CheckResult:
        try:
            signatures = config.verifier.verify(image)
        except NoSignaturesError:
            signatures = []
        except VerificationError as e:
            raise CheckError(f"verify: {e}") from e
        return _score(image, len(signatures))
