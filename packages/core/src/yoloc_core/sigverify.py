"""Container image signature verification via the cosign CLI.

Keyless verification against the public Sigstore instance: any identity,
any issuer. The question is whether *anything* verifiable signed the
image, not who did.
"""

from __future__ import annotations

import json
import logging
import re
import subprocess

from yoloc_core.errors import NoSignaturesError, VerificationError

logger = logging.getLogger(__name__)

VERIFY_TIMEOUT = 120

_NO_SIGNATURES_RE = re.compile(r"no (?:matching )?signatures", re.IGNORECASE)


class CosignVerifier:
    def __init__(self, cosign_path: str = "cosign"):
        self._cosign = cosign_path

    def verify(self, image: str) -> list[dict]:
        """Return the verified signature payloads for ``image``.

        Raises NoSignaturesError when the image carries no signatures and
        VerificationError for every other failure.
        """
        cmd = [
            self._cosign,
            "verify",
            "--certificate-identity-regexp",
            ".*",
            "--certificate-oidc-issuer-regexp",
            ".*",
            "--output",
            "json",
            image,
        ]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=VERIFY_TIMEOUT)
        except FileNotFoundError as e:
            raise VerificationError(f"cosign not found: {self._cosign}") from e
        except subprocess.TimeoutExpired as e:
            raise VerificationError(f"cosign verify {image} timed out") from e

        if result.returncode != 0:
            stderr = result.stderr.strip()
            if _NO_SIGNATURES_RE.search(stderr):
                raise NoSignaturesError(f"{image}: no signatures found")
            raise VerificationError(f"cosign verify {image}: {stderr.splitlines()[-1] if stderr else result.returncode}")

        signatures = []
        for line in result.stdout.splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                parsed = json.loads(line)
            except json.JSONDecodeError:
                logger.debug("Ignoring non-JSON cosign output: %.80s", line)
                continue
            signatures.extend(parsed if isinstance(parsed, list) else [parsed])
        return signatures
