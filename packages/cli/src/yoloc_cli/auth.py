"""GitHub token lookup for the checker.

Sources are tried in order and the first non-empty token wins:
  1. GITHUB_TOKEN, then GH_TOKEN
  2. `gh auth token` from a logged-in GitHub CLI
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)

TOKEN_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")
GH_TIMEOUT = 5


def _token_from_env() -> str | None:
    for var in TOKEN_ENV_VARS:
        token = os.environ.get(var, "").strip()
        if token:
            logger.debug("Using GitHub token from $%s", var)
            return token
    return None


def _token_from_gh_cli() -> str | None:
    try:
        result = subprocess.run(["gh", "auth", "token"], capture_output=True, text=True, timeout=GH_TIMEOUT)
    except (FileNotFoundError, subprocess.TimeoutExpired) as e:
        logger.debug("gh CLI unavailable: %s", e)
        return None
    if result.returncode != 0:
        return None
    token = result.stdout.strip()
    if token:
        logger.debug("Using GitHub token from gh CLI session")
    return token or None


def resolve_github_token() -> str | None:
    """Return a GitHub token, or None when no source has one.

    Never raises; the CLI turns a None into a UsageError.
    """
    return _token_from_env() or _token_from_gh_cli()
