"""Shallow working copies of remote repositories, reused across runs.

Working copies live under ``<clone_root>/<owner>/<name>``. Two analyses of
the same repository in one process (the HTTP service) must not clone into
or scan the same directory at once, so callers hold ``repo_lock`` around
clone-and-scan.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from contextlib import contextmanager
from pathlib import Path

from yoloc_core.errors import CheckError

logger = logging.getLogger(__name__)

CLONE_TIMEOUT = 300

_locks: dict[str, threading.Lock] = {}
_locks_guard = threading.Lock()


@contextmanager
def repo_lock(owner: str, name: str):
    """Hold the process-wide lock for ``owner/name``."""
    key = f"{owner}/{name}".lower()
    with _locks_guard:
        lock = _locks.setdefault(key, threading.Lock())
    with lock:
        yield


def _git_clone(url: str, dest: Path, branch: str) -> subprocess.CompletedProcess:
    return subprocess.run(
        [
            "git",
            "clone",
            "--depth",
            "1",
            "--single-branch",
            "--no-recurse-submodules",
            "--branch",
            branch,
            url,
            str(dest),
        ],
        capture_output=True,
        text=True,
        timeout=CLONE_TIMEOUT,
    )


def clone_repo(url: str, dest: Path, branch: str, fallback_branch: str | None = None) -> Path:
    """Return a working copy of ``url`` at ``dest``, cloning it if needed.

    An existing checkout (``dest/.git``) is reused as is. Otherwise ``branch``
    is cloned, retrying ``fallback_branch`` once if that fails.
    """
    if (dest / ".git").is_dir():
        logger.debug("Reusing working copy at %s", dest)
        return dest

    dest.parent.mkdir(parents=True, exist_ok=True, mode=0o700)

    try:
        result = _git_clone(url, dest, branch)
        if result.returncode != 0 and fallback_branch and fallback_branch != branch:
            logger.info("Clone of %s@%s failed (%s), trying %s", url, branch, result.stderr.strip(), fallback_branch)
            result = _git_clone(url, dest, fallback_branch)
    except (FileNotFoundError, subprocess.TimeoutExpired) as e:
        raise CheckError(f"clone {url}: {e}") from e

    if result.returncode != 0:
        raise CheckError(f"clone {url}: {result.stderr.strip() or 'git exited ' + str(result.returncode)}")
    return dest
