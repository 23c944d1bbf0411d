"""DiskPersister: one JSON file per repository in the user cache directory.

Files are written to a temporary name and renamed into place, so a
concurrent reader sees either the previous blob or the new one, never a
partial write.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from yoloc_core.config import cache_dir
from yoloc_store.base import BasePersister
from yoloc_store.models import Blob, sanitize_key

if TYPE_CHECKING:
    from yoloc_core.models import CheckResult

logger = logging.getLogger(__name__)


class DiskPersister(BasePersister):
    """Stores run results under ``<root>/<sanitized key>``.

    ``root`` defaults to ``$XDG_CACHE_HOME/yoloc/persist``. Configure via
    .yoloc.yml: `persist_path: /path/to/dir`.
    """

    def __init__(self, root: str | os.PathLike | None = None):
        self.root = Path(root) if root else cache_dir() / "persist"
        self.root.mkdir(parents=True, exist_ok=True, mode=0o700)

    def key_path(self, key: str) -> Path:
        return self.root / sanitize_key(key)

    def get(self, key: str) -> list[CheckResult] | None:
        kp = self.key_path(key)
        logger.debug("checking %s ...", kp)
        if not kp.exists():
            return None
        return self._fresh_results(key, Blob.decode(kp.read_text(encoding="utf-8")))

    def set(self, key: str, results: list[CheckResult]) -> None:
        kp = self.key_path(key)
        logger.debug("setting %s ...", kp)
        data = Blob(results=list(results)).encode()

        fd, tmp = tempfile.mkstemp(dir=self.root, prefix=".tmp-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
            os.replace(tmp, kp)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
