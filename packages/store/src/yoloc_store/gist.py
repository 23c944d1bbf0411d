"""GistPersister: zero-infrastructure shared results via a GitHub Gist.

Every repository gets its own file inside one Gist, named after the
sanitized key (`owner_repo.json`), holding one encoded Blob. Several
yoloc service instances pointed at the same Gist share one result cache
without a database.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from yoloc_store.base import BasePersister
from yoloc_store.models import Blob, sanitize_key

if TYPE_CHECKING:
    from yoloc_core.models import CheckResult

logger = logging.getLogger(__name__)


class GistPersister(BasePersister):
    """Stores run results as files of an existing GitHub Gist.

    The Gist ID is stored in .yoloc.yml under `gist_id`; the token needs
    the `gist` scope.
    """

    def __init__(self, gist_id: str, token: str):
        from github import Github

        self._gist_id = gist_id
        self._gh = Github(token)

    def _get_gist(self):
        return self._gh.get_gist(self._gist_id)

    @staticmethod
    def filename(key: str) -> str:
        return f"{sanitize_key(key)}.json"

    def get(self, key: str) -> list[CheckResult] | None:
        name = self.filename(key)
        logger.debug("checking gist %s file %s ...", self._gist_id, name)
        file_obj = self._get_gist().files.get(name)
        if file_obj is None or not file_obj.content:
            return None
        return self._fresh_results(key, Blob.decode(file_obj.content))

    def set(self, key: str, results: list[CheckResult]) -> None:
        from github import InputFileContent

        name = self.filename(key)
        logger.debug("setting gist %s file %s ...", self._gist_id, name)
        content = Blob(results=list(results)).encode()
        self._get_gist().edit(files={name: InputFileContent(content)})
