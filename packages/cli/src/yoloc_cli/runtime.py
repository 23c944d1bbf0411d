"""Long-lived collaborators shared by every run in one process.

The CLI builds one Runtime per invocation; the HTTP service builds one at
startup and derives a fresh Config from it per request, so the commit
cache and HTTP connection pool are shared while per-run state is not.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import click
import httpx

from yoloc_core.cache import ArcCache
from yoloc_core.config import signatures_path
from yoloc_core.gh.graphql import GraphQLClient
from yoloc_core.gh.repository import get_github
from yoloc_core.models import Config
from yoloc_core.scan import SecretScanner
from yoloc_core.sigverify import CosignVerifier
from yoloc_store.base import BasePersister
from yoloc_store.noop import NoOpPersister

logger = logging.getLogger(__name__)


def build_persister(config: dict) -> BasePersister:
    """Instantiate the configured persister from .yoloc.yml / PERSIST_BACKEND.

    Backend selection:
      persist: disk  → DiskPersister (optional persist_path)
      persist: gist  → GistPersister (requires gist_id and a GitHub token)
      (default)      → NoOpPersister
    """
    backend = (config.get("persist") or "").lower()

    if backend in ("", "none", "noop"):
        return NoOpPersister()

    if backend == "disk":
        from yoloc_store.disk import DiskPersister

        return DiskPersister(root=config.get("persist_path"))

    if backend == "gist":
        from yoloc_store.gist import GistPersister

        gist_id = config.get("gist_id")
        token = config.get("github_token")
        if not gist_id or not token:
            logger.warning("Gist persistence requires gist_id and a GitHub token. Falling back to no persistence.")
            return NoOpPersister()
        return GistPersister(gist_id=gist_id, token=token)

    raise click.UsageError(f"Unknown persistence backend: {backend!r}. Choose 'disk' or 'gist'.")


@dataclass
class Runtime:
    settings: dict
    http: httpx.Client
    graphql: GraphQLClient
    github: Any
    cache: ArcCache
    verifier: CosignVerifier
    scanner: SecretScanner
    persister: BasePersister = field(default_factory=NoOpPersister)

    @classmethod
    def from_settings(cls, settings: dict) -> Runtime:
        token = settings.get("github_token")
        http = httpx.Client(follow_redirects=True)
        return cls(
            settings=settings,
            http=http,
            graphql=GraphQLClient(token, http),
            github=get_github(token),
            cache=ArcCache(int(settings.get("cache_size") or 256)),
            verifier=CosignVerifier(settings.get("cosign_path") or "cosign"),
            scanner=SecretScanner(signatures_path(settings)),
            persister=build_persister(settings),
        )

    def new_config(self, repo: str, image: str = "") -> Config:
        return Config(
            repo=repo,
            image=image or "",
            branch=self.settings.get("branch") or "main",
            fallback_branch=self.settings.get("fallback_branch") or "master",
            graphql=self.graphql,
            github=self.github,
            http=self.http,
            commit_cache=self.cache,
            verifier=self.verifier,
            scanner=self.scanner,
            clone_root=self.settings.get("clone_root"),
        )

    def close(self) -> None:
        self.persister.close()
        self.http.close()
