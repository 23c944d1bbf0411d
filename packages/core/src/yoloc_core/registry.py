"""Minimal OCI distribution client: list the tags of an image repository.

Used to pick a concrete tag for image references discovered in source code,
which usually come without one. Anonymous pulls only; the bearer token
challenge from the registry is negotiated on the fly.
"""

from __future__ import annotations

import logging
import re

import httpx

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY = "registry-1.docker.io"
REQUEST_TIMEOUT = 20.0

_CHALLENGE_RE = re.compile(r'(\w+)="([^"]*)"')
_VERSION_RE = re.compile(r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?$")


def split_reference(ref: str) -> tuple[str, str, str | None]:
    """Split ``ref`` into ``(registry, repository, tag)``.

    Follows the docker convention: the first path component is a registry
    only if it looks like a host (has a dot or a port, or is localhost).
    Digest references return the digest as the tag.
    """
    tag: str | None = None
    if "@" in ref:
        ref, tag = ref.split("@", 1)
    else:
        last = ref.rsplit("/", 1)[-1]
        if ":" in last:
            ref, tag = ref.rsplit(":", 1)

    first, _, rest = ref.partition("/")
    if rest and ("." in first or ":" in first or first == "localhost"):
        registry, repository = first, rest
    else:
        registry, repository = DEFAULT_REGISTRY, ref
        if "/" not in repository:
            repository = f"library/{repository}"
    if registry == "docker.io":
        registry = DEFAULT_REGISTRY
    return registry, repository, tag


def parse_version(tag: str) -> tuple[int, int, int]:
    """Parse ``v1.2.3``-style tags. Raises ValueError for anything else."""
    m = _VERSION_RE.match(tag)
    if not m:
        raise ValueError(f"not a version tag: {tag!r}")
    return tuple(int(g or 0) for g in m.groups())


def select_tag(tags: list[str]) -> str | None:
    """Return the highest version tag, or the first raw tag if none parse."""
    best: tuple[tuple[int, int, int], str] | None = None
    for tag in tags:
        try:
            version = parse_version(tag)
        except ValueError:
            continue
        if best is None or version > best[0]:
            best = (version, tag)
    if best is not None:
        return best[1]
    if tags:
        logger.debug("No version tags among %d tag(s), using %s", len(tags), tags[0])
        return tags[0]
    return None


def _bearer_token(client: httpx.Client, challenge: str) -> str | None:
    scheme, _, params = challenge.partition(" ")
    if scheme.lower() != "bearer":
        return None
    fields = dict(_CHALLENGE_RE.findall(params))
    realm = fields.pop("realm", None)
    if not realm:
        return None
    resp = client.get(realm, params=fields, timeout=REQUEST_TIMEOUT)
    resp.raise_for_status()
    body = resp.json()
    return body.get("token") or body.get("access_token")


def list_tags(client: httpx.Client, ref: str) -> list[str]:
    """Return the tags of the repository ``ref`` points at."""
    registry, repository, _ = split_reference(ref)
    url = f"https://{registry}/v2/{repository}/tags/list"

    resp = client.get(url, timeout=REQUEST_TIMEOUT)
    if resp.status_code == 401:
        token = _bearer_token(client, resp.headers.get("www-authenticate", ""))
        if token:
            resp = client.get(url, headers={"Authorization": f"Bearer {token}"}, timeout=REQUEST_TIMEOUT)
    resp.raise_for_status()
    return list(resp.json().get("tags") or [])
