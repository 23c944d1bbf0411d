"""Signature-based secret scanner for a local working copy.

Signatures are loaded from YAML (see signatures.yml). Each one targets a
single part of a file (name, extension, relative path or contents)
and either matches a literal or searches a regex. Contents signatures whose
name starts with ``_IMAGE_`` classify the match as a container image
reference instead of a secret.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

IMAGE_PREFIX = "_IMAGE_"
DEFAULT_MAX_FILE_SIZE = 16 * 1024 * 1024
_PARTS = ("filename", "extension", "path", "contents")


@dataclass(frozen=True)
class Match:
    kind: str  # "key" | "image"
    path: str  # relative to the scanned root
    name: str  # signature name
    content: str = ""  # captured image reference for kind == "image"


@dataclass(frozen=True)
class Signature:
    part: str
    name: str
    match: str | None = None
    regex: re.Pattern | None = None

    @property
    def is_image(self) -> bool:
        return self.name.startswith(IMAGE_PREFIX)

    def matches(self, value: str) -> bool:
        if self.match is not None:
            return value.lower() == self.match.lower()
        return bool(self.regex and self.regex.search(value))


def load_signatures(path: str | os.PathLike) -> tuple[list[Signature], list[str], list[str]]:
    """Return ``(signatures, blacklisted_extensions, blacklisted_paths)``."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    signatures = []
    for raw in data.get("signatures") or []:
        part = raw.get("part", "contents")
        if part not in _PARTS:
            raise ValueError(f"Unknown signature part {part!r} in {raw.get('name')!r}")
        regex = re.compile(raw["regex"]) if raw.get("regex") else None
        if regex is None and raw.get("match") is None:
            raise ValueError(f"Signature {raw.get('name')!r} has neither match nor regex")
        signatures.append(Signature(part=part, name=raw.get("name", ""), match=raw.get("match"), regex=regex))

    extensions = [e.lower() for e in data.get("blacklisted_extensions") or []]
    paths = list(data.get("blacklisted_paths") or [])
    return signatures, extensions, paths


class SecretScanner:
    """Walks a directory and reports signature matches."""

    def __init__(self, signatures_path: str | os.PathLike, max_file_size: int = DEFAULT_MAX_FILE_SIZE):
        self.signatures, self._skip_extensions, self._skip_paths = load_signatures(signatures_path)
        self._max_file_size = max_file_size

    def _skipped(self, rel_path: str) -> bool:
        if Path(rel_path).suffix.lower() in self._skip_extensions:
            return True
        return any(rel_path.startswith(p) or f"/{p}" in rel_path for p in self._skip_paths)

    def scan(self, root: str | os.PathLike) -> list[Match]:
        root = Path(root)
        found: list[Match] = []

        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = [d for d in dirnames if d != ".git"]
            for filename in filenames:
                full = Path(dirpath) / filename
                rel_path = full.relative_to(root).as_posix()
                if self._skipped(rel_path):
                    continue
                found.extend(self._scan_file(full, rel_path))

        logger.debug("Scanned %s: %d match(es)", root, len(found))
        return found

    def _scan_file(self, full: Path, rel_path: str) -> list[Match]:
        found: list[Match] = []
        contents: str | None = None

        for sig in self.signatures:
            if sig.part == "contents":
                if contents is None:
                    contents = self._read(full)
                if not contents or sig.regex is None:
                    continue
                m = sig.regex.search(contents)
                if not m:
                    continue
                if sig.is_image:
                    captured = m.group(1) if m.groups() else m.group(0)
                    found.append(Match(kind="image", path=rel_path, name=sig.name, content=captured))
                    # One image reference per file is enough.
                    break
                found.append(Match(kind="key", path=rel_path, name=sig.name))
                continue

            value = {"filename": full.name, "extension": full.suffix, "path": rel_path}[sig.part]
            if sig.matches(value):
                found.append(Match(kind="key", path=rel_path, name=sig.name))

        return found

    def _read(self, full: Path) -> str:
        try:
            if full.stat().st_size > self._max_file_size:
                return ""
            return full.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.debug("Could not read %s: %s", full, e)
            return ""
