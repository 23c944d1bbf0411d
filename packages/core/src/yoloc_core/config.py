import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "branch": "main",
    "fallback_branch": "master",
    "persist": "",  # "" / "noop", "disk" or "gist"
    "persist_path": None,  # None = <cache dir>/persist
    "gist_id": None,
    "port": 8080,
    "signatures": None,  # None = use built-in signatures.yml; set to a path string to override
    "cache_size": 256,
    "cosign_path": "cosign",
    "clone_root": None,  # None = <cache dir>/clones
}

BUILTIN_SIGNATURES = Path(__file__).parent / "signatures.yml"


def cache_dir() -> Path:
    """Return the per-user cache directory for yoloc (not created)."""
    root = os.environ.get("XDG_CACHE_HOME") or os.path.join(Path.home(), ".cache")
    return Path(root) / "yoloc"


def load_config(config_path: str = ".yoloc.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .yoloc.yml in the current directory
      3. Environment variables (PERSIST_BACKEND, PORT)
      4. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if os.environ.get("PERSIST_BACKEND"):
        config["persist"] = os.environ["PERSIST_BACKEND"]
    if os.environ.get("PORT"):
        config["port"] = int(os.environ["PORT"])

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    config["github_token"] = os.environ.get("GITHUB_TOKEN")

    return config


def signatures_path(config: dict) -> Path:
    """
    Resolve the secret-scanner signature file.

    If ``signatures`` is set in config, uses that path (relative to cwd).
    Otherwise falls back to the built-in default.
    """
    custom_path = config.get("signatures")
    if custom_path:
        p = Path(custom_path)
        if not p.exists():
            raise FileNotFoundError(f"Signatures file not found: {custom_path}")
        return p

    if BUILTIN_SIGNATURES.exists():
        return BUILTIN_SIGNATURES

    raise FileNotFoundError("No signatures configured and built-in default is missing.")
