from __future__ import annotations

import os
from pathlib import Path


def default_cache_root() -> Path:
    """Return the directory the compiled Go helper is cached in.

    Override with `GOSIGFIND_CACHE_DIR`.
    """
    override = os.environ.get("GOSIGFIND_CACHE_DIR")
    if override:
        return Path(override)

    if os.name == "nt":
        base = os.environ.get("LOCALAPPDATA") or os.path.expanduser("~")
        return Path(base) / "gosigfind"
    return Path(os.path.expanduser("~/.cache/gosigfind"))


def go_binary() -> str:
    """Return the Go command to run. Override with `GOSIGFIND_GO`."""
    return os.environ.get("GOSIGFIND_GO") or "go"
