from __future__ import annotations

import logging
from pathlib import Path

from . import toolchain
from .errors import ToolchainError, ToolchainNotFoundError

logger = logging.getLogger(__name__)

_KEYWORDS = {"all", "std", "cmd"}


def is_pattern(arg: str) -> bool:
    return "..." in arg or arg in _KEYWORDS


def expand_patterns(
    patterns: list[str],
    *,
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
) -> list[str]:
    """Expand package patterns into a deduplicated list of import paths.

    - Literal import paths pass through unchanged; if they do not exist the
      error shows up later when the package is imported.
    - Patterns containing `...` and the `all`/`std`/`cmd` keywords are expanded
      with `go list -e`.
    - A pattern that matches nothing contributes nothing. A `go list` failure
      for a pattern is logged and treated the same way; only a missing Go
      toolchain is fatal.

    First-occurrence order is preserved.
    """
    cwd = Path(cwd) if cwd is not None else Path.cwd()
    out: list[str] = []
    seen: set[str] = set()

    def add(path: str) -> None:
        if path and path not in seen:
            seen.add(path)
            out.append(path)

    for arg in patterns:
        arg = arg.strip()
        if not arg:
            continue
        if not is_pattern(arg):
            add(arg)
            continue
        for path in _go_list(arg, cwd=cwd, env=env):
            add(path)

    return out


def _go_list(pattern: str, *, cwd: Path, env: dict[str, str] | None) -> list[str]:
    try:
        stdout = toolchain.go(["list", "-e", "-f", "{{.ImportPath}}", pattern], cwd=cwd, env=env)
    except ToolchainNotFoundError:
        raise
    except ToolchainError as e:
        logger.warning("could not expand %s: %s", pattern, str(e).strip())
        return []
    paths = [ln.strip() for ln in stdout.splitlines() if ln.strip()]
    logger.debug("%s expanded to %d package(s)", pattern, len(paths))
    return paths
