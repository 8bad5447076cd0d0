"""Running `go` commands."""

from __future__ import annotations

import logging
import os
import re
import subprocess
import time
from pathlib import Path

from .errors import ToolchainError, ToolchainNotFoundError
from .paths import go_binary

logger = logging.getLogger(__name__)


_GO_TRANSIENT_NET_RE = re.compile(
    r"("
    r"proxy\.golang\.org"
    r"|sum\.golang\.org"
    r"|wsarecv"
    r"|connection (?:attempt failed|reset)"
    r"|i/o timeout"
    r"|tls handshake timeout"
    r"|unexpected eof"
    r"|temporary failure"
    r"|no such host"
    r"|502 bad gateway"
    r"|503 service unavailable"
    r"|504 gateway timeout"
    r")",
    re.IGNORECASE,
)


def _go_network_hint(out: str) -> str | None:
    if not _GO_TRANSIENT_NET_RE.search(out):
        return None
    return (
        "\n\nHint: Go module download failed due to a network/proxy error. "
        "Try re-running the command. If `proxy.golang.org` is blocked/unreliable "
        "in your environment, try setting `GOPROXY=direct` (or another reachable proxy) "
        "and retry."
    )


def decode_output(data: bytes | str | None) -> str:
    if data is None:
        return ""
    if isinstance(data, str):
        return data
    return data.decode("utf-8", errors="replace")


def run(
    cmd: list[str],
    *,
    cwd: Path,
    env: dict[str, str] | None = None,
    retries: int = 3,
) -> tuple[str, str]:
    """Run a command and return its decoded (stdout, stderr).

    Commands that fail on a transient network error are retried with a short
    backoff; the second attempt falls back to GOPROXY=direct when the proxy is
    the failing hop and GOPROXY is not set explicitly.
    """
    prog = cmd[0] if cmd else "<unknown>"

    base_env = env
    cur_env = env
    backoff_s = 0.5
    last_out = ""

    for attempt in range(max(retries, 1)):
        logger.debug("running %s in %s", " ".join(cmd), cwd)
        try:
            proc = subprocess.run(
                cmd,
                cwd=str(cwd),
                env=cur_env,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=False,
                check=False,
            )
        except FileNotFoundError as e:
            raise ToolchainNotFoundError(
                f"Go toolchain not found (`{prog}` is missing from PATH). "
                "Install Go and ensure it is available on PATH, "
                "or point GOSIGFIND_GO at the go binary."
            ) from e

        stdout = decode_output(proc.stdout)
        stderr = decode_output(proc.stderr)
        out = "\n".join([s for s in [stdout.strip("\n"), stderr.strip("\n")] if s]) + "\n"
        last_out = out

        if proc.returncode == 0:
            return stdout, stderr

        if attempt < retries - 1 and _GO_TRANSIENT_NET_RE.search(out):
            if "proxy.golang.org" in out.lower():
                next_env = dict(os.environ) if base_env is None else dict(base_env)
                if "GOPROXY" not in next_env:
                    next_env["GOPROXY"] = "direct"
                    cur_env = next_env
            logger.debug("transient go failure, retrying in %.1fs", backoff_s)
            time.sleep(backoff_s)
            backoff_s *= 2.0
            continue

        break

    hint = _go_network_hint(last_out)
    if hint:
        last_out = last_out.rstrip("\n") + hint + "\n"
    raise ToolchainError(f"command failed: {' '.join(cmd)}\n{last_out}")


def go(args: list[str], *, cwd: Path, env: dict[str, str] | None = None) -> str:
    """Run `go <args>` and return stdout."""
    stdout, _ = run([go_binary(), *args], cwd=cwd, env=env)
    return stdout
