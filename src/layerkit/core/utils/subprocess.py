"""Subprocess helpers for the external installer and bundler.

- No shell=True: commands are argv lists, environment prefixes go through ``env``
- Optional timeouts (``None`` or ``0`` means wait forever)
- An asyncio variant so bundler runs do not block the event loop
"""
from __future__ import annotations

import asyncio
import os
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, MutableMapping, Optional, Sequence


def _to_cwd(cwd: Optional[Path | str]) -> Optional[str]:
    """Convert Path or str cwd to str for subprocess."""
    if cwd is None:
        return None
    return str(cwd)


def _effective_timeout(timeout: Optional[float]) -> Optional[float]:
    if not timeout or timeout <= 0:
        return None
    return float(timeout)


def merged_env(extra: Optional[Mapping[str, str]]) -> Optional[dict[str, str]]:
    """Return the current environment overlaid with ``extra`` (None if no extras)."""
    if not extra:
        return None
    env = dict(os.environ)
    env.update(extra)
    return env


def format_command(cmd: Sequence[str], env_prefix: Optional[Mapping[str, str]] = None) -> str:
    """Render ``cmd`` the way a user would type it, including env assignments.

    Example:
        >>> format_command(["npm", "install", "lodash@4"], {"NODE_ENV": "production"})
        'NODE_ENV=production npm install lodash@4'
    """
    parts = [f"{k}={shlex.quote(v)}" for k, v in (env_prefix or {}).items()]
    parts.extend(shlex.quote(str(p)) for p in cmd)
    return " ".join(parts)


def run_command(
    cmd: Sequence[str],
    *,
    cwd: Optional[Path | str] = None,
    env: Optional[MutableMapping[str, str]] = None,
    timeout: Optional[float] = None,
    capture_output: bool = False,
    text: bool = True,
    check: bool = False,
) -> subprocess.CompletedProcess:
    """
    Thin wrapper around subprocess.run with safe defaults.

    Without ``capture_output`` the child inherits stdin/stdout/stderr, which is
    how installer progress reaches the user's terminal.

    Args:
        cmd: Command sequence to execute
        cwd: Working directory (Path or str)
        env: Full environment for the child (inherits ours if None)
        timeout: Timeout in seconds (None/0 disables)
        capture_output: Capture stdout/stderr
        text: Return output as text instead of bytes
        check: Raise CalledProcessError on non-zero exit

    Returns:
        CompletedProcess from subprocess.run
    """
    return subprocess.run(
        [str(p) for p in cmd],
        cwd=_to_cwd(cwd),
        env=env,
        timeout=_effective_timeout(timeout),
        capture_output=capture_output,
        text=text,
        check=check,
    )


@dataclass(frozen=True)
class CommandResult:
    """Outcome of :func:`run_command_async` (captured output, decoded as UTF-8)."""

    argv: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


async def run_command_async(
    cmd: Sequence[str],
    *,
    cwd: Optional[Path | str] = None,
    env: Optional[Mapping[str, str]] = None,
    timeout: Optional[float] = None,
) -> CommandResult:
    """Run ``cmd`` without blocking the event loop and capture its output.

    Raises:
        FileNotFoundError: If the executable does not exist
        asyncio.TimeoutError: If ``timeout`` elapses; the child is killed first
    """
    argv = tuple(str(p) for p in cmd)
    proc = await asyncio.create_subprocess_exec(
        *argv,
        cwd=_to_cwd(cwd),
        env=dict(env) if env is not None else None,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), _effective_timeout(timeout))
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise
    return CommandResult(
        argv=argv,
        returncode=proc.returncode if proc.returncode is not None else 0,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )


__all__ = [
    "CommandResult",
    "format_command",
    "merged_env",
    "run_command",
    "run_command_async",
]
