"""Asynchronous shell command execution with a hard deadline."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import time
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger("cg.executor")

_POSIX = os.name != "nt"


@dataclass
class ProcessOutcome:
    """What happened to one child process."""

    exit_code: int | None
    stdout: str
    stderr: str
    duration_ms: float
    timed_out: bool = False

    @property
    def signal_name(self) -> str | None:
        if self.exit_code is None or self.exit_code >= 0 or not _POSIX:
            return None
        try:
            return signal.Signals(-self.exit_code).name
        except ValueError:
            return f"SIG{-self.exit_code}"


def elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


def _decode(data: bytes | None) -> str:
    return (data or b"").decode("utf-8", errors="replace")


def _kill_group(proc: asyncio.subprocess.Process) -> None:
    """SIGKILL whatever is left in the child's process group."""
    if not _POSIX:
        return
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except (ProcessLookupError, PermissionError):
        pass


async def _terminate(proc: asyncio.subprocess.Process) -> None:
    """Kill the child and its process group, then reap it."""
    if proc.returncode is not None:
        return
    if _POSIX:
        _kill_group(proc)
    else:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    await proc.wait()


async def run_command(command: str, cwd: Path, timeout_ms: int) -> ProcessOutcome:
    """Run ``command`` through the platform shell inside ``cwd``.

    Completes on whichever comes first, process exit or the deadline. On the
    deadline the child is killed and the partial output is dropped. Anything
    still running in the child's process group is killed on every path.
    Raises OSError when the process cannot be started.
    """
    started = time.perf_counter()
    proc = await asyncio.create_subprocess_shell(
        command,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=str(cwd),
        start_new_session=_POSIX,
    )
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout_ms / 1000)
    except TimeoutError:
        await _terminate(proc)
        logger.warning("Command timed out after %sms: %s", timeout_ms, command)
        return ProcessOutcome(
            exit_code=None,
            stdout="",
            stderr="",
            duration_ms=elapsed_ms(started),
            timed_out=True,
        )
    finally:
        # Covers cancellation of the awaiting task as well. Detached children
        # of a shell that already exited are swept with the group.
        if proc.returncode is None:
            await asyncio.shield(_terminate(proc))
        else:
            _kill_group(proc)

    return ProcessOutcome(
        exit_code=proc.returncode,
        stdout=_decode(stdout),
        stderr=_decode(stderr),
        duration_ms=elapsed_ms(started),
    )
