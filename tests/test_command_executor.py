"""Process runner tests."""

from __future__ import annotations

import asyncio
import os
import sys
import time
from pathlib import Path

import pytest

from executor.command_executor import run_command

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX shell syntax")


@pytest.mark.asyncio
async def test_captures_streams_separately(tmp_path: Path) -> None:
    outcome = await run_command("echo out && echo err >&2", tmp_path, 5000)

    assert outcome.exit_code == 0
    assert outcome.stdout.strip() == "out"
    assert outcome.stderr.strip() == "err"
    assert outcome.timed_out is False
    assert outcome.duration_ms > 0


@pytest.mark.asyncio
async def test_runs_in_requested_directory(tmp_path: Path) -> None:
    (tmp_path / "marker.txt").write_text("here", encoding="utf-8")
    command = "dir /b" if sys.platform == "win32" else "ls"
    outcome = await run_command(command, tmp_path, 5000)
    assert "marker.txt" in outcome.stdout


@posix_only
@pytest.mark.asyncio
async def test_reports_exit_code(tmp_path: Path) -> None:
    outcome = await run_command("echo partial; exit 3", tmp_path, 5000)
    assert outcome.exit_code == 3
    assert outcome.stdout.strip() == "partial"
    assert outcome.signal_name is None


@posix_only
@pytest.mark.asyncio
async def test_timeout_kills_the_process_group(tmp_path: Path) -> None:
    started = time.perf_counter()
    outcome = await run_command("sleep 5; echo late > late.txt", tmp_path, 100)

    assert outcome.timed_out is True
    assert outcome.exit_code is None
    assert outcome.stdout == ""
    assert time.perf_counter() - started < 4
    await asyncio.sleep(0.2)
    assert not (tmp_path / "late.txt").exists()


@posix_only
@pytest.mark.asyncio
async def test_signal_exit_is_named(tmp_path: Path) -> None:
    outcome = await run_command("kill -TERM $$", tmp_path, 5000)
    assert outcome.exit_code == -15
    assert outcome.signal_name == "SIGTERM"


@pytest.mark.asyncio
async def test_missing_directory_raises_os_error(tmp_path: Path) -> None:
    with pytest.raises(OSError):
        await run_command("echo hi", tmp_path / "missing", 5000)


@posix_only
@pytest.mark.asyncio
async def test_concurrent_runs_do_not_serialize(tmp_path: Path) -> None:
    started = time.perf_counter()
    outcomes = await asyncio.gather(
        *(run_command(f"sleep 0.5; echo {i}", tmp_path, 5000) for i in range(4))
    )
    assert [o.stdout.strip() for o in outcomes] == ["0", "1", "2", "3"]
    assert time.perf_counter() - started < 1.9


@posix_only
@pytest.mark.asyncio
async def test_cancellation_kills_the_child(tmp_path: Path) -> None:
    pid_file = tmp_path / "pid"
    task = asyncio.create_task(run_command(f"echo $$ > {pid_file}; sleep 5", tmp_path, 10000))
    for _ in range(50):
        if pid_file.exists() and pid_file.read_text().strip():
            break
        await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    pid = int(pid_file.read_text().strip())
    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)


def _gone(pid: int) -> bool:
    try:
        stat = Path(f"/proc/{pid}/stat").read_text()
    except FileNotFoundError:
        return True
    # Killed children reparented to a non-reaping init linger as zombies.
    return stat.rsplit(")", 1)[1].split()[0] == "Z"


@pytest.mark.skipif(not sys.platform.startswith("linux"), reason="reads /proc")
@pytest.mark.asyncio
async def test_background_children_are_killed_after_exit(tmp_path: Path) -> None:
    pid_file = tmp_path / "pid"
    outcome = await run_command(
        f"nohup sleep 100 >/dev/null 2>&1 & echo $! > {pid_file}", tmp_path, 5000
    )
    assert outcome.exit_code == 0

    pid = int(pid_file.read_text().strip())
    for _ in range(50):
        if _gone(pid):
            break
        await asyncio.sleep(0.05)
    assert _gone(pid)
