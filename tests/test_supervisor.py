"""Supervisor tests against real short-lived Python children."""

import os
import sys
import textwrap

import pytest

from aidflow_smoke.runtime.polling import poll_until
from aidflow_smoke.runtime.supervisor import LogRingBuffer, ServerSupervisor

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="process groups are POSIX only")


def python_command(source: str) -> list[str]:
    return [sys.executable, "-c", textwrap.dedent(source)]


def pid_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


async def wait_for_line(handle, needle: str) -> None:
    async def _seen():
        return any(needle in line for line in handle.tail(100))

    await poll_until(_seen, interval_s=0.05, timeout_s=10, description=f"line {needle!r}")


class TestLogRingBuffer:
    def test_splits_chunks_and_drops_blank_lines(self):
        buffer = LogRingBuffer()
        buffer.push(b"first\r\n\nsecond\n   \n")
        buffer.push("third")

        assert buffer.tail(10) == ["first", "second", "third"]

    def test_evicts_oldest_first(self):
        buffer = LogRingBuffer(capacity=3)
        for i in range(5):
            buffer.push(f"line {i}\n")

        assert len(buffer) == 3
        assert buffer.tail(10) == ["line 2", "line 3", "line 4"]

    def test_tail_returns_last_n_in_order(self):
        buffer = LogRingBuffer()
        buffer.push("a\nb\nc\nd")

        assert buffer.tail(2) == ["c", "d"]
        assert buffer.tail(0) == []

    def test_default_capacity(self):
        buffer = LogRingBuffer()
        buffer.push("\n".join(str(i) for i in range(2500)))

        assert buffer.capacity == 2000
        assert len(buffer) == 2000
        assert buffer.tail(1) == ["2499"]

    def test_ignores_none(self):
        buffer = LogRingBuffer()
        buffer.push(None)
        assert len(buffer) == 0


@pytest.mark.asyncio
async def test_skip_returns_no_handle(tmp_path):
    supervisor = ServerSupervisor(python_command("print('never')"))

    assert await supervisor.start_server(tmp_path, {}, 5058, skip=True) is None


@posix_only
@pytest.mark.asyncio
async def test_captures_both_streams_and_stops(tmp_path):
    supervisor = ServerSupervisor(
        python_command(
            """
            import sys, time
            print("listening", flush=True)
            sys.stderr.write("warn: something\\n")
            sys.stderr.flush()
            time.sleep(30)
            """
        )
    )
    handle = await supervisor.start_server(tmp_path, {}, 5058)
    try:
        await wait_for_line(handle, "listening")
        await wait_for_line(handle, "warn: something")
        assert handle.is_running
    finally:
        await handle.stop()

    assert not handle.is_running
    assert not pid_alive(handle.pid)


@posix_only
@pytest.mark.asyncio
async def test_environment_overlay_forces_port_and_mode(tmp_path):
    supervisor = ServerSupervisor(
        python_command(
            """
            import os, time
            print("PORT=" + os.environ["PORT"], flush=True)
            print("NODE_ENV=" + os.environ["NODE_ENV"], flush=True)
            print("DATABASE_URL=" + os.environ["DATABASE_URL"], flush=True)
            time.sleep(30)
            """
        )
    )
    async with await supervisor.start_server(
        tmp_path, {"DATABASE_URL": "postgresql:///smoke", "PORT": "1"}, 6060
    ) as handle:
        await wait_for_line(handle, "DATABASE_URL=")
        lines = handle.tail(10)

    assert "PORT=6060" in lines
    assert "NODE_ENV=development" in lines
    assert "DATABASE_URL=postgresql:///smoke" in lines


@posix_only
@pytest.mark.asyncio
async def test_sigterm_ignored_is_force_killed(tmp_path):
    supervisor = ServerSupervisor(
        python_command(
            """
            import signal, time
            signal.signal(signal.SIGTERM, signal.SIG_IGN)
            print("stubborn", flush=True)
            time.sleep(30)
            """
        ),
        grace_s=0.2,
    )
    handle = await supervisor.start_server(tmp_path, {}, 5058)
    await wait_for_line(handle, "stubborn")

    await handle.stop()

    assert handle.process.returncode == -9
    assert not pid_alive(handle.pid)


@posix_only
@pytest.mark.asyncio
async def test_exit_code_is_logged(tmp_path):
    supervisor = ServerSupervisor(python_command("import sys; print('bye'); sys.exit(3)"))
    handle = await supervisor.start_server(tmp_path, {}, 5058)

    await wait_for_line(handle, "exited with code 3")
    await handle.stop()

    assert handle.tail(2) == ["bye", "(dev server exited with code 3)"]


@posix_only
@pytest.mark.asyncio
async def test_stop_is_idempotent(tmp_path):
    supervisor = ServerSupervisor(python_command("import time; time.sleep(30)"))
    handle = await supervisor.start_server(tmp_path, {}, 5058)

    await handle.stop()
    await handle.stop()

    assert not handle.is_running
