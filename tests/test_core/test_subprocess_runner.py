from __future__ import annotations

import asyncio
import os
import time
from pathlib import Path

import pytest

from hercules_bridge.core.subprocess_runner import (
    RunnerTimeout,
    build_runner_command,
    build_runner_env,
    run_process,
    runner_available,
)


def test_build_runner_command_includes_credential_only_when_present(settings, tmp_path: Path):
    command = build_runner_command(
        settings,
        input_file=tmp_path / "in.feature",
        output_path=tmp_path / "out",
        test_data_path=tmp_path / "data",
        llm_model="gpt-4o",
    )
    assert command[:3] == [str(settings.venv_python), "-m", "testzeus_hercules"]
    assert command[command.index("--llm-model") + 1] == "gpt-4o"
    assert "--llm-model-api-key" not in command

    with_key = build_runner_command(
        settings,
        input_file=tmp_path / "in.feature",
        output_path=tmp_path / "out",
        test_data_path=tmp_path / "data",
        llm_model="gpt-4o",
        llm_api_key="sk-test",
    )
    assert with_key[-2:] == ["--llm-model-api-key", "sk-test"]


def test_build_runner_env_extends_inherited_environment(settings):
    env = build_runner_env(settings, base={"PATH": "/usr/bin", "HOME": "/home/tester"})
    assert env["HOME"] == "/home/tester"
    assert env["PYTHONPATH"] == str(settings.hercules_path)
    assert env["VIRTUAL_ENV"] == str(settings.venv_path)
    assert env["PATH"].startswith(str(settings.venv_bin_path))
    assert env["PATH"].endswith("/usr/bin")


def test_runner_available_requires_venv_python(settings, runner_settings):
    assert runner_available(settings) is False
    settings.hercules_path.mkdir(parents=True)
    assert runner_available(settings) is False
    assert runner_available(runner_settings()) is True


@pytest.mark.asyncio
async def test_run_process_captures_output_and_exit_code(tmp_path: Path):
    outcome = await run_process(
        ["/bin/sh", "-c", "echo out; echo err >&2; exit 2"],
        cwd=tmp_path,
        env={"PATH": "/usr/bin:/bin"},
        timeout_sec=10,
    )
    assert outcome.returncode == 2
    assert outcome.stdout == "out\n"
    assert outcome.stderr == "err\n"


HANG_SCRIPT = 'echo $$ > runner.pid; exec sleep 30'


def _assert_exited(pid_file: Path) -> None:
    pid = int(pid_file.read_text(encoding="utf-8").strip())
    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)


@pytest.mark.asyncio
async def test_run_process_terminates_on_timeout(tmp_path: Path):
    start = time.time()
    with pytest.raises(RunnerTimeout) as excinfo:
        await run_process(
            ["/bin/sh", "-c", HANG_SCRIPT],
            cwd=tmp_path,
            env={"PATH": "/usr/bin:/bin"},
            timeout_sec=0.5,
        )
    assert "timed out" in str(excinfo.value)
    assert time.time() - start < 5
    _assert_exited(tmp_path / "runner.pid")


@pytest.mark.asyncio
async def test_run_process_stops_child_when_cancelled(tmp_path: Path):
    pid_file = tmp_path / "runner.pid"
    task = asyncio.create_task(
        run_process(["/bin/sh", "-c", HANG_SCRIPT], cwd=tmp_path, env={"PATH": "/usr/bin:/bin"}, timeout_sec=30)
    )
    deadline = time.time() + 10
    while not pid_file.is_file() or not pid_file.read_text(encoding="utf-8").strip():
        assert time.time() < deadline
        await asyncio.sleep(0.05)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    _assert_exited(pid_file)


@pytest.mark.asyncio
async def test_run_process_propagates_spawn_errors(tmp_path: Path):
    with pytest.raises(OSError):
        await run_process([str(tmp_path / "missing")], cwd=tmp_path, env={}, timeout_sec=5)
