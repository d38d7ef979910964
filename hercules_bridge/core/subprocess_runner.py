from __future__ import annotations

import asyncio
import os
import time
from dataclasses import dataclass
from pathlib import Path

from hercules_bridge.config.settings import RUNNER_MODULE, Settings
from hercules_bridge.core.logger import get_logger
from hercules_bridge.core.security import redact_command

logger = get_logger(__name__)

TERMINATE_GRACE_SEC = 5.0
STDOUT_CAP_CHARS = 10000
STDERR_CAP_CHARS = 5000


class RunnerTimeout(Exception):
    def __init__(self, timeout_sec: float):
        super().__init__(f"Execution timed out after {timeout_sec:g} seconds")
        self.timeout_sec = timeout_sec


@dataclass
class ProcessOutcome:
    returncode: int
    stdout: str
    stderr: str
    duration_sec: float


def runner_available(settings: Settings) -> bool:
    return settings.hercules_path.exists() and settings.venv_python.exists()


def build_runner_command(
    settings: Settings,
    input_file: Path,
    output_path: Path,
    test_data_path: Path,
    llm_model: str,
    llm_api_key: str | None = None,
) -> list[str]:
    command = [
        str(settings.venv_python),
        "-m",
        RUNNER_MODULE,
        "--input-file",
        str(input_file),
        "--output-path",
        str(output_path),
        "--test-data-path",
        str(test_data_path),
        "--llm-model",
        llm_model,
    ]
    if llm_api_key:
        command.extend(["--llm-model-api-key", llm_api_key])
    return command


def build_runner_env(settings: Settings, base: dict[str, str] | None = None) -> dict[str, str]:
    env = dict(os.environ if base is None else base)
    current_path = env.get("PATH", "")
    env.update(
        {
            "PYTHONPATH": str(settings.hercules_path),
            "VIRTUAL_ENV": str(settings.venv_path),
            "PATH": f"{settings.venv_bin_path}{os.pathsep}{current_path}" if current_path else str(settings.venv_bin_path),
        }
    )
    return env


async def _drain(stream: asyncio.StreamReader | None, label: str, chunks: list[str]) -> None:
    if stream is None:
        return
    while True:
        line = await stream.readline()
        if not line:
            return
        text = line.decode("utf-8", errors="replace")
        chunks.append(text)
        logger.debug("runner.output", stream=label, line=text.rstrip())


def _consume(future: asyncio.Future) -> None:
    # Cancelled waiters otherwise log "exception was never retrieved".
    if not future.cancelled():
        future.exception()


async def _stop(process: asyncio.subprocess.Process) -> None:
    if process.returncode is not None:
        return
    process.terminate()
    try:
        await asyncio.wait_for(process.wait(), timeout=TERMINATE_GRACE_SEC)
    except asyncio.TimeoutError:
        logger.warning("runner.kill", pid=process.pid)
        process.kill()
        await process.wait()


async def run_process(
    command: list[str],
    *,
    cwd: Path,
    env: dict[str, str],
    timeout_sec: float,
) -> ProcessOutcome:
    """Run ``command`` to completion, racing it against ``timeout_sec``.

    Raises ``RunnerTimeout`` after terminating the child, and lets ``OSError``
    from the spawn propagate.
    """
    start = time.time()
    logger.info("runner.spawn", command=redact_command(command), cwd=str(cwd), timeout_sec=timeout_sec)
    process = await asyncio.create_subprocess_exec(
        *command,
        cwd=str(cwd),
        env=env,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout_chunks: list[str] = []
    stderr_chunks: list[str] = []
    readers = [
        asyncio.create_task(_drain(process.stdout, "stdout", stdout_chunks)),
        asyncio.create_task(_drain(process.stderr, "stderr", stderr_chunks)),
    ]
    waiter = asyncio.gather(*readers, process.wait())
    waiter.add_done_callback(_consume)
    try:
        await asyncio.wait_for(waiter, timeout=timeout_sec)
    except asyncio.TimeoutError:
        logger.warning("runner.timeout", pid=process.pid, timeout_sec=timeout_sec)
        await _stop(process)
        raise RunnerTimeout(timeout_sec)
    except asyncio.CancelledError:
        logger.warning("runner.cancelled", pid=process.pid)
        await _stop(process)
        raise
    finally:
        for reader in readers:
            if not reader.done():
                reader.cancel()

    duration = time.time() - start
    outcome = ProcessOutcome(
        returncode=int(process.returncode or 0),
        stdout="".join(stdout_chunks)[-STDOUT_CAP_CHARS:],
        stderr="".join(stderr_chunks)[-STDERR_CAP_CHARS:],
        duration_sec=duration,
    )
    logger.info("runner.exit", pid=process.pid, returncode=outcome.returncode, duration_sec=round(duration, 3))
    return outcome
