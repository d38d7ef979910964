"""Execution strategies for a single test run.

``RealExecutor`` launches the Hercules runner; ``SyntheticExecutor`` writes a
placeholder result set so callers always receive navigable artifacts.
``select_executor`` picks one with the runner availability predicate.
"""

from __future__ import annotations

import asyncio
import base64
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

from hercules_bridge.config.settings import Settings
from hercules_bridge.core.artifact_store import ArtifactStore
from hercules_bridge.core.errors import CollectionError, RunFailure
from hercules_bridge.core.logger import get_logger
from hercules_bridge.core.result_collector import (
    LOGS_DIR,
    SYNTHETIC_SCREENSHOTS_DIR,
    collect_artifacts,
    html_report_path,
    junit_xml_path,
    render_html_report,
    render_junit_xml,
)
from hercules_bridge.core.subprocess_runner import (
    RunnerTimeout,
    build_runner_command,
    build_runner_env,
    run_process,
    runner_available,
)
from hercules_bridge.schemas.models import ExecutionStatus, TestCase, TestResult

logger = get_logger(__name__)

# 1x1 transparent PNG.
PLACEHOLDER_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)
SYNTHETIC_SCREENSHOTS = ("step1.png", "step2.png")
SYNTHETIC_LOG = "test.log"


def elapsed_ms(started: float) -> int:
    return int((time.time() - started) * 1000)


@dataclass
class RunRequest:
    test_case: TestCase
    llm_model: str
    llm_api_key: str | None
    started: float


class TestExecutor(ABC):
    __test__ = False

    def __init__(self, settings: Settings, store: ArtifactStore):
        self.settings = settings
        self.store = store

    @property
    @abstractmethod
    def name(self) -> str:
        raise NotImplementedError

    @abstractmethod
    async def execute(self, run: RunRequest, result: TestResult) -> TestResult:
        """Return the finished result or raise ``RunFailure``."""
        raise NotImplementedError


class SyntheticExecutor(TestExecutor):
    name = "synthetic"

    async def execute(self, run: RunRequest, result: TestResult) -> TestResult:
        await asyncio.sleep(self.settings.synthetic_delay_sec)
        execution_time = elapsed_ms(run.started)
        test_case = run.test_case

        output = self.store.output_dir(test_case.id)
        screenshots_dir = output / SYNTHETIC_SCREENSHOTS_DIR
        logs_dir = output / LOGS_DIR
        screenshots_dir.mkdir(parents=True, exist_ok=True)
        logs_dir.mkdir(parents=True, exist_ok=True)

        screenshots: list[str] = []
        for file_name in SYNTHETIC_SCREENSHOTS:
            target = screenshots_dir / file_name
            target.write_bytes(PLACEHOLDER_PNG)
            screenshots.append(str(target))

        log_path = logs_dir / SYNTHETIC_LOG
        log_path.write_text(
            f"Mock test log for {test_case.name}\nExecution time: {execution_time}ms\n",
            encoding="utf-8",
        )
        junit = junit_xml_path(output, test_case.name)
        junit.write_text(render_junit_xml(test_case.name, execution_time), encoding="utf-8")
        report = html_report_path(output, test_case.name)
        report.write_text(render_html_report(test_case.name, execution_time), encoding="utf-8")

        logger.info("executor.synthetic.done", test_case_id=test_case.id, execution_time_ms=execution_time)
        return result.model_copy(
            update={
                "status": ExecutionStatus.PASSED,
                "execution_time": execution_time,
                "screenshots": screenshots,
                "logs": [str(log_path)],
                "junit_xml": str(junit),
                "html_report": str(report),
            }
        )


class RealExecutor(TestExecutor):
    name = "hercules"

    def __init__(self, settings: Settings, store: ArtifactStore, fallback: TestExecutor | None = None):
        super().__init__(settings, store)
        self.fallback = fallback or SyntheticExecutor(settings, store)

    def _failed(self, result: TestResult, started: float, error: str) -> TestResult:
        return result.model_copy(
            update={"status": ExecutionStatus.FAILED, "execution_time": elapsed_ms(started), "error": error}
        )

    async def execute(self, run: RunRequest, result: TestResult) -> TestResult:
        test_case = run.test_case
        output = self.store.output_dir(test_case.id)
        command = build_runner_command(
            self.settings,
            input_file=self.store.feature_path(test_case),
            output_path=output,
            test_data_path=self.store.test_data_dir(test_case.id),
            llm_model=run.llm_model,
            llm_api_key=run.llm_api_key,
        )
        try:
            outcome = await run_process(
                command,
                cwd=self.settings.hercules_path,
                env=build_runner_env(self.settings),
                timeout_sec=self.settings.execution_timeout_sec,
            )
        except RunnerTimeout as exc:
            raise RunFailure(self._failed(result, run.started, str(exc))) from exc
        except OSError as exc:
            logger.error("executor.hercules.spawn_failed", test_case_id=test_case.id, error=str(exc))
            raise RunFailure(self._failed(result, run.started, str(exc))) from exc

        if outcome.returncode != 0:
            logger.warning(
                "executor.hercules.failed",
                test_case_id=test_case.id,
                returncode=outcome.returncode,
                stderr_tail=outcome.stderr[-500:],
            )
            # Populate placeholder artifacts, but the run stays failed.
            populated = await self.fallback.execute(run, result)
            raise RunFailure(
                populated.model_copy(
                    update={
                        "status": ExecutionStatus.FAILED,
                        "error": outcome.stderr or f"Hercules exited with code {outcome.returncode}",
                    }
                )
            )

        try:
            artifacts = collect_artifacts(output, test_case.name)
        except CollectionError as exc:
            logger.error("executor.hercules.collect_failed", test_case_id=test_case.id, error=str(exc))
            raise RunFailure(self._failed(result, run.started, str(exc))) from exc

        return result.model_copy(
            update={
                "status": ExecutionStatus.PASSED,
                "execution_time": elapsed_ms(run.started),
                "screenshots": artifacts.screenshots,
                "videos": artifacts.videos,
                "logs": artifacts.logs,
                "network_logs": artifacts.network_logs,
                "junit_xml": artifacts.junit_xml,
                "html_report": artifacts.html_report,
            }
        )


def select_executor(settings: Settings, store: ArtifactStore) -> TestExecutor:
    if runner_available(settings):
        return RealExecutor(settings, store)
    logger.warning(
        "executor.runner_unavailable",
        hercules_path=str(settings.hercules_path),
        venv_python=str(settings.venv_python),
    )
    return SyntheticExecutor(settings, store)

