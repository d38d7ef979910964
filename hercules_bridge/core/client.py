from __future__ import annotations

import asyncio
import time
import uuid
from typing import Callable

from hercules_bridge.config.settings import Settings
from hercules_bridge.core.artifact_store import ArtifactStore
from hercules_bridge.core.errors import CollectionError, InvalidRequestError, RunFailure, TestCaseNotFoundError
from hercules_bridge.core.executors import RunRequest, TestExecutor, select_executor
from hercules_bridge.core.logger import get_logger
from hercules_bridge.core.result_collector import collect_artifacts
from hercules_bridge.schemas.models import ExecutionStatus, TestCase, TestCaseStatus, TestResult
from hercules_bridge.schemas.request_schemas import CreateTestCaseRequest

logger = get_logger(__name__)

ExecutorFactory = Callable[[Settings, ArtifactStore], TestExecutor]


class HerculesClient:
    """Public operations shared by the MCP and HTTP front-ends."""

    def __init__(
        self,
        settings: Settings,
        store: ArtifactStore | None = None,
        executor_factory: ExecutorFactory = select_executor,
    ):
        self.settings = settings
        self.store = store or ArtifactStore(settings.test_cases_path)
        self.executor_factory = executor_factory

    async def create_test_case(self, request: CreateTestCaseRequest) -> TestCase:
        missing = request.missing_fields()
        if missing:
            raise InvalidRequestError(f"Missing required fields: {', '.join(missing)}", missing)
        return self.store.create(request, default_model=self.settings.DEFAULT_LLM_MODEL)

    async def run_test_case(
        self,
        test_case_id: str,
        llm_model: str | None = None,
        llm_api_key: str | None = None,
    ) -> TestResult:
        test_case = self.store.get(test_case_id)
        if test_case is None:
            raise TestCaseNotFoundError(test_case_id)

        test_case = self.store.update_status(test_case_id, TestCaseStatus.RUNNING)
        result = TestResult(id=str(uuid.uuid4()), status=ExecutionStatus.RUNNING)
        run = RunRequest(
            test_case=test_case,
            llm_model=llm_model or test_case.llm_model or self.settings.DEFAULT_LLM_MODEL,
            llm_api_key=llm_api_key or test_case.llm_api_key or self.settings.DEFAULT_LLM_API_KEY,
            started=time.time(),
        )
        executor = self.executor_factory(self.settings, self.store)
        logger.info("run.start", test_case_id=test_case_id, executor=executor.name, llm_model=run.llm_model)

        try:
            result = await executor.execute(run, result)
        except RunFailure as failure:
            self.store.update_status(test_case_id, TestCaseStatus.COMPLETED, last_run=failure.result.summary())
            logger.warning("run.end", test_case_id=test_case_id, status=failure.result.status, error=failure.result.error)
            raise
        except asyncio.CancelledError:
            cancelled = result.model_copy(update={"status": ExecutionStatus.FAILED, "error": "Execution cancelled"})
            self.store.update_status(test_case_id, TestCaseStatus.COMPLETED, last_run=cancelled.summary())
            logger.warning("run.cancelled", test_case_id=test_case_id)
            raise
        except Exception as exc:
            failed = result.model_copy(update={"status": ExecutionStatus.FAILED, "error": str(exc) or type(exc).__name__})
            self.store.update_status(test_case_id, TestCaseStatus.COMPLETED, last_run=failed.summary())
            logger.exception("run.error", test_case_id=test_case_id)
            raise RunFailure(failed) from exc

        self.store.update_status(test_case_id, TestCaseStatus.COMPLETED, last_run=result.summary())
        logger.info("run.end", test_case_id=test_case_id, status=result.status, execution_time_ms=result.execution_time)
        return result

    async def get_test_case(self, test_case_id: str) -> TestCase | None:
        return self.store.get(test_case_id)

    async def list_test_cases(self) -> list[TestCase]:
        return self.store.list()

    async def get_execution_results(self, test_case_id: str) -> TestResult | None:
        """Rebuild the latest result from disk. Never writes."""
        test_case = self.store.get(test_case_id)
        if test_case is None:
            return None
        output = self.store.output_dir(test_case_id)
        if not output.is_dir():
            return None

        result_id = f"exec-{test_case_id}"
        try:
            artifacts = collect_artifacts(output, test_case.name)
        except CollectionError as exc:
            logger.error("results.collect_failed", test_case_id=test_case_id, error=str(exc))
            return TestResult(
                id=result_id,
                status=ExecutionStatus.FAILED,
                error=str(exc),
                timestamp=test_case.updated_at,
            )

        completed = test_case.status == TestCaseStatus.COMPLETED
        if not artifacts.has_output() and not completed:
            return None

        last_run = test_case.last_run
        if last_run is not None and completed:
            status = last_run.status
        else:
            status = ExecutionStatus.PASSED if completed else ExecutionStatus.PENDING

        return TestResult(
            id=result_id,
            status=status,
            execution_time=last_run.execution_time if last_run is not None else 0,
            screenshots=artifacts.screenshots,
            videos=artifacts.videos,
            logs=artifacts.logs,
            network_logs=artifacts.network_logs,
            junit_xml=artifacts.junit_xml,
            html_report=artifacts.html_report,
            error=last_run.error if last_run is not None and completed else None,
            timestamp=test_case.updated_at,
        )
