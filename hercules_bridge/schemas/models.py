from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from hercules_bridge.core.security import mask_secret


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class TestCaseStatus(str, Enum):
    __test__ = False

    DRAFT = "draft"
    READY = "ready"
    RUNNING = "running"
    COMPLETED = "completed"

    def __str__(self) -> str:
        return self.value


class ExecutionStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    RUNNING = "running"
    PENDING = "pending"

    def __str__(self) -> str:
        return self.value


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RunSummary(CamelModel):
    result_id: str
    status: ExecutionStatus
    execution_time: int = 0
    error: str | None = None
    finished_at: str = Field(default_factory=utc_now_iso)


class TestCase(CamelModel):
    __test__ = False

    id: str
    name: str
    gherkin_content: str
    test_data_path: str | None = None
    output_path: str | None = None
    llm_model: str | None = None
    llm_api_key: str | None = None
    status: TestCaseStatus = TestCaseStatus.READY
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)
    last_run: RunSummary | None = None

    def public_dict(self) -> dict[str, Any]:
        """JSON form for callers; the credential never leaves the process."""
        payload = self.to_json_dict()
        if self.llm_api_key:
            payload["llmApiKey"] = mask_secret(self.llm_api_key)
        return payload


class TestResult(CamelModel):
    __test__ = False

    id: str
    status: ExecutionStatus = ExecutionStatus.RUNNING
    execution_time: int = 0
    screenshots: list[str] = Field(default_factory=list)
    videos: list[str] = Field(default_factory=list)
    logs: list[str] = Field(default_factory=list)
    network_logs: list[str] = Field(default_factory=list)
    junit_xml: str = ""
    html_report: str = ""
    error: str | None = None
    timestamp: str = Field(default_factory=utc_now_iso)
    junit_xml_url: str | None = None
    html_report_url: str | None = None

    def summary(self) -> RunSummary:
        return RunSummary(
            result_id=self.id,
            status=self.status,
            execution_time=self.execution_time,
            error=self.error,
        )
