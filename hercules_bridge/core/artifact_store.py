"""Directory-per-test-case storage with a JSON metadata sidecar.

Layout::

    <root>/<id>/
        input/<slug>.feature
        test_data/
        output/
        metadata.json
"""

from __future__ import annotations

import os
import tempfile
import uuid
from pathlib import Path

from pydantic import ValidationError

from hercules_bridge.core.errors import InvalidRequestError, TestCaseNotFoundError
from hercules_bridge.core.logger import get_logger
from hercules_bridge.core.security import ensure_child_path, slugify_name
from hercules_bridge.schemas.models import RunSummary, TestCase, TestCaseStatus, utc_now_iso
from hercules_bridge.schemas.request_schemas import CreateTestCaseRequest

logger = get_logger(__name__)

METADATA_FILE = "metadata.json"
INPUT_DIR = "input"
TEST_DATA_DIR = "test_data"
OUTPUT_DIR = "output"
TEST_DATA_FILE = "test_data.txt"


def feature_file_name(name: str) -> str:
    return f"{slugify_name(name)}.feature"


def write_text_atomic(target: Path, content: str) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class ArtifactStore:
    def __init__(self, root: str | Path):
        self.root = Path(root).expanduser().resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def case_dir(self, test_case_id: str) -> Path:
        return ensure_child_path(self.root / test_case_id, self.root)

    def input_dir(self, test_case_id: str) -> Path:
        return self.case_dir(test_case_id) / INPUT_DIR

    def test_data_dir(self, test_case_id: str) -> Path:
        return self.case_dir(test_case_id) / TEST_DATA_DIR

    def output_dir(self, test_case_id: str) -> Path:
        return self.case_dir(test_case_id) / OUTPUT_DIR

    def metadata_path(self, test_case_id: str) -> Path:
        return self.case_dir(test_case_id) / METADATA_FILE

    def feature_path(self, test_case: TestCase) -> Path:
        return self.input_dir(test_case.id) / feature_file_name(test_case.name)

    def create(self, request: CreateTestCaseRequest, default_model: str) -> TestCase:
        test_case_id = str(uuid.uuid4())
        case_dir = self.case_dir(test_case_id)
        input_dir = case_dir / INPUT_DIR
        try:
            feature_path = ensure_child_path(input_dir / feature_file_name(request.name or ""), input_dir)
        except PermissionError as exc:
            raise InvalidRequestError(f"Invalid test case name: {request.name!r}", ["name"]) from exc

        source_data: str | None = None
        if request.test_data_path:
            source = Path(request.test_data_path).expanduser()
            if not source.is_file():
                raise InvalidRequestError(f"Test data file not found: {request.test_data_path}", ["testDataPath"])
            source_data = source.read_text(encoding="utf-8")

        for sub in (INPUT_DIR, TEST_DATA_DIR, OUTPUT_DIR):
            (case_dir / sub).mkdir(parents=True, exist_ok=True)
        feature_path.parent.mkdir(parents=True, exist_ok=True)
        feature_path.write_text(request.gherkin_content or "", encoding="utf-8")
        if source_data is not None:
            (case_dir / TEST_DATA_DIR / TEST_DATA_FILE).write_text(source_data, encoding="utf-8")

        now = utc_now_iso()
        test_case = TestCase(
            id=test_case_id,
            name=request.name or "",
            gherkin_content=request.gherkin_content or "",
            test_data_path=str(case_dir / TEST_DATA_DIR),
            output_path=str(case_dir / OUTPUT_DIR),
            llm_model=request.llm_model or default_model,
            llm_api_key=request.llm_api_key,
            status=TestCaseStatus.READY,
            created_at=now,
            updated_at=now,
        )
        self._write(test_case)
        logger.info("store.create", test_case_id=test_case_id, name=test_case.name)
        return test_case

    def get(self, test_case_id: str) -> TestCase | None:
        try:
            path = self.metadata_path(test_case_id)
        except PermissionError:
            logger.warning("store.get.rejected_id", test_case_id=test_case_id)
            return None
        if not path.is_file():
            return None
        return TestCase.model_validate_json(path.read_text(encoding="utf-8"))

    def list(self) -> list[TestCase]:
        if not self.root.is_dir():
            return []
        test_cases: list[TestCase] = []
        for entry in self.root.iterdir():
            if not entry.is_dir():
                continue
            path = entry / METADATA_FILE
            if not path.is_file():
                continue
            try:
                test_cases.append(TestCase.model_validate_json(path.read_text(encoding="utf-8")))
            except (OSError, ValidationError) as exc:
                logger.warning("store.list.unreadable", path=str(path), error=str(exc))
        return test_cases

    def update_status(
        self,
        test_case_id: str,
        status: TestCaseStatus,
        last_run: RunSummary | None = None,
    ) -> TestCase:
        current = self.get(test_case_id)
        if current is None:
            raise TestCaseNotFoundError(test_case_id)
        updates: dict = {"status": status, "updated_at": max(utc_now_iso(), current.updated_at)}
        if last_run is not None:
            updates["last_run"] = last_run
        updated = current.model_copy(update=updates)
        self._write(updated)
        logger.info("store.status", test_case_id=test_case_id, status=TestCaseStatus(status).value)
        return updated

    def _write(self, test_case: TestCase) -> None:
        write_text_atomic(
            self.metadata_path(test_case.id),
            test_case.model_dump_json(by_alias=True, exclude_none=True, indent=2),
        )
