from __future__ import annotations

import json
from typing import Any, Awaitable, Callable

from hercules_bridge.core.client import HerculesClient
from hercules_bridge.core.errors import BridgeError, InvalidRequestError, RunFailure, TestCaseNotFoundError
from hercules_bridge.core.logger import get_logger
from hercules_bridge.schemas.request_schemas import CreateTestCaseRequest, RunTestCaseRequest, TestCaseLookupRequest
from hercules_bridge.schemas.tool_specs import (
    CREATE_TEST_CASE,
    GET_EXECUTION_RESULTS,
    GET_TEST_CASE,
    LIST_TEST_CASES,
    RUN_TEST_CASE,
    parse_resource_uri,
    resource_descriptor,
)

logger = get_logger(__name__)


class ToolCallError(BridgeError):
    pass


class ToolHandlers:
    """Protocol-agnostic tool and resource handlers returning plain text."""

    def __init__(self, client: HerculesClient):
        self.client = client
        self._dispatch: dict[str, Callable[[dict[str, Any]], Awaitable[str]]] = {
            CREATE_TEST_CASE: self.create_test_case,
            RUN_TEST_CASE: self.run_test_case,
            LIST_TEST_CASES: self.list_test_cases,
            GET_TEST_CASE: self.get_test_case,
            GET_EXECUTION_RESULTS: self.get_execution_results,
        }

    async def call(self, name: str, arguments: dict[str, Any] | None) -> str:
        handler = self._dispatch.get(name)
        if handler is None:
            raise ToolCallError(f"Unknown tool: {name}")
        if arguments is not None and not isinstance(arguments, dict):
            raise ToolCallError(f"Invalid arguments for {name}")
        logger.info("mcp.tool.call", tool=name)
        try:
            return await handler(arguments or {})
        except RunFailure as failure:
            logger.warning("mcp.tool.error", tool=name, error=str(failure))
            payload = json.dumps(failure.result.to_json_dict(), indent=2)
            raise ToolCallError(f"Error executing tool {name}: {failure}\n{payload}") from failure
        except BridgeError as exc:
            logger.warning("mcp.tool.error", tool=name, error=str(exc))
            raise ToolCallError(f"Error executing tool {name}: {exc}") from exc

    async def create_test_case(self, arguments: dict[str, Any]) -> str:
        request = CreateTestCaseRequest.from_arguments(arguments)
        missing = request.missing_fields()
        if missing:
            raise InvalidRequestError(f"Missing required fields: {', '.join(missing)}", missing)
        test_case = await self.client.create_test_case(request)
        return f'Test case "{test_case.name}" created successfully with ID: {test_case.id}'

    async def run_test_case(self, arguments: dict[str, Any]) -> str:
        request = RunTestCaseRequest.from_arguments(arguments)
        if request.missing_fields():
            raise InvalidRequestError("Missing required field: testCaseId", ["testCaseId"])
        result = await self.client.run_test_case(str(request.test_case_id), request.llm_model, request.llm_api_key)
        lines = [f"Test case execution completed with status: {result.status}. Execution time: {result.execution_time}ms"]
        if result.junit_xml:
            lines.append(f"JUnit report: {result.junit_xml}")
        if result.html_report:
            lines.append(f"HTML report: {result.html_report}")
        lines.append(f"Screenshots: {len(result.screenshots)}, videos: {len(result.videos)}, logs: {len(result.logs)}")
        return "\n".join(lines)

    async def list_test_cases(self, arguments: dict[str, Any]) -> str:
        test_cases = await self.client.list_test_cases()
        listing = "\n".join(f"- {tc.name} (ID: {tc.id}, Status: {tc.status})" for tc in test_cases)
        return listing or "No test cases found"

    async def get_test_case(self, arguments: dict[str, Any]) -> str:
        request = TestCaseLookupRequest.from_arguments(arguments)
        if request.missing_fields():
            raise InvalidRequestError("Missing required field: testCaseId", ["testCaseId"])
        test_case = await self.client.get_test_case(str(request.test_case_id))
        if test_case is None:
            return f"Test case with ID {request.test_case_id} not found"
        return (
            f"Test Case: {test_case.name}\n"
            f"ID: {test_case.id}\n"
            f"Status: {test_case.status}\n"
            f"Created: {test_case.created_at}"
        )

    async def get_execution_results(self, arguments: dict[str, Any]) -> str:
        request = TestCaseLookupRequest.from_arguments(arguments)
        if request.missing_fields():
            raise InvalidRequestError("Missing required field: testCaseId", ["testCaseId"])
        result = await self.client.get_execution_results(str(request.test_case_id))
        if result is None:
            return f"Execution results for test case {request.test_case_id} not found"
        return json.dumps(result.to_json_dict(), indent=2)

    async def list_resources(self) -> list[dict[str, str]]:
        test_cases = await self.client.list_test_cases()
        return [resource_descriptor(tc.id, tc.name) for tc in test_cases]

    async def read_resource(self, uri: str) -> str:
        test_case_id = parse_resource_uri(uri)
        if test_case_id is None:
            raise ToolCallError(f"Unknown resource URI: {uri}")
        test_case = await self.client.get_test_case(test_case_id)
        if test_case is None:
            raise TestCaseNotFoundError(test_case_id)
        return json.dumps(test_case.public_dict(), indent=2)
