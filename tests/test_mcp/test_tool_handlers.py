from __future__ import annotations

import json

import mcp.types as types
import pytest

from hercules_bridge.core.client import HerculesClient
from hercules_bridge.core.errors import TestCaseNotFoundError
from hercules_bridge.mcp_server.handlers import ToolCallError, ToolHandlers
from hercules_bridge.mcp_server.server import SERVER_NAME, build_server


@pytest.fixture()
def handlers(hercules_client) -> ToolHandlers:
    return ToolHandlers(hercules_client)


async def _create(handlers: ToolHandlers, feature_text: str, name: str = "Profile update") -> str:
    text = await handlers.call("create_test_case", {"name": name, "gherkinContent": feature_text})
    assert text.startswith(f'Test case "{name}" created successfully with ID: ')
    return text.rsplit(" ", 1)[-1]


@pytest.mark.asyncio
async def test_unknown_tool(handlers):
    with pytest.raises(ToolCallError, match="Unknown tool: delete_everything"):
        await handlers.call("delete_everything", {})


@pytest.mark.asyncio
async def test_missing_arguments_are_reported(handlers):
    with pytest.raises(ToolCallError, match="Error executing tool create_test_case: Missing required fields: gherkinContent"):
        await handlers.call("create_test_case", {"name": "Only a name"})
    with pytest.raises(ToolCallError, match="Error executing tool run_test_case"):
        await handlers.call("run_test_case", None)


@pytest.mark.asyncio
async def test_create_list_and_get(handlers, feature_text):
    assert await handlers.call("list_test_cases", {}) == "No test cases found"

    test_case_id = await _create(handlers, feature_text)

    listing = await handlers.call("list_test_cases", None)
    assert listing == f"- Profile update (ID: {test_case_id}, Status: ready)"

    details = await handlers.call("get_test_case", {"testCaseId": test_case_id})
    assert details.splitlines()[:3] == ["Test Case: Profile update", f"ID: {test_case_id}", "Status: ready"]

    missing = await handlers.call("get_test_case", {"testCaseId": "nope"})
    assert missing == "Test case with ID nope not found"


@pytest.mark.asyncio
async def test_run_and_results(handlers, feature_text):
    test_case_id = await _create(handlers, feature_text)

    before = await handlers.call("get_execution_results", {"testCaseId": test_case_id})
    assert before == f"Execution results for test case {test_case_id} not found"

    text = await handlers.call("run_test_case", {"testCaseId": test_case_id, "llmModel": "gpt-4o-mini"})
    assert text.startswith("Test case execution completed with status: passed")
    assert "JUnit report: " in text
    assert "Screenshots: 2, videos: 0, logs: 1" in text

    results = json.loads(await handlers.call("get_execution_results", {"testCaseId": test_case_id}))
    assert results["status"] == "passed"
    assert results["id"] == f"exec-{test_case_id}"
    assert len(results["screenshots"]) == 2

    details = await handlers.call("get_test_case", {"testCaseId": test_case_id})
    assert "Status: completed" in details


@pytest.mark.asyncio
async def test_run_unknown_test_case_is_wrapped(handlers):
    with pytest.raises(ToolCallError, match="Test case missing-id not found"):
        await handlers.call("run_test_case", {"testCaseId": "missing-id"})


@pytest.mark.asyncio
async def test_run_failure_is_wrapped(runner_settings, feature_text):
    handlers = ToolHandlers(HerculesClient(runner_settings("failure")))
    test_case_id = await _create(handlers, feature_text)
    with pytest.raises(ToolCallError, match="browser crashed") as excinfo:
        await handlers.call("run_test_case", {"testCaseId": test_case_id})

    message = str(excinfo.value)
    assert message.startswith("Error executing tool run_test_case: ")
    failed = json.loads(message[message.index("\n{") + 1 :])
    assert failed["status"] == "failed"
    assert "browser crashed" in failed["error"]
    assert len(failed["screenshots"]) == 2


@pytest.mark.asyncio
async def test_resources(handlers, feature_text):
    test_case_id = await _create(handlers, feature_text, name="Cart")

    resources = await handlers.list_resources()
    assert [item["uri"] for item in resources] == [f"hercules://test-case/{test_case_id}"]

    payload = json.loads(await handlers.read_resource(resources[0]["uri"]))
    assert payload["name"] == "Cart"
    assert payload["gherkinContent"] == feature_text

    with pytest.raises(ToolCallError):
        await handlers.read_resource("https://example.test/")
    with pytest.raises(TestCaseNotFoundError):
        await handlers.read_resource("hercules://test-case/unknown")


def test_build_server_registers_handlers(hercules_client):
    server = build_server(ToolHandlers(hercules_client))
    assert server.name == SERVER_NAME
    for request_type in (
        types.ListToolsRequest,
        types.CallToolRequest,
        types.ListResourcesRequest,
        types.ReadResourceRequest,
    ):
        assert request_type in server.request_handlers
