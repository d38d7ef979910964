"""Tool and resource catalogue shared by the MCP and HTTP front-ends."""

from __future__ import annotations

from typing import Any

RESOURCE_URI_PREFIX = "hercules://test-case/"
RESOURCE_MIME_TYPE = "application/json"

CREATE_TEST_CASE = "create_test_case"
RUN_TEST_CASE = "run_test_case"
LIST_TEST_CASES = "list_test_cases"
GET_TEST_CASE = "get_test_case"
GET_EXECUTION_RESULTS = "get_execution_results"

_TEST_CASE_ID = {"type": "string", "description": "ID of the test case"}

TOOL_DEFINITIONS: list[dict[str, Any]] = [
    {
        "name": CREATE_TEST_CASE,
        "description": "Create a new Hercules test case with Gherkin content",
        "inputSchema": {
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "Name of the test case"},
                "gherkinContent": {"type": "string", "description": "Gherkin feature file content"},
                "testDataPath": {"type": "string", "description": "Optional path to test data file"},
                "llmModel": {"type": "string", "description": "LLM model to use (default: gpt-4o)"},
                "llmApiKey": {"type": "string", "description": "LLM API key"},
            },
            "required": ["name", "gherkinContent"],
        },
    },
    {
        "name": RUN_TEST_CASE,
        "description": "Run a Hercules test case and get results",
        "inputSchema": {
            "type": "object",
            "properties": {
                "testCaseId": {"type": "string", "description": "ID of the test case to run"},
                "llmModel": {"type": "string", "description": "LLM model to use (overrides test case setting)"},
                "llmApiKey": {"type": "string", "description": "LLM API key (overrides test case setting)"},
            },
            "required": ["testCaseId"],
        },
    },
    {
        "name": LIST_TEST_CASES,
        "description": "List all available test cases",
        "inputSchema": {"type": "object", "properties": {}, "required": []},
    },
    {
        "name": GET_TEST_CASE,
        "description": "Get details of a specific test case",
        "inputSchema": {
            "type": "object",
            "properties": {"testCaseId": _TEST_CASE_ID},
            "required": ["testCaseId"],
        },
    },
    {
        "name": GET_EXECUTION_RESULTS,
        "description": "Get the collected artifacts and status of the latest run of a test case",
        "inputSchema": {
            "type": "object",
            "properties": {"testCaseId": _TEST_CASE_ID},
            "required": ["testCaseId"],
        },
    },
]


def resource_uri(test_case_id: str) -> str:
    return f"{RESOURCE_URI_PREFIX}{test_case_id}"


def parse_resource_uri(uri: str) -> str | None:
    if not uri.startswith(RESOURCE_URI_PREFIX):
        return None
    test_case_id = uri[len(RESOURCE_URI_PREFIX):].strip("/")
    return test_case_id or None


def resource_descriptor(test_case_id: str, name: str) -> dict[str, str]:
    return {
        "uri": resource_uri(test_case_id),
        "name": name,
        "description": f"Hercules test case: {name}",
        "mimeType": RESOURCE_MIME_TYPE,
    }
