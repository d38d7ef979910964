from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request

from hercules_bridge.api.dependencies import get_client, get_request_id
from hercules_bridge.core.client import HerculesClient
from hercules_bridge.core.errors import InvalidRequestError, RunFailure, TestCaseNotFoundError
from hercules_bridge.core.logger import get_logger
from hercules_bridge.schemas.models import TestResult
from hercules_bridge.schemas.request_schemas import CreateTestCaseRequest, RunTestCaseRequest
from hercules_bridge.schemas.response_schemas import error_payload, response_envelope
from hercules_bridge.schemas.tool_specs import TOOL_DEFINITIONS

router = APIRouter()
logger = get_logger(__name__)


def _with_report_urls(request: Request, test_case_id: str, result: TestResult) -> dict:
    payload = result.to_json_dict()
    for key, path in (("junitXmlUrl", result.junit_xml), ("htmlReportUrl", result.html_report)):
        if path:
            file_name = Path(path).name
            payload[key] = str(request.url_for("get_artifact", test_case_id=test_case_id, artifact_path=file_name))
    return payload


@router.get("/tools")
async def list_tools(request_id: str = Depends(get_request_id)):
    return response_envelope(True, data={"tools": TOOL_DEFINITIONS}, request_id=request_id)


@router.post("/tools/create_test_case")
async def post_create_test_case(
    body: CreateTestCaseRequest,
    request_id: str = Depends(get_request_id),
    client: HerculesClient = Depends(get_client),
):
    missing = body.missing_fields()
    if missing:
        raise HTTPException(
            status_code=400,
            detail=error_payload("VALIDATION_ERROR", "Missing required fields: name and gherkinContent", {"missing": missing}),
        )
    logger.info("api.tools.create", request_id=request_id, name=body.name)
    try:
        test_case = await client.create_test_case(body)
    except InvalidRequestError as exc:
        raise HTTPException(status_code=400, detail=error_payload("VALIDATION_ERROR", str(exc), {"fields": exc.fields}))
    data = {
        "testCase": test_case.public_dict(),
        "message": f'Test case "{test_case.name}" created successfully with ID: {test_case.id}',
    }
    return response_envelope(True, data=data, request_id=request_id)


@router.post("/tools/run_test_case")
async def post_run_test_case(
    body: RunTestCaseRequest,
    request: Request,
    request_id: str = Depends(get_request_id),
    client: HerculesClient = Depends(get_client),
):
    if body.missing_fields():
        raise HTTPException(status_code=400, detail=error_payload("VALIDATION_ERROR", "Missing required field: testCaseId"))
    test_case_id = str(body.test_case_id)
    logger.info("api.tools.run", request_id=request_id, test_case_id=test_case_id)
    try:
        result = await client.run_test_case(test_case_id, body.llm_model, body.llm_api_key)
    except TestCaseNotFoundError as exc:
        raise HTTPException(status_code=404, detail=error_payload("TEST_CASE_NOT_FOUND", str(exc)))
    except RunFailure as failure:
        raise HTTPException(
            status_code=500,
            detail=error_payload(
                "RUN_FAILED",
                str(failure),
                {"result": _with_report_urls(request, test_case_id, failure.result)},
            ),
        )
    data = {
        "result": _with_report_urls(request, test_case_id, result),
        "message": f"Test case execution completed with status: {result.status}. Execution time: {result.execution_time}ms",
    }
    return response_envelope(True, data=data, request_id=request_id)


@router.get("/tools/list_test_cases")
async def get_list_test_cases(request_id: str = Depends(get_request_id), client: HerculesClient = Depends(get_client)):
    test_cases = await client.list_test_cases()
    listing = "\n".join(f"- {tc.name} (ID: {tc.id}, Status: {tc.status})" for tc in test_cases)
    data = {
        "testCases": [tc.public_dict() for tc in test_cases],
        "testCaseList": listing or "No test cases found",
    }
    return response_envelope(True, data=data, request_id=request_id)


@router.get("/tools/get_test_case/{test_case_id}")
async def get_test_case(
    test_case_id: str,
    request_id: str = Depends(get_request_id),
    client: HerculesClient = Depends(get_client),
):
    test_case = await client.get_test_case(test_case_id)
    if test_case is None:
        raise HTTPException(
            status_code=404,
            detail=error_payload("TEST_CASE_NOT_FOUND", f"Test case with ID {test_case_id} not found"),
        )
    return response_envelope(True, data={"testCase": test_case.public_dict()}, request_id=request_id)


@router.get("/tools/get_execution_results/{test_case_id}")
async def get_execution_results(
    test_case_id: str,
    request: Request,
    request_id: str = Depends(get_request_id),
    client: HerculesClient = Depends(get_client),
):
    result = await client.get_execution_results(test_case_id)
    if result is None:
        raise HTTPException(
            status_code=404,
            detail=error_payload("RESULTS_NOT_FOUND", f"Execution results for test case {test_case_id} not found"),
        )
    return response_envelope(True, data={"result": _with_report_urls(request, test_case_id, result)}, request_id=request_id)
