from __future__ import annotations

import httpx
import pytest

from hercules_bridge.api.app import create_app
from hercules_bridge.core.client import HerculesClient


async def _create(client: httpx.AsyncClient, feature_text: str, **extra) -> dict:
    response = await client.post(
        "/tools/create_test_case",
        json={"name": "Checkout flow", "gherkinContent": feature_text, **extra},
    )
    assert response.status_code == 200
    return response.json()["data"]["testCase"]


@pytest.mark.asyncio
async def test_health_endpoint(client):
    response = await client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["status"] == "ok"
    assert body["data"]["runner"]["mode"] == "synthetic"
    assert response.headers["X-Request-Id"].startswith("req_")


@pytest.mark.asyncio
async def test_list_tools(client):
    response = await client.get("/tools")
    names = [tool["name"] for tool in response.json()["data"]["tools"]]
    assert names == [
        "create_test_case",
        "run_test_case",
        "list_test_cases",
        "get_test_case",
        "get_execution_results",
    ]


@pytest.mark.asyncio
async def test_create_requires_fields(client):
    response = await client.post("/tools/create_test_case", json={"name": "No spec"})
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "VALIDATION_ERROR"

    response = await client.post("/tools/create_test_case", content=b"not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_rejects_missing_test_data_file(client, feature_text, tmp_path):
    response = await client.post(
        "/tools/create_test_case",
        json={"name": "x", "gherkinContent": feature_text, "testDataPath": str(tmp_path / "missing.csv")},
    )
    assert response.status_code == 400
    assert response.json()["detail"]["details"]["fields"] == ["testDataPath"]


@pytest.mark.asyncio
async def test_create_and_get_masks_credential(client, feature_text):
    created = await _create(client, feature_text, llmApiKey="sk-very-secret-key")
    assert created["status"] == "ready"
    assert created["llmModel"] == "gpt-4o"
    assert created["llmApiKey"] != "sk-very-secret-key"

    response = await client.get(f"/tools/get_test_case/{created['id']}")
    assert response.status_code == 200
    fetched = response.json()["data"]["testCase"]
    assert fetched["gherkinContent"] == feature_text
    assert fetched["name"] == "Checkout flow"


@pytest.mark.asyncio
async def test_get_unknown_test_case(client):
    response = await client.get("/tools/get_test_case/unknown-id")
    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "TEST_CASE_NOT_FOUND"


@pytest.mark.asyncio
async def test_list_test_cases(client, feature_text):
    empty = await client.get("/tools/list_test_cases")
    assert empty.json()["data"]["testCaseList"] == "No test cases found"

    created = await _create(client, feature_text)
    listed = (await client.get("/tools/list_test_cases")).json()["data"]
    assert [tc["id"] for tc in listed["testCases"]] == [created["id"]]
    assert f"ID: {created['id']}, Status: ready" in listed["testCaseList"]


@pytest.mark.asyncio
async def test_run_and_fetch_results(client, feature_text):
    created = await _create(client, feature_text)

    missing = await client.get(f"/tools/get_execution_results/{created['id']}")
    assert missing.status_code == 404

    response = await client.post("/tools/run_test_case", json={"testCaseId": created["id"]})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["result"]["status"] == "passed"
    assert len(data["result"]["screenshots"]) == 2
    assert data["message"].startswith("Test case execution completed with status: passed")

    results = await client.get(f"/tools/get_execution_results/{created['id']}")
    assert results.status_code == 200
    result = results.json()["data"]["result"]
    assert result["status"] == "passed"
    assert result["screenshots"] == data["result"]["screenshots"]

    report = await client.get(result["htmlReportUrl"])
    assert report.status_code == 200
    assert "Test Report: Checkout flow" in report.text


@pytest.mark.asyncio
async def test_run_validation_and_not_found(client):
    response = await client.post("/tools/run_test_case", json={})
    assert response.status_code == 400

    response = await client.post("/tools/run_test_case", json={"testCaseId": "unknown-id"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_run_failure_returns_failed_result(runner_settings, feature_text):
    app = create_app(client=HerculesClient(runner_settings("failure")))
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        created = await _create(http, feature_text)
        response = await http.post("/tools/run_test_case", json={"testCaseId": created["id"]})
        assert response.status_code == 500
        detail = response.json()["detail"]
        assert detail["code"] == "RUN_FAILED"
        assert detail["details"]["result"]["status"] == "failed"
        assert "browser crashed" in detail["details"]["result"]["error"]

        fetched = await http.get(f"/tools/get_test_case/{created['id']}")
        assert fetched.json()["data"]["testCase"]["status"] == "completed"


@pytest.mark.asyncio
async def test_artifact_download_not_found(client, feature_text):
    created = await _create(client, feature_text)
    response = await client.get(f"/artifacts/{created['id']}/missing.png")
    assert response.status_code == 404
    response = await client.get("/artifacts/unknown-id/anything.png")
    assert response.status_code == 404
