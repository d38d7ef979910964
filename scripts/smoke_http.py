from __future__ import annotations

import argparse
import json
import re
import sys
import time
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import requests

LOCAL_HOSTS = {"localhost", "127.0.0.1", "::1"}
TEST_CASE_ID_RE = re.compile(r"/[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE)
KNOWN_ENDPOINTS: set[tuple[str, str]] = {
    ("GET", "/health"),
    ("GET", "/tools"),
    ("POST", "/tools/create_test_case"),
    ("POST", "/tools/run_test_case"),
    ("GET", "/tools/list_test_cases"),
    ("GET", "/tools/get_test_case/{test_case_id}"),
    ("GET", "/tools/get_execution_results/{test_case_id}"),
    ("GET", "/resources"),
    ("GET", "/resources/read"),
    ("GET", "/artifacts/{test_case_id}/{artifact_path}"),
}

SAMPLE_FEATURE = """Feature: Smoke
  Scenario: Home page loads
    Given I open "https://example.com"
    Then the page title contains "Example"
"""


def _now_tag() -> str:
    return time.strftime("%Y%m%d_%H%M%S")


def _save_json(target: Path, payload: Any) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8")


def _normalize_endpoint(url: str) -> str:
    path = urlparse(url).path
    if path.startswith("/artifacts/"):
        return "/artifacts/{test_case_id}/{artifact_path}"
    return TEST_CASE_ID_RE.sub("/{test_case_id}", path)


def _enforce_local_base_url(base_url: str, allow_remote: bool) -> None:
    host = (urlparse(base_url).hostname or "").lower()
    if not allow_remote and host not in LOCAL_HOSTS:
        raise RuntimeError(
            f"Refusing remote base URL ({base_url}). "
            "Use --allow-remote-base-url to override intentionally."
        )


class SmokeRunner:
    def __init__(self, base_url: str, output_dir: Path) -> None:
        self.base_url = base_url.rstrip("/")
        self.output_dir = output_dir
        self.request_index = 0
        self.coverage: set[tuple[str, str]] = set()

    def request(
        self,
        name: str,
        method: str,
        path_or_url: str,
        body: dict | None = None,
        params: dict | None = None,
        timeout_sec: int = 60,
    ) -> dict[str, Any]:
        url = path_or_url if path_or_url.startswith("http") else f"{self.base_url}{path_or_url}"
        started = time.time()
        response = requests.request(method=method.upper(), url=url, json=body, params=params, timeout=timeout_sec)
        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            parsed_body: Any = response.json()
        else:
            parsed_body = {"raw_bytes_len": len(response.content), "content_type": content_type}

        self.coverage.add((method.upper(), _normalize_endpoint(url)))
        record = {
            "name": name,
            "step_index": self.request_index,
            "url": url,
            "method": method.upper(),
            "request_body": body,
            "status_code": response.status_code,
            "body": parsed_body,
            "elapsed_ms": (time.time() - started) * 1000.0,
        }
        self.request_index += 1
        _save_json(self.output_dir / "requests" / f"{record['step_index']:03d}_{name}.json", record)
        return record


def _data(record: dict[str, Any]) -> dict[str, Any]:
    body = record.get("body") or {}
    return body.get("data") or {}


def _expect(record: dict[str, Any], status_code: int) -> None:
    if record["status_code"] != status_code:
        raise RuntimeError(f"{record['name']}: expected HTTP {status_code}, got {record['status_code']}")


def run_flow(runner: SmokeRunner, run_timeout_sec: int) -> dict[str, Any]:
    _expect(runner.request("health", "GET", "/health"), 200)
    _expect(runner.request("tools", "GET", "/tools"), 200)

    created = runner.request(
        "create_test_case",
        "POST",
        "/tools/create_test_case",
        body={"name": f"Smoke {_now_tag()}", "gherkinContent": SAMPLE_FEATURE},
    )
    _expect(created, 200)
    test_case_id = _data(created)["testCase"]["id"]

    _expect(runner.request("get_test_case", "GET", f"/tools/get_test_case/{test_case_id}"), 200)
    _expect(runner.request("list_test_cases", "GET", "/tools/list_test_cases"), 200)

    run = runner.request(
        "run_test_case",
        "POST",
        "/tools/run_test_case",
        body={"testCaseId": test_case_id},
        timeout_sec=run_timeout_sec,
    )
    if run["status_code"] not in (200, 500):
        raise RuntimeError(f"run_test_case: unexpected HTTP {run['status_code']}")

    results = runner.request("get_execution_results", "GET", f"/tools/get_execution_results/{test_case_id}")
    _expect(results, 200)
    result = _data(results)["result"]
    report_url = result.get("htmlReportUrl")
    if report_url:
        _expect(runner.request("html_report", "GET", report_url), 200)

    resources = runner.request("resources", "GET", "/resources")
    _expect(resources, 200)
    uri = f"hercules://test-case/{test_case_id}"
    _expect(runner.request("read_resource", "GET", "/resources/read", params={"uri": uri}), 200)

    return {
        "test_case_id": test_case_id,
        "run_http_status": run["status_code"],
        "result_status": result.get("status"),
        "screenshots": len(result.get("screenshots") or []),
        "logs": len(result.get("logs") or []),
    }


def main() -> int:
    parser = argparse.ArgumentParser(description="End-to-end smoke test for the Hercules HTTP bridge.")
    parser.add_argument("--base-url", default="http://localhost:3000", help="Bridge base URL")
    parser.add_argument("--output-dir", default=f"./smoke_outputs/{_now_tag()}", help="Output directory root")
    parser.add_argument("--run-timeout-sec", type=int, default=600, help="HTTP timeout for the run request")
    parser.add_argument(
        "--allow-remote-base-url",
        action="store_true",
        help="Allow non-localhost base URLs.",
    )
    args = parser.parse_args()

    _enforce_local_base_url(args.base_url, allow_remote=args.allow_remote_base_url)
    root = Path(args.output_dir).resolve()
    root.mkdir(parents=True, exist_ok=True)

    runner = SmokeRunner(args.base_url, root)
    try:
        summary = run_flow(runner, args.run_timeout_sec)
        outcome = "success"
    except (requests.RequestException, RuntimeError, KeyError) as exc:
        summary = {"error": str(exc)}
        outcome = "failure"

    covered = sorted(f"{m} {p}" for m, p in runner.coverage)
    missing = sorted(f"{m} {p}" for m, p in (KNOWN_ENDPOINTS - runner.coverage))
    _save_json(
        root / "summary.json",
        {
            "finished_at": time.time(),
            "base_url": args.base_url,
            "result": outcome,
            "flow": summary,
            "covered_endpoints": covered,
            "missing_endpoints": missing,
        },
    )
    print(f"{outcome}: artifacts saved at {root}")
    if outcome != "success":
        print(f"ERROR: {summary['error']}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
