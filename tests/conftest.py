from __future__ import annotations

import stat
from pathlib import Path
from typing import Callable

import httpx
import pytest

from hercules_bridge.api.app import create_app
from hercules_bridge.config.settings import Settings, load_settings
from hercules_bridge.core.client import HerculesClient
from hercules_bridge.schemas.request_schemas import CreateTestCaseRequest

FEATURE = """Feature: Login
  Scenario: Valid user signs in
    Given I open "https://example.test/login"
    When I sign in as "alice"
    Then I see the dashboard
"""

_RUNNER_PRELUDE = """#!/bin/sh
while [ "$#" -gt 0 ]; do
  case "$1" in
    --input-file) INPUT="$2"; shift 2 ;;
    --output-path) OUTPUT="$2"; shift 2 ;;
    --test-data-path) TEST_DATA="$2"; shift 2 ;;
    --llm-model) MODEL="$2"; shift 2 ;;
    --llm-model-api-key) KEY="$2"; shift 2 ;;
    *) shift ;;
  esac
done
STEM=$(basename "$INPUT" .feature)
"""

RUNNER_SUCCESS = """
mkdir -p "$OUTPUT/proofs/screenshots" "$OUTPUT/proofs/videos" "$OUTPUT/proofs/network_logs" "$OUTPUT/logs"
printf 'png' > "$OUTPUT/proofs/screenshots/login.png"
printf 'png' > "$OUTPUT/proofs/screenshots/dashboard.png"
printf 'txt' > "$OUTPUT/proofs/screenshots/notes.txt"
printf 'webm' > "$OUTPUT/proofs/videos/run.webm"
printf '{}' > "$OUTPUT/proofs/network_logs/network.json"
printf 'log' > "$OUTPUT/logs/hercules.log"
printf '<testsuites/>' > "$OUTPUT/${STEM}_result.xml"
printf '<html></html>' > "$OUTPUT/${STEM}_result.html"
{
  echo "model=$MODEL"
  echo "key=$KEY"
  echo "test_data=$TEST_DATA"
  echo "pythonpath=$PYTHONPATH"
  echo "virtual_env=$VIRTUAL_ENV"
  echo "cwd=$(pwd)"
} > "$OUTPUT/invocation.txt"
echo "run finished"
exit 0
"""

RUNNER_FAILURE = """
echo "starting browser"
echo "browser crashed" >&2
exit 3
"""

RUNNER_HANG = """
echo $$ > "$OUTPUT/runner.pid"
exec sleep 30
"""

RUNNER_BODIES = {"success": RUNNER_SUCCESS, "failure": RUNNER_FAILURE, "hang": RUNNER_HANG}


def make_settings(tmp_path: Path, **overrides) -> Settings:
    values = {
        "HERCULES_PATH": str(tmp_path / "hercules"),
        "TEST_CASES_DIR": str(tmp_path / "test-cases"),
        "SYNTHETIC_DELAY_MS": 0,
        "REQUIRE_RUNNER": False,
        "_env_file": None,
    }
    values.update(overrides)
    return load_settings(**values)


def install_fake_runner(hercules_path: Path, body: str) -> Path:
    python = hercules_path / "venv" / "bin" / "python"
    python.parent.mkdir(parents=True, exist_ok=True)
    python.write_text(_RUNNER_PRELUDE + body, encoding="utf-8")
    python.chmod(python.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return python


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture()
def runner_settings(tmp_path: Path) -> Callable[..., Settings]:
    def _build(mode: str = "success", **overrides) -> Settings:
        configured = make_settings(tmp_path, **overrides)
        install_fake_runner(configured.hercules_path, RUNNER_BODIES[mode])
        return configured

    return _build


@pytest.fixture()
def hercules_client(settings: Settings) -> HerculesClient:
    return HerculesClient(settings)


@pytest.fixture()
def feature_text() -> str:
    return FEATURE


@pytest.fixture()
def create_request() -> CreateTestCaseRequest:
    return CreateTestCaseRequest(name="Login smoke test", gherkin_content=FEATURE)


@pytest.fixture()
async def client(hercules_client: HerculesClient) -> httpx.AsyncClient:
    app = create_app(client=hercules_client)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as test_client:
        yield test_client
