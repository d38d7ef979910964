from __future__ import annotations

from fastapi import Request

from hercules_bridge.core.client import HerculesClient


def get_request_id(request: Request) -> str:
    rid = getattr(request.state, "request_id", "")
    return rid or "req_local"


def get_client(request: Request) -> HerculesClient:
    return request.app.state.hercules_client
