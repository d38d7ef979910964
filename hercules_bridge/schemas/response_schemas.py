from __future__ import annotations

import uuid
from typing import Any

from hercules_bridge.schemas.models import utc_now_iso

SERVICE_VERSION = "1.0.0"


def response_envelope(success: bool, data: Any = None, error: dict | None = None, request_id: str | None = None) -> dict:
    return {
        "success": success,
        "data": data,
        "error": error,
        "request_id": request_id or f"req_{uuid.uuid4().hex[:12]}",
        "timestamp": utc_now_iso(),
        "version": SERVICE_VERSION,
    }


def error_payload(code: str, message: str, details: dict | None = None) -> dict:
    return {"code": code, "message": message, "details": details or {}}
