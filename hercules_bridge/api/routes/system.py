from __future__ import annotations

from fastapi import APIRouter, Depends

from hercules_bridge.api.dependencies import get_client, get_request_id
from hercules_bridge.core.client import HerculesClient
from hercules_bridge.core.logger import get_logger
from hercules_bridge.core.subprocess_runner import runner_available
from hercules_bridge.schemas.models import utc_now_iso
from hercules_bridge.schemas.response_schemas import response_envelope

router = APIRouter()
logger = get_logger(__name__)


@router.get("/health")
async def get_health(request_id: str = Depends(get_request_id), client: HerculesClient = Depends(get_client)):
    available = runner_available(client.settings)
    logger.info("api.system.health", request_id=request_id, runner_available=available)
    data = {
        "status": "ok",
        "timestamp": utc_now_iso(),
        "runner": {
            "available": available,
            "mode": "hercules" if available else "synthetic",
        },
    }
    return response_envelope(True, data=data, request_id=request_id)
