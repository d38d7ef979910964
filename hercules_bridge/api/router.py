from fastapi import APIRouter

from hercules_bridge.api.routes.artifacts import router as artifacts_router
from hercules_bridge.api.routes.resources import router as resources_router
from hercules_bridge.api.routes.system import router as system_router
from hercules_bridge.api.routes.tools import router as tools_router

api_router = APIRouter()
api_router.include_router(system_router, tags=["system"])
api_router.include_router(tools_router, tags=["tools"])
api_router.include_router(resources_router, tags=["resources"])
api_router.include_router(artifacts_router, tags=["artifacts"])
