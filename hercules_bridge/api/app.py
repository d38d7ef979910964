from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hercules_bridge.api.middleware import register_middleware
from hercules_bridge.api.router import api_router
from hercules_bridge.config.settings import Settings, load_settings
from hercules_bridge.core.client import HerculesClient
from hercules_bridge.core.logger import get_logger
from hercules_bridge.core.subprocess_runner import runner_available
from hercules_bridge.schemas.response_schemas import SERVICE_VERSION

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    logger.info(
        "app.startup",
        version=SERVICE_VERSION,
        hercules_path=str(settings.hercules_path),
        runner_available=runner_available(settings),
        test_cases_dir=str(settings.test_cases_path),
    )
    yield
    logger.info("app.shutdown")


def create_app(settings: Settings | None = None, client: HerculesClient | None = None) -> FastAPI:
    settings = settings or (client.settings if client else load_settings())
    app = FastAPI(
        title="Hercules Bridge",
        version=SERVICE_VERSION,
        description="HTTP front-end for creating and running Hercules test cases",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.hercules_client = client or HerculesClient(settings)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_middleware(app)
    app.include_router(api_router)
    return app
