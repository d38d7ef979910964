from __future__ import annotations

import time
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from hercules_bridge.core.logger import get_logger
from hercules_bridge.schemas.response_schemas import error_payload

logger = get_logger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request.state.request_id = f"req_{uuid.uuid4().hex[:12]}"
        start = time.time()
        logger.info(
            "http.request.start",
            request_id=request.state.request_id,
            method=request.method,
            path=request.url.path,
        )
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "http.request.error",
                request_id=request.state.request_id,
                method=request.method,
                path=request.url.path,
            )
            raise
        duration = time.time() - start
        response.headers["X-Request-Id"] = request.state.request_id
        response.headers["X-Process-Time"] = f"{duration:.4f}"
        logger.info(
            "http.request.end",
            request_id=request.state.request_id,
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2),
        )
        return response


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("http.request.invalid", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(
        status_code=400,
        content={
            "detail": error_payload(
                "VALIDATION_ERROR",
                "Request body is missing or malformed",
                details={"errors": [str(err.get("msg", "")) for err in exc.errors()]},
            )
        },
    )


def register_middleware(app: FastAPI) -> None:
    app.add_middleware(RequestContextMiddleware)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
