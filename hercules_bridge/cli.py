from __future__ import annotations

import argparse
import asyncio
import sys

import uvicorn

from hercules_bridge.api.app import create_app
from hercules_bridge.config.settings import Settings, load_settings, validate_settings
from hercules_bridge.core.client import HerculesClient
from hercules_bridge.core.errors import ConfigurationError
from hercules_bridge.core.logger import get_logger
from hercules_bridge.core.logging import configure_logging
from hercules_bridge.mcp_server.server import serve_stdio

logger = get_logger(__name__)


def _startup_settings(stream) -> Settings:
    try:
        settings = load_settings()
        configure_logging(settings.effective_log_level, stream=stream)
        validate_settings(settings)
    except ConfigurationError as exc:
        configure_logging("INFO", stream=stream)
        logger.critical("config.invalid", error=str(exc))
        raise SystemExit(1) from exc
    logger.info(
        "config.loaded",
        hercules_path=str(settings.hercules_path),
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.effective_log_level,
    )
    return settings


def run_mcp() -> None:
    settings = _startup_settings(sys.stderr)
    try:
        asyncio.run(serve_stdio(HerculesClient(settings)))
    except KeyboardInterrupt:
        logger.info("mcp.interrupted")


def run_http(host: str | None = None, port: int | None = None) -> None:
    settings = _startup_settings(sys.stdout)
    app = create_app(settings)
    bind_host = host or settings.HOST
    bind_port = port or settings.PORT
    logger.info("http.listen", url=f"http://{bind_host}:{bind_port}", health=f"http://{bind_host}:{bind_port}/health")
    uvicorn.run(app, host=bind_host, port=bind_port, log_config=None)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="hercules-bridge", description="Hercules test runner bridge")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("mcp", help="Serve the MCP protocol over stdio")
    http_parser = sub.add_parser("http", help="Serve the HTTP API")
    http_parser.add_argument("--host", default=None)
    http_parser.add_argument("--port", type=int, default=None)
    args = parser.parse_args(argv)

    if args.command == "mcp":
        run_mcp()
    else:
        run_http(args.host, args.port)


if __name__ == "__main__":
    main()
