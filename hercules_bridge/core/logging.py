from __future__ import annotations

import logging
import sys
from typing import TextIO

from hercules_bridge.core.logger import configure_structlog


def configure_logging(level: str = "INFO", stream: TextIO | None = None) -> None:
    # The MCP front-end passes stderr: stdout carries the protocol there.
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stdout,
        level=log_level,
        force=True,
    )
    configure_structlog()
