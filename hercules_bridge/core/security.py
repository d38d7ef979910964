from __future__ import annotations

import re
from pathlib import Path

_SECRET_FLAGS = {"--llm-model-api-key"}


def ensure_project_path(path: str | Path, project_path: str | Path) -> Path:
    resolved = Path(path).resolve()
    project = Path(project_path).resolve()
    if project == resolved or project in resolved.parents:
        return resolved
    raise PermissionError(f"Path traversal blocked: {resolved}")


def ensure_child_path(path: str | Path, parent: str | Path) -> Path:
    """Like ``ensure_project_path`` but the parent itself is not accepted."""
    resolved = ensure_project_path(path, parent)
    if resolved == Path(parent).resolve():
        raise PermissionError(f"Path traversal blocked: {resolved}")
    return resolved


def mask_secret(value: str | None) -> str | None:
    if not value:
        return value
    if len(value) <= 8:
        return "***"
    return f"{value[:3]}***{value[-2:]}"


def redact_command(command: list[str]) -> list[str]:
    redacted: list[str] = []
    hide_next = False
    for arg in command:
        if hide_next:
            redacted.append(mask_secret(arg) or "")
            hide_next = False
            continue
        redacted.append(arg)
        if arg in _SECRET_FLAGS:
            hide_next = True
    return redacted


def slugify_name(name: str) -> str:
    return re.sub(r"\s+", "_", name)
