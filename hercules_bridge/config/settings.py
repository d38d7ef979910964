from __future__ import annotations

from pathlib import Path
from typing import List

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from hercules_bridge.core.errors import ConfigurationError

RUNNER_MODULE = "testzeus_hercules"
VENV_DIR = "venv"
MIN_EXECUTION_TIMEOUT_MS = 1000


class Settings(BaseSettings):
    HERCULES_PATH: str
    HOST: str = "localhost"
    PORT: int = 3000
    ALLOWED_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])
    LOG_LEVEL: str = "INFO"
    ENABLE_DEBUG_LOGGING: bool = False

    TEST_CASES_DIR: str = "test-cases"
    DEFAULT_LLM_MODEL: str = "gpt-4o"
    DEFAULT_LLM_API_KEY: str | None = None

    TEST_EXECUTION_TIMEOUT: int = 300_000
    SYNTHETIC_DELAY_MS: int = 2000
    REQUIRE_RUNNER: bool = True

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    @property
    def hercules_path(self) -> Path:
        return Path(self.HERCULES_PATH).expanduser().resolve()

    @property
    def venv_path(self) -> Path:
        return self.hercules_path / VENV_DIR

    @property
    def venv_bin_path(self) -> Path:
        return self.venv_path / "bin"

    @property
    def venv_python(self) -> Path:
        return self.venv_bin_path / "python"

    @property
    def test_cases_path(self) -> Path:
        return Path(self.TEST_CASES_DIR).expanduser().resolve()

    @property
    def execution_timeout_sec(self) -> float:
        return self.TEST_EXECUTION_TIMEOUT / 1000.0

    @property
    def synthetic_delay_sec(self) -> float:
        return max(0, self.SYNTHETIC_DELAY_MS) / 1000.0

    @property
    def effective_log_level(self) -> str:
        if self.ENABLE_DEBUG_LOGGING:
            return "DEBUG"
        return str(self.LOG_LEVEL or "INFO").upper()


def load_settings(**overrides) -> Settings:
    """Build the settings struct from the environment (and ``.env``).

    Keyword overrides take precedence over the environment, which is how
    tests inject temporary directories.
    """
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        missing = [
            ".".join(str(part) for part in err.get("loc", ()))
            for err in exc.errors()
            if err.get("type") == "missing"
        ]
        if "HERCULES_PATH" in missing:
            raise ConfigurationError(
                "HERCULES_PATH environment variable is required. Please set it in your .env file."
            ) from exc
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc


def validate_settings(settings: Settings) -> None:
    errors: list[str] = []

    if not str(settings.HERCULES_PATH or "").strip():
        errors.append("HERCULES_PATH must not be empty")
    elif settings.REQUIRE_RUNNER:
        if not settings.hercules_path.exists():
            errors.append(f"Hercules path does not exist: {settings.hercules_path}")
        if not settings.venv_python.exists():
            errors.append(f"Virtual environment not found at: {settings.venv_python}")

    if settings.PORT < 1 or settings.PORT > 65535:
        errors.append(f"Invalid port number: {settings.PORT}")

    if settings.TEST_EXECUTION_TIMEOUT < MIN_EXECUTION_TIMEOUT_MS:
        errors.append(f"Test execution timeout too low: {settings.TEST_EXECUTION_TIMEOUT}ms")

    if errors:
        raise ConfigurationError("Configuration validation failed:\n" + "\n".join(errors))
