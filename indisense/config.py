"""
Configuration for the Indisense service.

Settings are read from environment variables, after loading a ``.env`` file
from the working directory when one exists.
"""

import os
from collections.abc import Callable
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_GATEWAY_URL = "https://ai.gateway.lovable.dev/v1/chat/completions"
DEFAULT_MODEL = "google/gemini-2.5-flash"


class ConfigurationError(ValueError):
    """Raised when an environment variable holds an unusable value."""


def _env_number(name: str, default: str, convert: Callable[[str], Any]) -> Any:
    raw = os.getenv(name, default)
    try:
        return convert(raw)
    except ValueError:
        raise ConfigurationError(
            f"{name} must be a {convert.__name__}, got {raw!r}"
        ) from None


class Settings(BaseModel):
    """Runtime settings for the server and its gateway client."""

    api_key: str | None = Field(None, description="Bearer credential for the gateway")
    gateway_url: str = DEFAULT_GATEWAY_URL
    model: str = DEFAULT_MODEL
    gateway_timeout: float | None = Field(
        60.0, description="Seconds to wait on the gateway, None to wait forever"
    )
    max_media_mb: float = 20.0
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    @property
    def max_media_bytes(self) -> int:
        return int(self.max_media_mb * 1024 * 1024)

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from the process environment.

        Returns:
            Settings populated from LOVABLE_API_KEY and INDISENSE_* variables

        Raises:
            ConfigurationError: If a numeric variable does not parse
        """
        load_dotenv()

        timeout = _env_number("INDISENSE_GATEWAY_TIMEOUT", "60", float)
        return cls(
            api_key=os.getenv("LOVABLE_API_KEY") or None,
            gateway_url=os.getenv("INDISENSE_GATEWAY_URL", DEFAULT_GATEWAY_URL),
            model=os.getenv("INDISENSE_MODEL", DEFAULT_MODEL),
            gateway_timeout=timeout if timeout > 0 else None,
            max_media_mb=_env_number("INDISENSE_MAX_MEDIA_MB", "20", float),
            log_level=os.getenv("INDISENSE_LOG_LEVEL", "INFO").upper(),
            host=os.getenv("INDISENSE_HOST", "0.0.0.0"),
            port=_env_number("INDISENSE_PORT", "8000", int),
        )
