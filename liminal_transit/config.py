"""Runtime configuration from the environment (and an optional .env file)."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from liminal_transit.enhancer import (
    DEFAULT_TIMEOUT,
    HttpEnhancer,
    NoopEnhancer,
    ProviderFormat,
    TextEnhancer,
)

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 13013


class EngineConfig(BaseModel):
    enhancer_url: str = ""
    enhancer_format: ProviderFormat = "koboldcpp"
    enhancer_model: str = ""
    enhancer_api_key: str = ""
    enhancer_timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    log_level: str = "INFO"
    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)

    @property
    def enhancement_enabled(self) -> bool:
        return bool(self.enhancer_url)


def load_config(env_file: Path | None = None) -> EngineConfig:
    """Read EngineConfig from LIMINAL_* environment variables.

    Values in `env_file` (default: .env in the working directory) are loaded
    first but never override variables already set in the environment.
    """
    load_dotenv(env_file or Path.cwd() / ".env")
    fields = {
        "enhancer_url": os.getenv("LIMINAL_ENHANCER_URL"),
        "enhancer_format": os.getenv("LIMINAL_ENHANCER_FORMAT"),
        "enhancer_model": os.getenv("LIMINAL_ENHANCER_MODEL"),
        "enhancer_api_key": os.getenv("LIMINAL_ENHANCER_API_KEY"),
        "enhancer_timeout": os.getenv("LIMINAL_ENHANCER_TIMEOUT"),
        "log_level": os.getenv("LIMINAL_LOG_LEVEL"),
        "host": os.getenv("HOST"),
        "port": os.getenv("PORT"),
    }
    return EngineConfig.model_validate({k: v for k, v in fields.items() if v not in (None, "")})


def build_enhancer(config: EngineConfig) -> TextEnhancer:
    if not config.enhancement_enabled:
        return NoopEnhancer()
    logger.info("text enhancement enabled url=%s format=%s", config.enhancer_url, config.enhancer_format)
    return HttpEnhancer(
        provider_url=config.enhancer_url,
        api_key=config.enhancer_api_key,
        provider_format=config.enhancer_format,
        model=config.enhancer_model,
        timeout=config.enhancer_timeout,
    )
