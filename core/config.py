"""
Engine Configuration
====================

Runtime settings read from the environment (``.env`` supported).
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class EngineConfig(BaseModel):
    """Settings shared by the provider, the orchestrator and the API."""
    openrouter_api_key: Optional[str] = Field(default=None, description="OpenRouter API key")
    model: str = Field(default="openai/gpt-5.2", description="Model used for generation calls")
    pricing_model: str = Field(default="gpt-5.2", description="Key into the pricing table")
    base_url: str = Field(default="https://openrouter.ai/api/v1")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    timeout: float = Field(default=120.0, gt=0, description="Per driver call timeout (seconds)")
    max_concurrency: int = Field(default=0, ge=0, description="Max in-flight model calls (0 = unbounded)")
    log_file: Optional[str] = Field(default=None, description="Also write engine logs to this file")

    @classmethod
    def from_env(cls, **overrides) -> "EngineConfig":
        """Build from SECTION_ENGINE_* / OPENROUTER_API_KEY env vars; kwargs win."""
        load_dotenv()
        env = {
            "openrouter_api_key": os.getenv("OPENROUTER_API_KEY"),
            "model": os.getenv("SECTION_ENGINE_MODEL"),
            "pricing_model": os.getenv("SECTION_ENGINE_PRICING_MODEL"),
            "base_url": os.getenv("SECTION_ENGINE_BASE_URL"),
            "temperature": os.getenv("SECTION_ENGINE_TEMPERATURE"),
            "timeout": os.getenv("SECTION_ENGINE_TIMEOUT"),
            "max_concurrency": os.getenv("SECTION_ENGINE_MAX_CONCURRENCY"),
            "log_file": os.getenv("SECTION_ENGINE_LOG_FILE"),
        }
        values = {k: v for k, v in env.items() if v not in (None, "")}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def setup_logging(name: str = "SectionEngine", log_file: Optional[str] = None) -> logging.Logger:
    """Configure the named engine logger once: console always, file when asked."""
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    if not logger.handlers:
        formatter = logging.Formatter(LOG_FORMAT)

        # Stream Handler (Console)
        sh = logging.StreamHandler()
        sh.setFormatter(formatter)
        logger.addHandler(sh)

        if log_file:
            directory = os.path.dirname(log_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            fh = logging.FileHandler(log_file, encoding="utf-8")
            fh.setFormatter(formatter)
            logger.addHandler(fh)
    return logger
