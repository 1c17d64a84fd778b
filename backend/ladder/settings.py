"""
Service settings.

All settings come from environment variables with working defaults, so
the service starts with no configuration at all.
"""

import os
from pathlib import Path
from typing import List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field


# Environment variables
ENV_ENGINE_PATH = "LADDER_ENGINE_PATH"
ENV_UPLOAD_DIR = "LADDER_UPLOAD_DIR"
ENV_MAX_UPLOAD_MB = "LADDER_MAX_UPLOAD_MB"
ENV_LOG_LEVEL = "LADDER_LOG_LEVEL"
ENV_HOST = "LADDER_HOST"
ENV_PORT = "LADDER_PORT"
ENV_CORS_ORIGINS = "LADDER_CORS_ORIGINS"


class Settings(BaseModel):
    """Runtime configuration for the transcoding service."""

    model_config = ConfigDict(extra="forbid")

    # Engine executable; None means look up "ladder-engine" on PATH
    engine_path: Optional[str] = None

    upload_dir: Path = Path("uploads")
    max_upload_mb: int = Field(default=500, gt=0)

    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 3000
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ)
    """
    env = os.environ if environ is None else environ

    values = {}
    if env.get(ENV_ENGINE_PATH):
        values["engine_path"] = env[ENV_ENGINE_PATH]
    if env.get(ENV_UPLOAD_DIR):
        values["upload_dir"] = env[ENV_UPLOAD_DIR]
    if env.get(ENV_MAX_UPLOAD_MB):
        values["max_upload_mb"] = env[ENV_MAX_UPLOAD_MB]
    if env.get(ENV_LOG_LEVEL):
        values["log_level"] = env[ENV_LOG_LEVEL].upper()
    if env.get(ENV_HOST):
        values["host"] = env[ENV_HOST]
    if env.get(ENV_PORT):
        values["port"] = env[ENV_PORT]
    if env.get(ENV_CORS_ORIGINS):
        values["cors_origins"] = [
            origin.strip() for origin in env[ENV_CORS_ORIGINS].split(",") if origin.strip()
        ]

    return Settings(**values)
