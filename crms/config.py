"""CRMS — Process settings via environment variables.

These settings describe how the process runs, never the jurisdiction it
serves. Everything jurisdictional lives in the deployment artifact.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class CrmsSettings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {
        "env_prefix": "CRMS_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    # ── Deployment artifact ────────────────────────────────────
    deployment_config_path: Path = Path("config/deployment.json")
    deployment_config_json: str | None = None

    # ── Integration Gateway ────────────────────────────────────
    integration_timeout_seconds: float = Field(default=10.0, gt=0)

    # ── API ────────────────────────────────────────────────────
    api_title: str = "CRMS Deployment Configuration"

    # ── Logging ────────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "json"


settings = CrmsSettings()
