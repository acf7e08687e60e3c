"""Shared fixtures: the reference Sierra Leone artifact, raw and validated."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from crms.deployment.schema import DeploymentConfig
from crms.runtime import DeploymentServices

EXAMPLE_PATH = Path(__file__).resolve().parent.parent / "config" / "deployment.example.json"


def load_example() -> dict[str, Any]:
    return json.loads(EXAMPLE_PATH.read_text(encoding="utf-8"))


@pytest.fixture
def example_path() -> Path:
    return EXAMPLE_PATH


@pytest.fixture
def raw_config() -> dict[str, Any]:
    """A fresh, mutable copy of the reference artifact."""
    return load_example()


@pytest.fixture
def deployment_config(raw_config: dict[str, Any]) -> DeploymentConfig:
    return DeploymentConfig.model_validate(raw_config)


@pytest.fixture
def services(deployment_config: DeploymentConfig) -> DeploymentServices:
    return DeploymentServices.from_config(deployment_config)
