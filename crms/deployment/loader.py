"""
Config Loader — read the deployment artifact once and publish it.

The loader reads the full artifact, parses it as JSON, hands the data to the
Schema Validator and, on success, publishes the frozen ``DeploymentConfig``
for the rest of the process lifetime. It never reloads: replacing the
configuration means restarting the process.

The loader is an explicitly constructed object, created once at startup and
passed to whoever needs the configuration; there is no module-level instance.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import IO, Union

from crms.config import CrmsSettings
from crms.deployment.schema import DeploymentConfig
from crms.deployment.validator import SchemaValidator, ValidationViolation

logger = logging.getLogger(__name__)

ConfigSource = Union[Path, bytes, bytearray, str, IO[str], IO[bytes]]

EXAMPLE_CONFIG_PATH = Path("config/deployment.example.json")


# ════════════════════════════════════════════════════════════════
# Errors
# ════════════════════════════════════════════════════════════════


class ConfigError(Exception):
    """Base class for fatal configuration errors. Startup must abort."""


class MalformedConfig(ConfigError):
    """The artifact could not be decoded or parsed as JSON."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ConfigNotFound(ConfigError):
    """The artifact file does not exist."""

    def __init__(self, path: Path) -> None:
        super().__init__(
            f"Deployment configuration not found at {path}. "
            f"Please copy {EXAMPLE_CONFIG_PATH} to config/deployment.json "
            f"and customize it for your country."
        )
        self.path = path


class ValidationFailed(ConfigError):
    """The artifact parsed but violates the schema; lists every violation."""

    def __init__(self, violations: list[ValidationViolation]) -> None:
        self.violations = list(violations)
        lines = "\n".join(f"  - {v}" for v in self.violations)
        super().__init__(
            f"Deployment configuration is invalid "
            f"({len(self.violations)} violation(s)):\n{lines}"
        )


class ConfigUnreadable(ConfigError):
    """The artifact path exists but cannot be read (a directory, no permission)."""

    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(
            f"Deployment configuration at {path} cannot be read: {cause.strerror or cause}"
        )
        self.path = path
        self.cause = cause


class AlreadyInitialized(ConfigError):
    """``load`` was called again after a successful load."""


class NotInitialized(ConfigError):
    """The configuration was requested before a successful ``load``."""


# ════════════════════════════════════════════════════════════════
# Parsing
# ════════════════════════════════════════════════════════════════


def read_source(source: ConfigSource) -> str:
    """
    Read the full artifact text.

    A ``Path`` is read from disk; ``bytes`` are decoded as UTF-8; a ``str`` is
    taken to be the JSON text itself; anything with ``read()`` is drained.
    """
    if isinstance(source, Path):
        try:
            data: str | bytes = source.read_bytes()
        except FileNotFoundError as exc:
            raise ConfigNotFound(source) from exc
        except OSError as exc:
            raise ConfigUnreadable(source, exc) from exc
    elif isinstance(source, (bytes, bytearray, str)):
        data = source
    elif hasattr(source, "read"):
        data = source.read()
    else:
        raise TypeError(f"Unsupported configuration source: {type(source).__name__}")

    if isinstance(data, (bytes, bytearray)):
        try:
            return bytes(data).decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise MalformedConfig(f"Configuration is not valid UTF-8: {exc}", exc) from exc
    return data


def parse_source(source: ConfigSource) -> object:
    """Read and parse the artifact as JSON; fails with ``MalformedConfig``."""
    text = read_source(source)
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedConfig(
            f"Configuration is not valid JSON (line {exc.lineno}, column {exc.colno}): {exc.msg}",
            exc,
        ) from exc


# ════════════════════════════════════════════════════════════════
# Loader
# ════════════════════════════════════════════════════════════════


class ConfigLoader:
    """
    Initialize-once holder of the process-wide deployment configuration.

    Usage:
        loader = ConfigLoader()
        config = loader.load(Path("config/deployment.json"))
        ...
        loader.config  # the same instance, for the rest of the process
    """

    def __init__(self, validator: SchemaValidator | None = None) -> None:
        self._validator = validator or SchemaValidator()
        self._config: DeploymentConfig | None = None
        self._publish_lock = threading.Lock()

    @property
    def is_initialized(self) -> bool:
        return self._config is not None

    @property
    def config(self) -> DeploymentConfig:
        """The published configuration."""
        if self._config is None:
            raise NotInitialized(
                "Deployment configuration has not been loaded; call ConfigLoader.load() at startup"
            )
        return self._config

    def load(self, source: ConfigSource) -> DeploymentConfig:
        """
        Parse, validate and publish the artifact.

        Raises:
            AlreadyInitialized: A configuration was already published.
            ConfigNotFound: ``source`` is a path that does not exist.
            ConfigUnreadable: ``source`` is a path that cannot be read.
            MalformedConfig: The artifact is not UTF-8 JSON.
            ValidationFailed: The artifact violates the schema.
        """
        if self._config is not None:
            raise AlreadyInitialized(
                "Deployment configuration is already loaded; use ConfigLoader.config"
            )

        raw = parse_source(source)
        outcome = self._validator.validate(raw)
        if not outcome.is_valid:
            raise ValidationFailed(outcome.violations)

        with self._publish_lock:
            if self._config is not None:
                raise AlreadyInitialized(
                    "Deployment configuration is already loaded; use ConfigLoader.config"
                )
            self._config = outcome.config

        logger.info(
            "Deployment configuration loaded for %s (%s)",
            self._config.country_name,
            self._config.country_code,
        )
        return self._config


def load_from_settings(loader: ConfigLoader, settings: CrmsSettings) -> DeploymentConfig:
    """Load from the environment-provided blob if set, else from the configured path."""
    if settings.deployment_config_json:
        return loader.load(settings.deployment_config_json)
    return loader.load(Path(settings.deployment_config_path))
