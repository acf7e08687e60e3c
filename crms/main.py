"""
CRMS — Process bootstrap.

Startup sequence:
1. Configure structured logging
2. Load and validate the deployment artifact (once)
3. Build the deployment services from the published configuration

Any configuration error aborts startup before the process can serve.
"""

from __future__ import annotations

import logging
import sys

import structlog

from crms.config import CrmsSettings, settings as default_settings
from crms.deployment.loader import ConfigError, ConfigLoader, ValidationFailed, load_from_settings
from crms.deployment.schema import REDACTED
from crms.runtime import DeploymentServices


# Event keys that may carry a credential; masked before rendering.
SECRET_EVENT_KEYS = frozenset({"api_key", "apiKey", "sms_api_key", "smsApiKey", "authorization"})


def redact_secrets(logger: object, method_name: str, event_dict: dict) -> dict:
    """Processor masking credential-bearing keys that slip into an event."""
    for key in SECRET_EVENT_KEYS.intersection(event_dict):
        event_dict[key] = REDACTED
    return event_dict


def _renderer(log_format: str):
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def configure_logging(settings: CrmsSettings) -> None:
    """
    Configure structured logging for the process.

    Library modules log through ``logging``; bootstrap events go through
    structlog and carry the deployment's ``country_code`` once it is known.
    """
    level = logging.getLevelName(settings.log_level.upper())
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            redact_secrets,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _renderer(settings.log_format),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bootstrap(
    settings: CrmsSettings,
    loader: ConfigLoader | None = None,
) -> DeploymentServices:
    """
    Load the deployment artifact and build the services derived from it.

    Raises:
        ConfigError: The artifact is missing, malformed or invalid.
    """
    log = structlog.get_logger()
    loader = loader or ConfigLoader()
    structlog.contextvars.unbind_contextvars("country_code")

    log.info(
        "crms.bootstrap.starting",
        source="environment" if settings.deployment_config_json else str(settings.deployment_config_path),
    )

    try:
        config = load_from_settings(loader, settings)
    except ValidationFailed as exc:
        log.critical(
            "crms.bootstrap.validation_failed",
            violation_count=len(exc.violations),
            violations=[str(v) for v in exc.violations],
        )
        raise

    structlog.contextvars.bind_contextvars(country_code=config.country_code)
    log.info(
        "crms.bootstrap.config_loaded",
        offense_categories=len(config.offense_categories),
        national_id_registry=config.integrations.national_id_registry.enabled,
        court_system=config.integrations.court_system.enabled,
    )

    services = DeploymentServices.from_config(
        config, integration_timeout=settings.integration_timeout_seconds
    )
    log.info("crms.bootstrap.ready", country=config.country_name)
    return services


def main() -> None:
    """Validate the deployment at startup; exit non-zero if it cannot serve."""
    configure_logging(default_settings)
    log = structlog.get_logger()
    try:
        bootstrap(default_settings)
    except ConfigError as exc:
        log.critical("crms.bootstrap.aborted", error=str(exc))
        sys.exit(1)


if __name__ == "__main__":
    main()
