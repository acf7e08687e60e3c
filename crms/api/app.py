"""
CRMS — Read-only API over the deployment configuration.

Serves what presentation-layer forms need to render jurisdiction-specific
UI: the redacted configuration, the offense taxonomy, localization rules and
the police rank order. Secrets never leave through this surface; every
configuration view goes through ``DeploymentConfig.redacted_view()``.

Run with: ``uvicorn --factory crms.api.app:create_app``
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request

from crms.config import CrmsSettings, settings as default_settings
from crms.deployment.offenses import OffenseCatalog
from crms.deployment.schema import OffenseCategory
from crms.runtime import DeploymentServices

logger = logging.getLogger(__name__)


def _category_payload(catalog: OffenseCatalog, category: OffenseCategory) -> dict[str, Any]:
    return {
        "code": category.code,
        "name": category.name,
        "subcategories": [sub.to_dict() for sub in catalog.subcategories_of(category.code) or ()],
    }


def _services(request: Request) -> DeploymentServices:
    return request.app.state.services


def create_app(
    services: DeploymentServices | None = None,
    settings: CrmsSettings | None = None,
) -> FastAPI:
    """
    Build the API.

    When ``services`` is omitted the lifespan bootstraps them from settings,
    so a broken artifact stops the server before it accepts requests.
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if services is None:
            from crms.main import bootstrap

            app.state.services = bootstrap(settings)
        else:
            app.state.services = services
        logger.info("CRMS API serving deployment %s", app.state.services.config.country_code)
        yield
        logger.info("CRMS API shut down")

    app = FastAPI(title=settings.api_title, version="0.1.0", lifespan=lifespan)
    if services is not None:
        app.state.services = services

    @app.get("/api/deployment")
    async def api_deployment(request: Request) -> dict[str, Any]:
        """The configuration with every secret masked."""
        return _services(request).config.redacted_view()

    @app.get("/api/offenses")
    async def api_offenses(request: Request) -> dict[str, Any]:
        catalog = _services(request).offenses
        return {
            "categories": [
                _category_payload(catalog, category) for category in catalog.all_categories()
            ],
            "total": len(catalog),
        }

    @app.get("/api/offenses/{code}")
    async def api_offense(code: str, request: Request) -> dict[str, Any]:
        catalog = _services(request).offenses
        category = catalog.lookup_by_code(code)
        if category is None:
            raise HTTPException(status_code=404, detail=f"Unknown offense category: {code}")
        return _category_payload(catalog, category)

    @app.get("/api/localization")
    async def api_localization(request: Request) -> dict[str, Any]:
        current = _services(request)
        localization = current.localization
        currency = current.config.currency
        return {
            "defaultLanguage": localization.default_language,
            "supportedLanguages": list(localization.supported_languages),
            "dateFormat": localization.date_format,
            "timeFormat": localization.time_format.value,
            "currency": {"code": currency.code, "symbol": currency.symbol, "name": currency.name},
        }

    @app.get("/api/police/ranks")
    async def api_police_ranks(request: Request) -> dict[str, Any]:
        ranks = _services(request).ranks
        return {
            "type": ranks.structure_type.value,
            "levels": list(ranks.levels),
            "ranks": list(ranks.ranks),
        }

    return app
