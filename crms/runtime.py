"""
Deployment services — everything derived from the loaded configuration.

Built once at startup from the published ``DeploymentConfig`` and passed by
reference to request handlers and workflows. Nothing in here mutates after
construction, so it is shared across threads and tasks without locking.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from crms.deployment.localization import LocalizationResolver
from crms.deployment.national_id import NationalIdValidator
from crms.deployment.offenses import OffenseCatalog
from crms.deployment.schema import DeploymentConfig
from crms.governance.ranks import RankLadder
from crms.integrations.gateway import IntegrationGateway


@dataclass(frozen=True)
class DeploymentServices:
    config: DeploymentConfig
    national_ids: NationalIdValidator
    offenses: OffenseCatalog
    localization: LocalizationResolver
    ranks: RankLadder
    integration_timeout: float = 10.0

    @classmethod
    def from_config(
        cls,
        config: DeploymentConfig,
        integration_timeout: float = 10.0,
    ) -> DeploymentServices:
        return cls(
            config=config,
            national_ids=NationalIdValidator.from_system(config.national_id_system),
            offenses=OffenseCatalog(config.offense_categories),
            localization=LocalizationResolver(config.language, config.currency),
            ranks=RankLadder.from_structure(config.police_structure),
            integration_timeout=integration_timeout,
        )

    def gateway(
        self,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> IntegrationGateway:
        """A gateway bound to this deployment's integration slots; the caller closes it."""
        return IntegrationGateway(
            self.config.integrations,
            self.config.telecom,
            timeout=timeout if timeout is not None else self.integration_timeout,
            transport=transport,
        )
