"""
CRMS — Integration Gateway for external systems.

Thin async wrapper over the deployment's integration slots (national ID
registry, court system) and its SMS provider. Every call first checks that
the slot is enabled; a disabled slot answers ``IntegrationOutcome.DISABLED``
without touching the network. That is a normal outcome, not a fault.

Failures of an enabled slot raise ``IntegrationError`` classified as
retryable (timeouts, network errors, HTTP 429/5xx) or not (other 4xx,
unparseable responses). The gateway never retries; that is the caller's
decision. Credentials and request/response bodies are never logged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx
from pydantic import SecretStr

from crms.deployment.localization import PHONE_PATTERN
from crms.deployment.schema import Integration, Integrations, IntegrationSlot, Telecom

logger = logging.getLogger(__name__)

SMS_SLOT = "sms"


class IntegrationOutcome(str, Enum):
    COMPLETED = "completed"
    DISABLED = "disabled"


@dataclass(frozen=True)
class GatewayResponse:
    slot: str
    outcome: IntegrationOutcome
    status_code: int | None = None
    data: Any = None

    @property
    def is_disabled(self) -> bool:
        return self.outcome is IntegrationOutcome.DISABLED


class IntegrationError(Exception):
    """An enabled integration call failed. The message never carries payload data."""

    def __init__(
        self,
        slot: str,
        message: str,
        *,
        retryable: bool,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.slot = slot
        self.retryable = retryable
        self.status_code = status_code


class IntegrationGateway:
    """
    Async gateway to the deployment's external systems.

    Uses httpx for async HTTP. One client is created lazily and reused;
    each call is independent and bounded by ``timeout``.
    """

    def __init__(
        self,
        integrations: Integrations,
        telecom: Telecom,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._integrations = integrations
        self._telecom = telecom
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> IntegrationGateway:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ── Slot state ─────────────────────────────────────────────

    @property
    def ussd_shortcode(self) -> str:
        return self._telecom.ussd_shortcode

    @property
    def ussd_gateways(self) -> tuple[str, ...]:
        return self._telecom.ussd_gateways

    def slot_enabled(self, slot: IntegrationSlot | str) -> bool:
        if slot == SMS_SLOT:
            return self._telecom.sms_api_endpoint is not None
        return self._integrations.slot(IntegrationSlot(slot)).enabled

    # ── Integration slots ──────────────────────────────────────

    async def call_national_id_registry(self, payload: dict[str, Any]) -> GatewayResponse:
        """Send ``payload`` to the national ID registry, if that slot is enabled."""
        return await self._call_slot(IntegrationSlot.NATIONAL_ID_REGISTRY, payload)

    async def call_court_system(self, payload: dict[str, Any]) -> GatewayResponse:
        """Send ``payload`` to the court system, if that slot is enabled."""
        return await self._call_slot(IntegrationSlot.COURT_SYSTEM, payload)

    async def _call_slot(self, slot: IntegrationSlot, payload: dict[str, Any]) -> GatewayResponse:
        integration: Integration = self._integrations.slot(slot)
        if not integration.enabled:
            logger.debug("Integration %s is disabled; no call made", slot.value)
            return GatewayResponse(slot=slot.value, outcome=IntegrationOutcome.DISABLED)
        if integration.api_endpoint is None:
            raise IntegrationError(
                slot.value, f"{slot.value} is enabled without an apiEndpoint", retryable=False
            )
        return await self._post(slot.value, integration.api_endpoint, integration.api_key, payload)

    # ── Telecom ────────────────────────────────────────────────

    async def send_sms(self, to: str, message: str) -> GatewayResponse:
        """
        Deliver an SMS through the configured provider.

        Raises:
            ValueError: ``to`` is not an E.164 phone number (checked before any call).
        """
        if not PHONE_PATTERN.match(to):
            raise ValueError("Recipient is not a valid E.164 phone number")

        endpoint = self._telecom.sms_api_endpoint
        if endpoint is None:
            logger.debug("SMS delivery is not configured; no call made")
            return GatewayResponse(slot=SMS_SLOT, outcome=IntegrationOutcome.DISABLED)

        payload = {"provider": self._telecom.sms_provider, "to": to, "message": message}
        return await self._post(SMS_SLOT, endpoint, self._telecom.sms_api_key, payload)

    # ── Transport ──────────────────────────────────────────────

    async def _post(
        self,
        slot: str,
        url: str,
        credential: SecretStr | None,
        payload: dict[str, Any],
    ) -> GatewayResponse:
        headers: dict[str, str] = {}
        if credential is not None and credential.get_secret_value():
            headers["Authorization"] = f"Bearer {credential.get_secret_value()}"

        client = await self._ensure_client()
        try:
            resp = await client.post(url, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            logger.warning("Integration %s timed out after %.1fs", slot, self.timeout)
            raise IntegrationError(slot, f"{slot} request timed out", retryable=True) from exc
        except httpx.TransportError as exc:
            logger.warning("Integration %s unreachable: %s", slot, type(exc).__name__)
            raise IntegrationError(
                slot, f"{slot} is unreachable ({type(exc).__name__})", retryable=True
            ) from exc

        status = resp.status_code
        if status == 429 or status >= 500:
            logger.warning("Integration %s answered HTTP %d", slot, status)
            raise IntegrationError(
                slot, f"{slot} answered HTTP {status}", retryable=True, status_code=status
            )
        if status >= 400:
            logger.warning("Integration %s rejected the request with HTTP %d", slot, status)
            raise IntegrationError(
                slot, f"{slot} rejected the request (HTTP {status})", retryable=False, status_code=status
            )

        data: Any = None
        if resp.content:
            try:
                data = resp.json()
            except ValueError as exc:
                raise IntegrationError(
                    slot, f"{slot} returned an unparseable response", retryable=False, status_code=status
                ) from exc

        logger.info("Integration %s completed with HTTP %d", slot, status)
        return GatewayResponse(
            slot=slot, outcome=IntegrationOutcome.COMPLETED, status_code=status, data=data
        )
