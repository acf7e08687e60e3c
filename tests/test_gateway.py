"""
Tests for the Integration Gateway.

Validates:
- Disabled slots answer DISABLED without any network attempt
- Enabled slots POST to the configured endpoint with the configured key
- Failure classification (retryable vs not)
- Credentials and payloads never reach errors or logs

External systems are replaced with ``httpx.MockTransport``.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx
import pytest

from crms.deployment.schema import Integrations, IntegrationSlot, Telecom
from crms.integrations.gateway import (
    SMS_SLOT,
    IntegrationError,
    IntegrationGateway,
    IntegrationOutcome,
)

COURT_URL = "https://courts.example.gov.sl/api/cases"
REGISTRY_URL = "https://nin.example.gov.sl/api/verify"
SMS_URL = "https://sms.example.com/v1/messages"


class RecordingTransport:
    """Counts requests and answers with a fixed handler."""

    def __init__(self, handler):
        self.requests: list[httpx.Request] = []
        self._handler = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def _integrations(court: dict[str, Any] | None = None, registry: dict[str, Any] | None = None) -> Integrations:
    return Integrations.model_validate({
        "nationalIdRegistry": registry or {"enabled": False},
        "courtSystem": court or {"enabled": False},
    })


def _telecom(endpoint: str | None = None, key: str = "sms-secret-key") -> Telecom:
    return Telecom.model_validate({
        "ussdGateways": ["Orange", "Africell"],
        "ussdShortcode": "*456#",
        "smsProvider": "Africa's Talking",
        "smsApiKey": key,
        "smsApiEndpoint": endpoint,
    })


def _ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"status": "received"})


def _gateway(recorder: RecordingTransport, integrations=None, telecom=None) -> IntegrationGateway:
    return IntegrationGateway(
        integrations or _integrations(),
        telecom or _telecom(),
        timeout=2.0,
        transport=recorder.transport,
    )


class TestDisabledSlots:
    @pytest.mark.asyncio
    async def test_disabled_court_system_makes_no_call(self):
        recorder = RecordingTransport(_ok)
        async with _gateway(recorder) as gateway:
            response = await gateway.call_court_system({"caseId": "FT-2024-001"})

        assert response.outcome is IntegrationOutcome.DISABLED
        assert response.is_disabled
        assert response.slot == "courtSystem"
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_disabled_registry_makes_no_call(self):
        recorder = RecordingTransport(_ok)
        async with _gateway(recorder) as gateway:
            response = await gateway.call_national_id_registry({"nin": "W7RGGVGI"})

        assert response.is_disabled
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_reference_deployment_is_fully_disabled(self, services):
        recorder = RecordingTransport(_ok)
        async with services.gateway(transport=recorder.transport) as gateway:
            assert (await gateway.call_court_system({})).is_disabled
            assert (await gateway.call_national_id_registry({})).is_disabled
            assert (await gateway.send_sms("+23276123456", "Case update")).is_disabled
        assert recorder.requests == []

    def test_slot_enabled(self):
        gateway = IntegrationGateway(
            _integrations(court={"enabled": True, "apiEndpoint": COURT_URL}),
            _telecom(),
        )
        assert gateway.slot_enabled(IntegrationSlot.COURT_SYSTEM)
        assert gateway.slot_enabled("courtSystem")
        assert not gateway.slot_enabled(IntegrationSlot.NATIONAL_ID_REGISTRY)
        assert not gateway.slot_enabled(SMS_SLOT)

    def test_telecom_accessors(self):
        gateway = IntegrationGateway(_integrations(), _telecom())
        assert gateway.ussd_shortcode == "*456#"
        assert gateway.ussd_gateways == ("Orange", "Africell")


class TestEnabledSlots:
    @pytest.mark.asyncio
    async def test_court_call_posts_payload_with_bearer_key(self):
        recorder = RecordingTransport(_ok)
        integrations = _integrations(
            court={"enabled": True, "apiEndpoint": COURT_URL, "apiKey": "court-secret"}
        )
        async with _gateway(recorder, integrations) as gateway:
            response = await gateway.call_court_system({"caseId": "FT-2024-001"})

        assert response.outcome is IntegrationOutcome.COMPLETED
        assert response.status_code == 200
        assert response.data == {"status": "received"}

        assert len(recorder.requests) == 1
        request = recorder.requests[0]
        assert request.method == "POST"
        assert str(request.url) == COURT_URL
        assert request.headers["authorization"] == "Bearer court-secret"
        assert json.loads(request.content) == {"caseId": "FT-2024-001"}

    @pytest.mark.asyncio
    async def test_no_key_sends_no_authorization(self):
        recorder = RecordingTransport(_ok)
        integrations = _integrations(registry={"enabled": True, "apiEndpoint": REGISTRY_URL})
        async with _gateway(recorder, integrations) as gateway:
            await gateway.call_national_id_registry({"nin": "W7RGGVGI"})

        assert "authorization" not in recorder.requests[0].headers

    @pytest.mark.asyncio
    async def test_empty_response_body(self):
        recorder = RecordingTransport(lambda request: httpx.Response(204))
        integrations = _integrations(court={"enabled": True, "apiEndpoint": COURT_URL})
        async with _gateway(recorder, integrations) as gateway:
            response = await gateway.call_court_system({"caseId": "FT-2024-001"})

        assert response.outcome is IntegrationOutcome.COMPLETED
        assert response.status_code == 204
        assert response.data is None


class TestFailureClassification:
    async def _call_court(self, handler) -> IntegrationError:
        recorder = RecordingTransport(handler)
        integrations = _integrations(
            court={"enabled": True, "apiEndpoint": COURT_URL, "apiKey": "court-secret"}
        )
        async with _gateway(recorder, integrations) as gateway:
            with pytest.raises(IntegrationError) as excinfo:
                await gateway.call_court_system({"suspect": "Jane Doe"})
        return excinfo.value

    @pytest.mark.asyncio
    async def test_client_error_not_retryable(self):
        error = await self._call_court(lambda request: httpx.Response(400, json={"error": "bad"}))
        assert error.slot == "courtSystem"
        assert error.status_code == 400
        assert not error.retryable

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [429, 500, 503])
    async def test_server_errors_retryable(self, status):
        error = await self._call_court(lambda request: httpx.Response(status))
        assert error.status_code == status
        assert error.retryable

    @pytest.mark.asyncio
    async def test_timeout_retryable(self):
        def _timeout(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        error = await self._call_court(_timeout)
        assert error.retryable
        assert error.status_code is None
        assert "timed out" in str(error)

    @pytest.mark.asyncio
    async def test_unreachable_retryable(self):
        def _refused(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        error = await self._call_court(_refused)
        assert error.retryable
        assert "unreachable" in str(error)

    @pytest.mark.asyncio
    async def test_unparseable_response_not_retryable(self):
        error = await self._call_court(lambda request: httpx.Response(200, content=b"<html>ok</html>"))
        assert not error.retryable
        assert error.status_code == 200

    @pytest.mark.asyncio
    async def test_secrets_and_payload_not_leaked(self, caplog):
        caplog.set_level(logging.DEBUG, logger="crms.integrations.gateway")
        error = await self._call_court(lambda request: httpx.Response(401, json={"echo": "court-secret"}))

        assert "court-secret" not in str(error)
        assert "Jane Doe" not in str(error)
        assert "court-secret" not in caplog.text
        assert "Jane Doe" not in caplog.text


class TestSms:
    @pytest.mark.asyncio
    async def test_sms_disabled_without_endpoint(self):
        recorder = RecordingTransport(_ok)
        async with _gateway(recorder) as gateway:
            response = await gateway.send_sms("+23276123456", "Your case FT-001 was updated")

        assert response.slot == SMS_SLOT
        assert response.is_disabled
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_invalid_phone_rejected_before_any_call(self):
        recorder = RecordingTransport(_ok)
        async with _gateway(recorder, telecom=_telecom(endpoint=SMS_URL)) as gateway:
            with pytest.raises(ValueError):
                await gateway.send_sms("076-123-456", "hello")
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_sms_delivery(self):
        recorder = RecordingTransport(_ok)
        async with _gateway(recorder, telecom=_telecom(endpoint=SMS_URL)) as gateway:
            response = await gateway.send_sms("+23276123456", "Your case FT-001 was updated")

        assert response.outcome is IntegrationOutcome.COMPLETED
        request = recorder.requests[0]
        assert str(request.url) == SMS_URL
        assert request.headers["authorization"] == "Bearer sms-secret-key"
        assert json.loads(request.content) == {
            "provider": "Africa's Talking",
            "to": "+23276123456",
            "message": "Your case FT-001 was updated",
        }
