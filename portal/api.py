"""Async REST client for the dashboard endpoints.

Every failure, whether transport level or a non-2xx answer, is raised as
:class:`ApiError` carrying the server's message when it sent one.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from portal.config import PortalSettings
from portal.errors import ApiError
from portal.models import Appointment, BookingRequest, Doctor, PaymentConfirmation, PaymentOrder

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        if body.get("detail"):
            return str(body["detail"])
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return response.reason_phrase


class PortalAPI:
    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, settings: PortalSettings, **kwargs: Any) -> "PortalAPI":
        return cls(settings.api_url, settings.token, settings.timeout, **kwargs)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {"Accept": "application/json"}
            if self.token:
                headers["Authorization"] = f"Token {self.token}"
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        client = await self._get_client()
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError(f"Network error: {e}") from e
        if response.is_error:
            message = _error_message(response)
            logger.warning("%s %s -> %s %s", method, path, response.status_code, message)
            raise ApiError(message, status=response.status_code)
        try:
            body = response.json()
        except ValueError as e:
            logger.warning("%s %s -> unreadable body: %.200s", method, path, response.text)
            raise ApiError("Unexpected response from server", status=response.status_code) from e
        return body.get("data") if isinstance(body, dict) and "data" in body else body

    @staticmethod
    def _parse(parser, data: Any) -> Any:
        """Build a record from a payload; malformed payloads become ``ApiError``."""
        try:
            return parser(data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning("malformed payload for %s: %r", getattr(parser, "__qualname__", parser), e)
            raise ApiError(f"Malformed response: {e}") from e

    async def list_appointments(self, limit: int = 20, **params: Any) -> list[Appointment]:
        data = await self._request("GET", "/appointments", params={"limit": limit, **params})
        return self._parse(lambda items: [Appointment.from_api(item) for item in items], data)

    async def list_doctors(self, limit: int = 50, **params: Any) -> list[Doctor]:
        data = await self._request("GET", "/doctors", params={"limit": limit, **params})
        return self._parse(lambda items: [Doctor.from_api(item) for item in items], data)

    async def create_appointment(
        self, request: BookingRequest, payment: Optional[PaymentConfirmation] = None
    ) -> Appointment:
        data = await self._request("POST", "/appointments", json=request.as_payload(payment))
        return self._parse(Appointment.from_api, data)

    async def update_status(self, appointment_id: int, status: str, cancel_reason: str = "") -> Appointment:
        body = {"status": status}
        if cancel_reason:
            body["cancelReason"] = cancel_reason
        data = await self._request("PATCH", f"/appointments/{appointment_id}/status", json=body)
        return self._parse(Appointment.from_api, data)

    async def stats(self) -> dict[str, Any]:
        data = await self._request("GET", "/appointments/stats")
        if not isinstance(data, dict):
            raise ApiError("Malformed response: stats is not an object")
        return data

    async def create_payment_order(self, doctor_id: int) -> PaymentOrder:
        data = await self._request("POST", "/payment/order", json={"doctorId": doctor_id})
        return self._parse(PaymentOrder.from_api, data)

    async def verify_payment(self, confirmation: PaymentConfirmation) -> dict[str, Any]:
        return await self._request("POST", "/payment/verify", json=confirmation.as_payload())
