from __future__ import annotations

from typing import Optional


class PortalError(Exception):
    """Base class for failures surfaced to the dashboard user."""


class ApiError(PortalError):
    """A request was rejected or never reached the backend."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class PaymentFailed(PortalError):
    """The checkout reported ``payment.failed``; ``description`` is the provider's text."""

    def __init__(self, description: str, code: Optional[str] = None):
        super().__init__(description)
        self.description = description
        self.code = code


class PaymentDismissed(PortalError):
    """The user closed the checkout without paying."""


class ReconciliationRequired(PortalError):
    """Money may have moved but no appointment was created."""

    def __init__(self, order_id: str, payment_id: str, reason: str):
        super().__init__(f"order {order_id} payment {payment_id}: {reason}")
        self.order_id = order_id
        self.payment_id = payment_id
        self.reason = reason
