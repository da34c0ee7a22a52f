"""Third-party checkout as a single awaitable.

The payment widget reports its outcome through callbacks.  ``open_checkout``
turns the three outcomes into straight-line async code: it returns the
signed confirmation, raises :class:`PaymentFailed` with the provider's
description, or raises :class:`PaymentDismissed`.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional, Protocol

from portal.errors import PaymentDismissed, PaymentFailed
from portal.models import PaymentConfirmation, PaymentOrder

logger = logging.getLogger(__name__)


class CheckoutWidget(Protocol):
    def open(
        self,
        options: dict[str, Any],
        *,
        on_success: Callable[[dict[str, Any]], None],
        on_failure: Callable[[dict[str, Any]], None],
        on_dismiss: Callable[[], None],
    ) -> None:
        ...


def checkout_options(order: PaymentOrder, *, name: str = "Medrecords", description: str = "",
                     prefill: Optional[dict[str, str]] = None) -> dict[str, Any]:
    return {
        "key": order.key,
        "amount": order.amount,
        "currency": order.currency,
        "order_id": order.order_id,
        "name": name,
        "description": description,
        "prefill": prefill or {},
    }


async def open_checkout(widget: CheckoutWidget, order: PaymentOrder, **options: Any) -> PaymentConfirmation:
    loop = asyncio.get_running_loop()
    outcome: asyncio.Future = loop.create_future()

    def on_success(response: dict[str, Any]) -> None:
        if outcome.done():
            return
        try:
            outcome.set_result(PaymentConfirmation.from_callback(response))
        except KeyError as e:
            outcome.set_exception(PaymentFailed(f"Incomplete payment response: missing {e}"))

    def on_failure(response: dict[str, Any]) -> None:
        if outcome.done():
            return
        error = response.get("error") or {}
        description = error.get("description") or "Payment failed"
        logger.warning("checkout for order %s failed: %s", order.order_id, description)
        outcome.set_exception(PaymentFailed(description, code=error.get("code")))

    def on_dismiss() -> None:
        if not outcome.done():
            outcome.set_exception(PaymentDismissed())

    widget.open(
        checkout_options(order, **options),
        on_success=on_success,
        on_failure=on_failure,
        on_dismiss=on_dismiss,
    )
    return await outcome
