"""
Appointment submission flow.

Offline bookings are a single create request.  Online bookings run
order -> checkout -> verify -> create, and the create request is only
sent once verification succeeded.  A failure after the checkout reported
success is a reconciliation gap: the payment may have been captured
without an appointment.  It is logged, kept in ``unreconciled`` and
reported with its own message; nothing is retried or refunded here.
"""
from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from portal.api import PortalAPI
from portal.booking import BookingForm
from portal.checkout import CheckoutWidget, open_checkout
from portal.errors import ApiError, PaymentDismissed, PaymentFailed, ReconciliationRequired
from portal.models import ONLINE, Appointment, BookingRequest, Notice

logger = logging.getLogger(__name__)

ORDER_FAILED = "Could not create payment order"
BOOKED_AFTER_PAYMENT_FAILED = "Booking failed after payment"
BOOKED = "Appointment booked successfully"


class SubmissionCoordinator:
    def __init__(
        self,
        api: PortalAPI,
        form: BookingForm,
        checkout: CheckoutWidget,
        *,
        notify: Callable[[Notice], None],
        on_booked: Optional[Callable[[Appointment], Awaitable[None]]] = None,
        merchant_name: str = "Medrecords",
    ):
        self.api = api
        self.form = form
        self.checkout = checkout
        self.notify = notify
        self.on_booked = on_booked
        self.merchant_name = merchant_name
        self.submitting = False
        self.unreconciled: list[ReconciliationRequired] = []

    @property
    def can_submit(self) -> bool:
        return not self.submitting and self.form.can_submit

    async def submit(self, patient_id: int) -> Optional[Appointment]:
        """Book the form's appointment; returns it, or None when nothing was created.

        A call made while another submission is in flight is ignored.
        """
        if self.submitting or not self.form.can_submit:
            return None
        request = self.form.submission(patient_id)
        self.submitting = True
        try:
            if request.payment_mode == ONLINE:
                return await self._submit_online(request)
            return await self._submit_offline(request)
        finally:
            self.submitting = False

    async def _submit_offline(self, request: BookingRequest) -> Optional[Appointment]:
        try:
            appointment = await self.api.create_appointment(request)
        except ApiError as e:
            self.notify(Notice("error", e.message or "Failed to book appointment"))
            return None
        await self._booked(appointment)
        return appointment

    async def _submit_online(self, request: BookingRequest) -> Optional[Appointment]:
        try:
            order = await self.api.create_payment_order(request.doctor_id)
        except ApiError as e:
            logger.warning("payment order for doctor %s failed: %s", request.doctor_id, e.message)
            self.notify(Notice("error", ORDER_FAILED))
            return None

        try:
            confirmation = await open_checkout(
                self.checkout,
                order,
                name=self.merchant_name,
                description=f"Consultation on {request.date.isoformat()} at {request.time}",
            )
        except PaymentDismissed:
            return None
        except PaymentFailed as e:
            self.notify(Notice("error", e.description))
            return None

        try:
            await self.api.verify_payment(confirmation)
            appointment = await self.api.create_appointment(request, payment=confirmation)
        except ApiError as e:
            gap = ReconciliationRequired(confirmation.razorpay_order_id, confirmation.razorpay_payment_id, e.message)
            self.unreconciled.append(gap)
            logger.error(
                "booking failed after payment: order %s payment %s: %s",
                gap.order_id, gap.payment_id, gap.reason,
            )
            self.notify(Notice("error", BOOKED_AFTER_PAYMENT_FAILED,
                               meta={"orderId": gap.order_id, "paymentId": gap.payment_id}))
            return None

        await self._booked(appointment)
        return appointment

    async def _booked(self, appointment: Appointment) -> None:
        self.form.reset()
        if self.on_booked is not None:
            await self.on_booked(appointment)
        self.notify(Notice("success", BOOKED))
