import asyncio

import httpx
import pytest

from portal.api import PortalAPI
from portal.booking import Stage
from portal.submission import BOOKED, BOOKED_AFTER_PAYMENT_FAILED, ORDER_FAILED, SubmissionCoordinator

from .fakes import FakeCheckout, api_error, fill

pytestmark = pytest.mark.asyncio


def coordinator(api, form, notices, checkout=None, on_booked=None):
    return SubmissionCoordinator(api, form, checkout or FakeCheckout(), notify=notices.append, on_booked=on_booked)


async def test_offline_booking_is_one_create_call(api, form, notices):
    fill(form, payment_mode="offline")
    booked = []

    async def on_booked(appointment):
        booked.append(appointment)

    sub = coordinator(api, form, notices, on_booked=on_booked)
    appointment = await sub.submit(patient_id=7)

    assert appointment is not None
    assert [c[0] for c in api.calls] == ["create_appointment"]
    assert api.calls[0][2] is None
    assert booked == [appointment]
    assert form.stage is Stage.SELECT_DOCTOR
    assert form.doctor.doctor_id is None
    assert [n.message for n in notices] == [BOOKED]
    assert not sub.submitting


async def test_offline_failure_shows_server_message(api, form, notices):
    fill(form)
    api.fail["create_appointment"] = api_error("Doctor is unavailable")
    sub = coordinator(api, form, notices)
    assert await sub.submit(patient_id=7) is None
    assert notices[-1].level == "error"
    assert notices[-1].message == "Doctor is unavailable"
    assert form.stage is Stage.PAYMENT
    assert sub.can_submit


async def test_order_failure_never_books(api, form, notices):
    fill(form, payment_mode="online")
    api.fail["create_payment_order"] = api_error("gateway down", status=502)
    checkout = FakeCheckout()
    sub = coordinator(api, form, notices, checkout)

    assert await sub.submit(patient_id=7) is None
    assert api.count("create_appointment") == 0
    assert checkout.opened == []
    assert [n.message for n in notices] == [ORDER_FAILED]
    assert sub.can_submit


async def test_dismissed_checkout_is_silent(api, form, notices):
    fill(form, payment_mode="online")
    sub = coordinator(api, form, notices, FakeCheckout("dismiss"))

    assert await sub.submit(patient_id=7) is None
    assert api.count("create_appointment") == 0
    assert api.count("verify_payment") == 0
    assert notices == []
    assert sub.can_submit


async def test_failed_payment_shows_provider_description(api, form, notices):
    fill(form, payment_mode="online")
    sub = coordinator(api, form, notices, FakeCheckout("failure"))

    assert await sub.submit(patient_id=7) is None
    assert api.count("create_appointment") == 0
    assert [n.message for n in notices] == ["Card declined"]


async def test_online_booking_verifies_before_create(api, form, notices):
    fill(form, payment_mode="online")
    checkout = FakeCheckout()
    sub = coordinator(api, form, notices, checkout)

    appointment = await sub.submit(patient_id=7)

    assert appointment is not None
    assert [c[0] for c in api.calls] == ["create_payment_order", "verify_payment", "create_appointment"]
    confirmation = api.calls[1][1]
    assert api.calls[2][2] == confirmation
    assert checkout.opened[0]["order_id"] == "order_1"
    assert checkout.opened[0]["amount"] == 80000
    assert checkout.opened[0]["key"] == "rzp_test_key"
    assert notices[-1].message == BOOKED


async def test_verify_failure_is_recorded_for_reconciliation(api, form, notices):
    fill(form, payment_mode="online")
    api.fail["verify_payment"] = api_error("Payment verification failed")
    sub = coordinator(api, form, notices)

    assert await sub.submit(patient_id=7) is None
    assert api.count("create_appointment") == 0
    assert len(sub.unreconciled) == 1
    gap = sub.unreconciled[0]
    assert (gap.order_id, gap.payment_id) == ("order_1", "pay_1")
    assert notices[-1].message == BOOKED_AFTER_PAYMENT_FAILED
    assert notices[-1].meta == {"orderId": "order_1", "paymentId": "pay_1"}


async def test_create_failure_after_payment_is_recorded(api, form, notices):
    fill(form, payment_mode="online")
    api.fail["create_appointment"] = api_error("Slot taken")
    sub = coordinator(api, form, notices)

    assert await sub.submit(patient_id=7) is None
    assert sub.unreconciled[0].reason == "Slot taken"
    assert notices[-1].message == BOOKED_AFTER_PAYMENT_FAILED


async def test_second_submit_while_in_flight_is_ignored(api, form, notices):
    fill(form)
    release = asyncio.Event()
    original = api.create_appointment

    async def slow_create(request, payment=None):
        await release.wait()
        return await original(request, payment)

    api.create_appointment = slow_create
    sub = coordinator(api, form, notices)

    first = asyncio.ensure_future(sub.submit(patient_id=7))
    await asyncio.sleep(0)
    assert sub.submitting
    assert not sub.can_submit
    assert await sub.submit(patient_id=7) is None

    release.set()
    assert await first is not None
    assert api.count("create_appointment") == 1
    assert not sub.submitting


async def test_incomplete_form_is_not_submitted(api, form, notices):
    sub = coordinator(api, form, notices)
    assert await sub.submit(patient_id=7) is None
    assert api.calls == []


async def test_unreadable_create_response_after_payment_is_recorded(form, notices):
    def handler(request):
        if request.url.path.endswith("/payment/order"):
            return httpx.Response(200, json={"ok": True, "data": {
                "id": "order_1", "amount": 80000, "currency": "INR", "key": "rzp_test_key"}})
        if request.url.path.endswith("/payment/verify"):
            return httpx.Response(200, json={"ok": True, "data": {"verified": True}})
        return httpx.Response(201, text="Created")

    api = PortalAPI("http://testserver/api", token="tok", transport=httpx.MockTransport(handler))
    fill(form, payment_mode="online")
    sub = coordinator(api, form, notices)

    assert await sub.submit(patient_id=7) is None
    assert [(g.order_id, g.payment_id) for g in sub.unreconciled] == [("order_1", "pay_1")]
    assert notices[-1].message == BOOKED_AFTER_PAYMENT_FAILED
    assert not sub.submitting
    await api.close()
