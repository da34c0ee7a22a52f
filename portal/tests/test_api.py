import json
from datetime import date

import httpx
import pytest

from portal.api import PortalAPI
from portal.errors import ApiError
from portal.models import BookingRequest, PaymentConfirmation

pytestmark = pytest.mark.asyncio


def appointment_payload(**overrides):
    payload = {
        "id": 5,
        "doctor": {"id": 1, "specialization": "Cardiology", "user": {"firstName": "Anil", "lastName": "Mehta"}},
        "patient": {"id": 7},
        "appointmentDate": "2026-03-11",
        "appointmentTime": "10:00",
        "reason": "Checkup",
        "status": "pending",
        "paymentMode": "offline",
    }
    payload.update(overrides)
    return payload


def make_api(handler):
    return PortalAPI("http://testserver/api", token="tok", transport=httpx.MockTransport(handler))


async def test_requests_carry_token_and_unwrap_data():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"ok": True, "data": [appointment_payload()],
                                         "pagination": {"total": 1, "page": 1, "pageSize": 20}})

    api = make_api(handler)
    items = await api.list_appointments()
    await api.close()

    assert seen[0].headers["Authorization"] == "Token tok"
    assert seen[0].url.path == "/api/appointments"
    assert seen[0].url.params["limit"] == "20"
    assert items[0].doctor_name == "Anil Mehta"
    assert items[0].patient_id == 7
    assert items[0].date == date(2026, 3, 11)


async def test_create_appointment_sends_payment_details():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json={"ok": True, "data": appointment_payload(paymentMode="online")})

    api = make_api(handler)
    request = BookingRequest(patient_id=7, doctor_id=1, date=date(2026, 3, 11), time="10:00",
                             reason="Checkup", payment_mode="online")
    created = await api.create_appointment(request, PaymentConfirmation("order_1", "pay_1", "sig"))

    assert created.payment_mode == "online"
    assert bodies[0]["doctor"] == 1
    assert bodies[0]["paymentDetails"]["razorpay_payment_id"] == "pay_1"


async def test_error_status_raises_with_server_detail():
    api = make_api(lambda request: httpx.Response(502, json={"ok": False, "detail": "Unable to create order"}))
    with pytest.raises(ApiError) as exc:
        await api.create_payment_order(1)
    assert exc.value.status == 502
    assert exc.value.message == "Unable to create order"


async def test_error_envelope_message():
    api = make_api(lambda request: httpx.Response(
        400, json={"ok": False, "error": {"code": "bad_request", "message": "Invalid date"}}))
    with pytest.raises(ApiError) as exc:
        await api.stats()
    assert exc.value.message == "Invalid date"


async def test_transport_failure_raises_api_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ApiError) as exc:
        await make_api(handler).list_doctors()
    assert exc.value.status is None


async def test_cancel_reason_is_only_sent_when_given():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"ok": True, "data": appointment_payload(
            status="cancelled", cancelReason="travelling")})

    api = make_api(handler)
    updated = await api.update_status(5, "cancelled", cancel_reason="travelling")
    await api.update_status(5, "confirmed")
    assert bodies == [{"status": "cancelled", "cancelReason": "travelling"}, {"status": "confirmed"}]
    assert updated.cancel_reason == "travelling"


async def test_non_json_success_raises_api_error():
    api = make_api(lambda request: httpx.Response(200, text="<html>maintenance</html>",
                                                  headers={"Content-Type": "text/html"}))
    with pytest.raises(ApiError) as exc:
        await api.stats()
    assert exc.value.status == 200


async def test_malformed_record_raises_api_error():
    api = make_api(lambda request: httpx.Response(201, json={"ok": True, "data": {"id": 5}}))
    request = BookingRequest(patient_id=7, doctor_id=1, date=date(2026, 3, 11), time="10:00", reason="Checkup")
    with pytest.raises(ApiError) as exc:
        await api.create_appointment(request)
    assert "Malformed response" in exc.value.message


async def test_order_payload_that_is_not_an_object():
    api = make_api(lambda request: httpx.Response(200, json={"ok": True, "data": "order_1"}))
    with pytest.raises(ApiError):
        await api.create_payment_order(1)
