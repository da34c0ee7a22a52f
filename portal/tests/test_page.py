import asyncio

import pytest

from portal.listing import CANCELLED, PAST, UPCOMING
from portal.notifier import APPOINTMENT_UPDATED
from portal.page import AppointmentsPage

from .fakes import TODAY, FakeCheckout, api_error, appointment, fill

pytestmark = pytest.mark.asyncio


def make_page(api, channel, checkout=None):
    page = AppointmentsPage(api, channel, checkout or FakeCheckout(), patient_id=7)
    page.form._today = lambda: TODAY
    return page


async def test_load_fetches_appointments_and_doctors(api, channel):
    api.appointments = [appointment(1), appointment(2, status="completed", days=-3)]
    page = make_page(api, channel)
    page.mount()
    await page.load()

    assert not page.loading
    assert {c[0] for c in api.calls} == {"list_appointments", "list_doctors"}
    assert ("list_appointments", 20) in api.calls
    assert ("list_doctors", 50) in api.calls
    assert [d.name for d in page.doctors] == ["Anil Mehta"]
    assert [a.id for a in page.visible] == [1]
    assert page.counts == {UPCOMING: 1, PAST: 1, CANCELLED: 0}


async def test_response_after_close_is_dropped(api, channel):
    release = asyncio.Event()
    api.appointments = [appointment(1)]
    original = api.list_appointments

    async def slow(limit=20, **params):
        await release.wait()
        return await original(limit, **params)

    api.list_appointments = slow
    page = make_page(api, channel)
    page.mount()
    pending = asyncio.ensure_future(page.load())
    await asyncio.sleep(0)
    page.close()
    release.set()
    await pending

    assert page.appointments == []
    assert channel.handler_count() == 0


async def test_load_failure_becomes_notice(api, channel):
    api.fail["list_doctors"] = api_error("Server error", status=500)
    page = make_page(api, channel)
    await page.load()
    assert page.notices[-1].message == "Server error"
    assert not page.loading


async def test_booking_refreshes_list(api, channel):
    page = make_page(api, channel)
    await page.load()
    fill(page.form)
    created = await page.submit()
    assert created is not None
    assert [a.id for a in page.appointments] == [created.id]
    assert api.count("list_appointments") == 2
    assert page.notices[-1].message == "Appointment booked successfully"


async def test_live_update_reaches_page_state(api, channel):
    api.appointments = [appointment(1), appointment(2)]
    page = make_page(api, channel)
    page.mount()
    await page.load()
    await channel.dispatch({"event": APPOINTMENT_UPDATED, "data": {
        "id": 2, "doctorId": 1, "patientId": 7, "appointmentDate": "2026-03-11",
        "appointmentTime": "10:00", "reason": "Checkup", "status": "confirmed",
    }})
    assert [a.status for a in page.appointments] == ["pending", "confirmed"]


async def test_cancel_moves_item_to_cancelled_tab(api, channel):
    api.appointments = [appointment(1)]
    page = make_page(api, channel)
    await page.load()
    await page.cancel(1, reason="travelling")
    assert page.counts[CANCELLED] == 1
    assert page.appointments[0].cancel_reason == "travelling"

    notice = page.notices[-1]
    page.dismiss(notice)
    assert notice not in page.notices


async def test_filters_apply_to_visible(api, channel):
    api.appointments = [appointment(1, payment_mode="online"), appointment(2)]
    page = make_page(api, channel)
    await page.load()
    page.update_criteria(payment="online")
    assert [a.id for a in page.visible] == [1]
