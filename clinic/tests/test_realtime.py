import pytest
from channels.db import database_sync_to_async
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from rest_framework.authtoken.models import Token

from clinic.realtime.auth import TokenAuthMiddleware
from clinic.realtime.routing import websocket_urlpatterns
from clinic.services.push import APPOINTMENT_UPDATED, push_event

from .factories import make_patient

pytestmark = [pytest.mark.asyncio, pytest.mark.django_db(transaction=True)]


def _application():
    return TokenAuthMiddleware(URLRouter(websocket_urlpatterns))


@database_sync_to_async
def _patient_with_token():
    patient = make_patient()
    token, _ = Token.objects.get_or_create(user=patient.user)
    return patient.user, token.key


async def _connect(key):
    communicator = WebsocketCommunicator(_application(), f"/ws/notifications/?token={key}")
    connected, _ = await communicator.connect()
    assert connected
    welcome = await communicator.receive_json_from()
    assert welcome["event"] == "welcome"
    return communicator


async def test_anonymous_socket_is_closed():
    communicator = WebsocketCommunicator(_application(), "/ws/notifications/")
    connected, code = await communicator.connect()
    assert not connected
    assert code == 4001


async def test_bad_token_is_closed():
    communicator = WebsocketCommunicator(_application(), "/ws/notifications/?token=nope")
    connected, code = await communicator.connect()
    assert not connected
    assert code == 4001


async def test_pushed_event_reaches_user_socket():
    user, key = await _patient_with_token()
    communicator = await _connect(key)

    sent = await database_sync_to_async(push_event)(APPOINTMENT_UPDATED, {"id": 7, "status": "confirmed"},
                                                    user_ids=[user.id])
    assert sent == 1
    frame = await communicator.receive_json_from()
    assert frame == {"event": "appointment_updated", "data": {"id": 7, "status": "confirmed"}}
    await communicator.disconnect()


async def test_role_group_receives_event():
    user, key = await _patient_with_token()
    communicator = await _connect(key)
    await database_sync_to_async(push_event)("prescriptionCreated", {"prescriptionId": 3}, roles=["patient"])
    frame = await communicator.receive_json_from()
    assert frame["event"] == "prescriptionCreated"
    await communicator.disconnect()


async def test_events_arrive_in_send_order():
    user, key = await _patient_with_token()
    communicator = await _connect(key)
    for i in range(3):
        await database_sync_to_async(push_event)("appointment_created", {"id": i}, user_ids=[user.id])
    ids = [(await communicator.receive_json_from())["data"]["id"] for _ in range(3)]
    assert ids == [0, 1, 2]
    await communicator.disconnect()


async def test_ping_and_unsupported_frames():
    _, key = await _patient_with_token()
    communicator = await _connect(key)

    await communicator.send_json_to({"type": "ping"})
    assert (await communicator.receive_json_from())["event"] == "pong"

    await communicator.send_json_to({"type": "subscribe"})
    error = await communicator.receive_json_from()
    assert error == {"type": "error", "code": 4002, "message": "unsupported_type"}

    await communicator.send_to(text_data="not json")
    error = await communicator.receive_json_from()
    assert error["code"] == 4000
    await communicator.disconnect()
