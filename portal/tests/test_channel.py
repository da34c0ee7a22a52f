import logging

from portal.channel import PushChannel


async def test_handlers_run_in_registration_order(channel):
    seen = []

    async def first(data):
        seen.append(("first", data["n"]))

    def second(data):
        seen.append(("second", data["n"]))

    channel.on("appointment_created", first)
    channel.on("appointment_created", second)
    for n in range(2):
        assert await channel.dispatch({"event": "appointment_created", "data": {"n": n}}) == 2
    assert seen == [("first", 0), ("second", 0), ("first", 1), ("second", 1)]


async def test_failing_handler_does_not_stop_the_rest(channel, caplog, monkeypatch):
    monkeypatch.setattr(logging.getLogger("portal"), "propagate", True)
    seen = []

    def broken(data):
        raise RuntimeError("boom")

    channel.on("notification", broken)
    channel.on("notification", seen.append)
    with caplog.at_level(logging.ERROR, logger="portal.channel"):
        await channel.dispatch({"event": "notification", "data": {"id": 1}})
    assert seen == [{"id": 1}]
    assert "handler for notification failed" in caplog.text


async def test_unhandled_and_error_frames(channel):
    assert await channel.dispatch({"event": "nobody_listens", "data": {}}) == 0
    assert await channel.dispatch({"type": "error", "code": 4002, "message": "unsupported_type"}) == 0


async def test_off_only_removes_given_handler(channel):
    a, b = [], []
    channel.on("x", a.append)
    channel.on("x", b.append)
    channel.off("x", a.append)
    await channel.dispatch({"event": "x", "data": {"v": 1}})
    assert a == []
    assert b == [{"v": 1}]
    channel.off("x", b.append)
    assert channel.handler_count() == 0


def test_connect_url_carries_token():
    assert PushChannel("ws://h/ws/notifications/", token="abc").connect_url == "ws://h/ws/notifications/?token=abc"
    assert PushChannel("ws://h/ws/?v=1", token="abc").connect_url == "ws://h/ws/?v=1&token=abc"
    assert PushChannel("ws://h/ws/").connect_url == "ws://h/ws/"
