import pytest

from portal.booking import BookingForm
from portal.channel import PushChannel

from .fakes import TODAY, FakeAPI


@pytest.fixture
def api():
    return FakeAPI()


@pytest.fixture
def channel():
    return PushChannel("ws://testserver/ws/notifications/", token="tok")


@pytest.fixture
def notices():
    return []


@pytest.fixture
def form():
    return BookingForm(today=lambda: TODAY)
