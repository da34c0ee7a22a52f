import pytest
from django.core.cache import cache


@pytest.fixture(autouse=True)
def _clear_cache():
    # throttle counters and the doctors list live in the cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def payment_settings(settings):
    settings.PAYMENT_ENABLE = True
    settings.RAZORPAY_KEY_ID = 'rzp_test_key'
    settings.RAZORPAY_KEY_SECRET = 'rzp_test_secret'
    settings.PAYMENT_API_URL = 'https://gateway.test/v1'
    return settings
