"""Pytest configuration and fixtures"""
import os
from decimal import Decimal
from unittest.mock import Mock

import pytest

# Set test environment variables
os.environ.setdefault("UPSTASH_REDIS_REST_URL", "https://test.upstash.io")
os.environ.setdefault("UPSTASH_REDIS_REST_TOKEN", "test_token")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from shopcart.cart import Cart, MemoryStore  # noqa: E402
from shopcart.config import CartSettings  # noqa: E402
from shopcart.realtime import EventBus  # noqa: E402


class Recorder:
    """Observer that records every event it receives."""

    def __init__(self):
        self.events = []

    def __call__(self, event, payload=None):
        self.events.append((event, payload))

    @property
    def names(self):
        return [name for name, _ in self.events]

    def clear(self):
        self.events.clear()


@pytest.fixture
def settings():
    """Settings with a 10% tax rate"""
    return CartSettings(tax_rate=Decimal("0.10"))


@pytest.fixture
def store():
    """In-memory key-value store"""
    return MemoryStore()


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def bus(recorder):
    """Event bus with a recording observer attached"""
    bus = EventBus()
    bus.subscribe_all(recorder)
    return bus


@pytest.fixture
def cart(store, settings, bus):
    """Empty default cart backed by the memory store"""
    return Cart(store, settings=settings, events=bus)


@pytest.fixture
def mock_redis():
    """Mock Upstash Redis client"""
    client = Mock()
    client.get.return_value = None
    return client


@pytest.fixture
def sample_item_data():
    """Sample persisted cart item"""
    return {
        "id": "sku1",
        "hash": "abc123",
        "name": "T-Shirt",
        "quantity": 2,
        "unit_price": "10.00",
        "options": {"size": "L", "color": "red"},
        "sub_items": [
            {"name": "Gift wrap", "unit_price": "1.50", "quantity": 1, "taxable": True,
             "options": {}, "tax_rate": None, "items": []},
        ],
        "taxable": True,
        "line_item": False,
        "attributes": {"note": "birthday"},
        "tax_rate": "0.10",
    }
