"""Tests for cart storage backends"""
import pytest

from shopcart.cart.storage import KeyValueStore, MemoryStore, RedisStore
from shopcart.cart.service import create_cart
from shopcart.config import CartSettings


class TestRedisStore:
    """Tests for the Upstash-backed store."""

    def test_set_with_ttl(self, mock_redis):
        store = RedisStore(redis=mock_redis, ttl=60)

        store.set("cart:default", "{}")

        mock_redis.set.assert_called_once_with("cart:default", "{}", ex=60)

    def test_set_without_ttl(self, mock_redis):
        store = RedisStore(redis=mock_redis, ttl=0)

        store.set("cart:default", "{}")

        mock_redis.set.assert_called_once_with("cart:default", "{}")

    def test_get_and_delete(self, mock_redis):
        mock_redis.get.return_value = '{"items": []}'
        store = RedisStore(redis=mock_redis)

        assert store.get("cart:default") == '{"items": []}'
        store.delete("cart:default")

        mock_redis.delete.assert_called_once_with("cart:default")

    def test_missing_credentials(self, monkeypatch):
        monkeypatch.setattr("shopcart.db.UPSTASH_REDIS_REST_URL", "")
        monkeypatch.setattr("shopcart.db._redis_client", None)
        store = RedisStore()

        with pytest.raises(ValueError, match="Redis not available"):
            store.get("cart:default")

    def test_protocol(self, mock_redis):
        assert isinstance(RedisStore(redis=mock_redis), KeyValueStore)
        assert isinstance(MemoryStore(), KeyValueStore)


class TestCreateCart:
    """Tests for the Redis-backed cart factory."""

    def test_create_cart_uses_redis(self, mock_redis):
        settings = CartSettings(ttl=120)

        cart = create_cart(settings=settings, redis=mock_redis)
        cart.add("sku1", "T-Shirt", 1, "10.00")

        assert cart.instance == "default"
        mock_redis.set.assert_any_call("cart:instance", "default", ex=120)
        keys = [call.args[0] for call in mock_redis.set.call_args_list]
        assert "cart:default" in keys

    def test_create_cart_streams_events(self, mock_redis):
        cart = create_cart(instance="wishlist", settings=CartSettings(), redis=mock_redis, stream_events=True)

        cart.add("sku1", "T-Shirt", 1, "10.00")

        stream_keys = {call.args[0] for call in mock_redis.xadd.call_args_list}
        assert stream_keys == {"stream:cart:wishlist"}
