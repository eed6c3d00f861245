"""Tests for the slot backends and the best-effort Slot wrapper."""

from dataclasses import dataclass, field
from typing import Any, Optional

import redis

from storefront.state import MemorySlotBackend, RedisSlotBackend, get_slot_backend


@dataclass
class FakeRedisClient:
    values: dict[str, Any] = field(default_factory=dict)
    expirations: dict[str, Optional[int]] = field(default_factory=dict)
    fail: bool = False

    def get(self, key):
        if self.fail:
            raise redis.ConnectionError("redis down")
        return self.values.get(key)

    def set(self, key, value, ex=None):
        if self.fail:
            raise redis.ConnectionError("redis down")
        self.values[key] = value
        self.expirations[key] = ex
        return True

    def delete(self, key):
        self.values.pop(key, None)
        return 1

    def ping(self):
        if self.fail:
            raise redis.ConnectionError("redis down")
        return True


class TestRedisSlotBackend:

    def test_write_uses_prefix_and_ttl(self):
        client = FakeRedisClient()
        backend = RedisSlotBackend(client=client, ttl_seconds=600, prefix="pizza")

        backend.write("abc:pizza_cart_v2", "[]")

        assert client.values == {"pizza:abc:pizza_cart_v2": "[]"}
        assert client.expirations["pizza:abc:pizza_cart_v2"] == 600

    def test_read_decodes_bytes(self):
        client = FakeRedisClient(values={"storefront:k": b'{"a": 1}'})
        backend = RedisSlotBackend(client=client, ttl_seconds=60)
        assert backend.read("k") == '{"a": 1}'

    def test_delete(self):
        client = FakeRedisClient(values={"storefront:k": "x"})
        backend = RedisSlotBackend(client=client, ttl_seconds=60)
        backend.delete("k")
        assert backend.read("k") is None

    def test_health_check(self):
        assert RedisSlotBackend(client=FakeRedisClient(), ttl_seconds=60).health_check()
        assert not RedisSlotBackend(client=FakeRedisClient(fail=True), ttl_seconds=60).health_check()


class TestSlot:

    def test_failed_io_is_swallowed(self):
        backend = RedisSlotBackend(client=FakeRedisClient(fail=True), ttl_seconds=60)
        slot = backend.slot("s1", "cart")

        slot.save("[]")
        assert slot.load() is None

    def test_memory_round_trip(self):
        slot = MemorySlotBackend().slot("s1", "cart")
        slot.save("[1]")
        assert slot.load() == "[1]"
        assert slot.key == "s1:cart"


class TestSlotBackendFactory:

    def test_development_uses_memory(self):
        backend = get_slot_backend()
        assert backend.provider_name == "memory"
        assert get_slot_backend() is backend
