"""
Persisted Visitor-State Slots

A slot is one durable key-value entry holding a JSON document. The cart and
the order selection each own one slot per visitor session, so a visitor who
comes back later finds their cart and service choice as they left them.

Implementations:
    - MemorySlotBackend: process-local dict (development, tests)
    - RedisSlotBackend: Redis strings with a TTL (staging, production)

Writes are best-effort: a slot that cannot be written is logged and
skipped, the in-memory state stays authoritative for the running session.
"""

import logging
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Optional

import redis

from storefront.core.config import get_settings

logger = logging.getLogger(__name__)

CART_SLOT = "pizza_cart_v2"
SELECTION_SLOT = "pizza_order_selection_v1"


class BaseSlotBackend(ABC):
    """Interface contract for slot storage."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        """Return the raw stored value, or None when absent."""
        pass

    @abstractmethod
    def write(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    @abstractmethod
    def health_check(self) -> bool:
        pass

    def slot(self, session_id: str, name: str) -> "Slot":
        return Slot(self, f"{session_id}:{name}")


class Slot:
    """A single named entry of a backend, bound to one visitor session."""

    def __init__(self, backend: BaseSlotBackend, key: str):
        self.backend = backend
        self.key = key

    def load(self) -> Optional[str]:
        try:
            return self.backend.read(self.key)
        except Exception as e:
            logger.warning(f"Slot read failed for {self.key}: {e}")
            return None

    def save(self, value: str) -> None:
        try:
            self.backend.write(self.key, value)
        except Exception as e:
            logger.warning(f"Slot write failed for {self.key}: {e}")

    def __repr__(self) -> str:
        return f"<Slot {self.key} ({self.backend.provider_name})>"


class MemorySlotBackend(BaseSlotBackend):
    """Dict-backed slots. State is lost when the process exits."""

    def __init__(self):
        self._data: dict[str, str] = {}

    @property
    def provider_name(self) -> str:
        return "memory"

    def read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def write(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def health_check(self) -> bool:
        return True


class RedisSlotBackend(BaseSlotBackend):
    """
    Redis-backed slots.

    Every write refreshes the key's TTL, so a visitor's state expires only
    after ``ttl_seconds`` without any cart or selection change.
    """

    def __init__(
        self,
        client: Optional[redis.Redis] = None,
        ttl_seconds: Optional[int] = None,
        prefix: str = "storefront",
    ):
        settings = get_settings()
        self._client = client or redis.Redis.from_url(
            settings.redis_url,
            socket_timeout=2,
            decode_responses=True,
        )
        self._ttl = ttl_seconds if ttl_seconds is not None else settings.state_ttl_seconds
        self._prefix = prefix

        logger.info(f"RedisSlotBackend initialized (ttl={self._ttl}s)")

    @property
    def provider_name(self) -> str:
        return "redis"

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    def read(self, key: str) -> Optional[str]:
        value = self._client.get(self._key(key))
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    def write(self, key: str, value: str) -> None:
        self._client.set(self._key(key), value, ex=self._ttl)

    def delete(self, key: str) -> None:
        self._client.delete(self._key(key))

    def health_check(self) -> bool:
        try:
            return bool(self._client.ping())
        except redis.RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return False


@lru_cache()
def get_slot_backend() -> BaseSlotBackend:
    """
    Get the configured slot backend.

    Development keeps visitor state in memory; staging and production
    persist it in Redis.
    """
    settings = get_settings()

    if settings.is_development:
        logger.info("Slot Backend: Using MemorySlotBackend (development mode)")
        return MemorySlotBackend()

    logger.info(f"Slot Backend: Using RedisSlotBackend ({settings.env_mode.value} mode)")
    return RedisSlotBackend()


def reset_slot_backend() -> None:
    """Clear the cached slot backend instance."""
    get_slot_backend.cache_clear()
    logger.debug("Slot backend cache cleared")
