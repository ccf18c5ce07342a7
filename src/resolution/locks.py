"""
Advisory Locks

Short-lived per-key advisory locks backed by Redis, used to serialize the
read-decide-write span of an orchestration for one shipment and the
conversation get-or-create critical section.

Locking is off unless REDIS_URL is configured; NullLock keeps the same
interface and never blocks.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

import redis
from redis.exceptions import LockError

from resolution.errors import LockUnavailable

logger = logging.getLogger(__name__)

LOCK_KEY_PREFIX = "dcl:lock:"


class NullLock:
    """No-op lock used when no Redis is configured."""

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        yield


class RedisLock:
    """Per-key advisory lock using redis-py's Lock (SET NX PX + token release)."""

    def __init__(self, client: redis.Redis, ttl_seconds: float = 30.0, wait_seconds: float = 5.0):
        self.client = client
        self.ttl_seconds = ttl_seconds
        self.wait_seconds = wait_seconds

    @classmethod
    def from_url(cls, redis_url: str, ttl_seconds: float = 30.0, wait_seconds: float = 5.0) -> "RedisLock":
        return cls(redis.from_url(redis_url), ttl_seconds=ttl_seconds, wait_seconds=wait_seconds)

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        """
        Hold the lock for `key` for the duration of the block.

        Raises:
            LockUnavailable: If the lock is not acquired within wait_seconds
                or Redis cannot be reached
        """
        lock = self.client.lock(
            f"{LOCK_KEY_PREFIX}{key}",
            timeout=self.ttl_seconds,
            blocking_timeout=self.wait_seconds,
        )
        try:
            acquired = lock.acquire()
        except redis.RedisError as e:
            raise LockUnavailable(f"Lock backend unavailable for {key}: {e}") from e
        if not acquired:
            raise LockUnavailable(f"Could not acquire lock for {key} within {self.wait_seconds}s")

        try:
            yield
        finally:
            try:
                lock.release()
            except LockError:
                # expired before release; the TTL already freed it
                logger.warning(f"Lock for {key} expired before release")


def build_lock(redis_url: Optional[str], ttl_seconds: float = 30.0, wait_seconds: float = 5.0):
    """RedisLock when a URL is configured, otherwise NullLock."""
    if not redis_url:
        return NullLock()
    return RedisLock.from_url(redis_url, ttl_seconds=ttl_seconds, wait_seconds=wait_seconds)
