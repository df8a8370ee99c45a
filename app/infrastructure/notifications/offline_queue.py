"""Per-recipient FIFO buffers for notifications that could not be pushed live."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from app.domain.ports import OfflineQueue, OfflineQueueError

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60
QUEUE_KEY_PREFIX = "notifications:queue:"


def queue_key(recipient_id: int) -> str:
    """Return the Redis key holding ``recipient_id``'s pending payloads."""

    return f"{QUEUE_KEY_PREFIX}{recipient_id}"


class RedisOfflineQueue(OfflineQueue):
    """Offline queue stored as a Redis list with a sliding expiry.

    Both operations run as ``MULTI``/``EXEC`` transactions, so a drain never
    observes half of a concurrent enqueue and two drains never return the same
    entry.
    """

    def __init__(
        self,
        client: aioredis.Redis,
        *,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ) -> None:
        self._redis = client
        self._ttl_seconds = ttl_seconds

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        socket_timeout: float = 5.0,
    ) -> "RedisOfflineQueue":
        client = aioredis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        return cls(client, ttl_seconds=ttl_seconds)

    async def enqueue(self, recipient_id: int, payload: str) -> None:
        key = queue_key(recipient_id)
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.rpush(key, payload)
                pipe.expire(key, self._ttl_seconds)
                await pipe.execute()
        except RedisError as exc:
            raise OfflineQueueError(
                f"Could not enqueue notification for recipient {recipient_id}"
            ) from exc
        logger.info("Queued notification for offline recipient %s", recipient_id)

    async def drain(self, recipient_id: int) -> list[str]:
        key = queue_key(recipient_id)
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.lrange(key, 0, -1)
                pipe.delete(key)
                entries, _ = await pipe.execute()
        except RedisError as exc:
            raise OfflineQueueError(
                f"Could not drain offline queue for recipient {recipient_id}"
            ) from exc
        return [_as_text(entry) for entry in entries or []]

    async def close(self) -> None:
        await self._redis.aclose()


def _as_text(entry: str | bytes) -> str:
    if isinstance(entry, bytes):
        return entry.decode("utf-8")
    return entry


@dataclass
class _Bucket:
    payloads: list[str] = field(default_factory=list)
    expires_at: float = 0.0


class InMemoryOfflineQueue(OfflineQueue):
    """Single-process offline queue used when no Redis URL is configured.

    Entries vanish with the process. A recipient's bucket expires on access,
    and ``enqueue`` also sweeps every expired bucket at most once per
    ``sweep_interval`` seconds so recipients that never return are released.
    """

    def __init__(
        self,
        *,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: float | None = None,
    ) -> None:
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._sweep_interval = (
            sweep_interval if sweep_interval is not None else min(ttl_seconds, 60)
        )
        self._next_sweep = float("-inf")
        self._buckets: dict[int, _Bucket] = {}
        self._lock = threading.Lock()

    async def enqueue(self, recipient_id: int, payload: str) -> None:
        now = self._clock()
        with self._lock:
            if now >= self._next_sweep:
                self._sweep(now)
            bucket = self._live_bucket(recipient_id, now)
            if bucket is None:
                bucket = self._buckets[recipient_id] = _Bucket()
            bucket.payloads.append(payload)
            bucket.expires_at = now + self._ttl_seconds
        logger.info("Queued notification for offline recipient %s", recipient_id)

    async def drain(self, recipient_id: int) -> list[str]:
        now = self._clock()
        with self._lock:
            bucket = self._live_bucket(recipient_id, now)
            self._buckets.pop(recipient_id, None)
        return list(bucket.payloads) if bucket is not None else []

    def pending(self, recipient_id: int) -> int:
        """Return the number of unexpired payloads waiting for ``recipient_id``."""

        with self._lock:
            bucket = self._live_bucket(recipient_id, self._clock())
            return len(bucket.payloads) if bucket is not None else 0

    def held_recipients(self) -> int:
        """Return how many recipient buckets are currently held in memory."""

        with self._lock:
            return len(self._buckets)

    def _sweep(self, now: float) -> None:
        expired = [rid for rid, bucket in self._buckets.items() if bucket.expires_at <= now]
        for rid in expired:
            del self._buckets[rid]
        self._next_sweep = now + self._sweep_interval
        if expired:
            logger.debug("Released %s expired offline queues", len(expired))

    def _live_bucket(self, recipient_id: int, now: float) -> _Bucket | None:
        bucket = self._buckets.get(recipient_id)
        if bucket is not None and bucket.expires_at <= now:
            del self._buckets[recipient_id]
            return None
        return bucket


__all__ = [
    "DEFAULT_TTL_SECONDS",
    "InMemoryOfflineQueue",
    "RedisOfflineQueue",
    "queue_key",
]
