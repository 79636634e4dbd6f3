"""Per-event log number locking using Redis.

Log numbers are derived from a count of the event's existing logs, so two
writers racing on the same event would read the same count. Holding this lock
across "count, format, insert" serialises allocation per event while leaving
different events fully concurrent.
"""

import asyncio
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager, nullcontext
from datetime import UTC, datetime

import redis.asyncio as redis
import structlog

from incident_log.core.config import get_settings
from incident_log.core.exceptions import LockTimeoutError
from incident_log.db.redis import get_redis_or_none

logger = structlog.get_logger(__name__)


class EventLock:
    """Distributed mutex keyed by event id."""

    LOCK_PREFIX = "incident_log:lock:log_number:"
    POLL_INTERVAL = 0.05

    def __init__(self, client: redis.Redis, ttl: int = 10, wait_timeout: float = 5.0):
        self.client = client
        self.ttl = ttl
        self.wait_timeout = wait_timeout

    def _lock_key(self, event_id: str) -> str:
        return f"{self.LOCK_PREFIX}{event_id}"

    async def acquire(self, event_id: str, owner: str) -> bool:
        """Attempt to take the lock once.

        Returns:
            True if acquired, False if another owner holds it
        """
        lock_value = f"{owner}:{datetime.now(UTC).isoformat()}"
        result = await self.client.set(self._lock_key(event_id), lock_value, nx=True, ex=self.ttl)
        return bool(result)

    async def release(self, event_id: str, owner: str) -> bool:
        """Release the lock if ``owner`` still holds it.

        Returns:
            True if released, False if the lock expired or belongs to someone else
        """
        key = self._lock_key(event_id)
        current = await self.client.get(key)
        if current and current.startswith(f"{owner}:"):
            await self.client.delete(key)
            return True
        return False

    async def holder(self, event_id: str) -> str | None:
        """Return the owner currently holding the lock, or None."""
        current = await self.client.get(self._lock_key(event_id))
        if not current:
            return None
        return current.split(":", 1)[0]

    @asynccontextmanager
    async def hold(self, event_id: str, owner: str | None = None) -> AsyncGenerator[str, None]:
        """Wait for and hold the lock for the duration of the block.

        Yields:
            The owner token used for the lock

        Raises:
            LockTimeoutError: lock not acquired within ``wait_timeout`` seconds
            redis.RedisError: Redis unreachable while acquiring
        """
        owner = owner or uuid.uuid4().hex
        loop = asyncio.get_running_loop()
        started = loop.time()

        while not await self.acquire(event_id, owner):
            waited = loop.time() - started
            if waited >= self.wait_timeout:
                logger.warning("log_number_lock_timeout", event_id=event_id, waited=round(waited, 3))
                raise LockTimeoutError(event_id, waited)
            await asyncio.sleep(self.POLL_INTERVAL)

        try:
            yield owner
        finally:
            try:
                released = await self.release(event_id, owner)
            except redis.RedisError as e:
                # The block already ran; the key expires after ttl
                logger.error(
                    "log_number_lock_release_failed",
                    event_id=event_id,
                    ttl=self.ttl,
                    error=str(e),
                    error_type=type(e).__name__,
                )
            else:
                if not released:
                    logger.warning("log_number_lock_expired_before_release", event_id=event_id, ttl=self.ttl)


def get_event_lock() -> EventLock | None:
    """Build an EventLock over the shared Redis client, or None when Redis is disabled."""
    client = get_redis_or_none()
    if client is None:
        return None
    settings = get_settings()
    return EventLock(
        client,
        ttl=settings.log_number_lock_ttl_seconds,
        wait_timeout=settings.log_number_lock_wait_seconds,
    )


def event_lock_scope(lock: EventLock | None, event_id: str):
    """Async context manager: the lock's ``hold`` if configured, otherwise a no-op."""
    if lock is None:
        return nullcontext()
    return lock.hold(event_id)
