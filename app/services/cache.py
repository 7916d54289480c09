"""
StreakFit API - Redis Cache Service.

Redis-backed lookups (token revocation) and short-lived locks.
Lazy-initializes to allow app startup without Redis; every operation
fails open when Redis is unreachable.
"""

import asyncio
import json
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Optional, Any, Dict, AsyncIterator
from datetime import datetime, timedelta

logger = logging.getLogger(__name__)

# Delete the lock key only when it still holds our token
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class CacheService:
    """
    Redis cache service.

    Uses Redis for fast key-value storage with TTL support.
    Includes circuit breaker pattern for resilience.
    """

    def __init__(self, redis_url: Optional[str]):
        """Initialize Redis cache client (lazy connection)."""
        self._redis_url = redis_url
        self._client = None
        self._available = None if redis_url else False
        self._circuit_open_until = None
        self._failure_count = 0
        self._circuit_threshold = 5
        self._circuit_timeout = 60
        self._local_locks: Dict[str, asyncio.Lock] = {}
        self._local_lock_users: Dict[str, int] = {}
        self.logger = logging.getLogger(__name__)

    def _is_circuit_open(self) -> bool:
        """Check if circuit breaker is open."""
        if self._circuit_open_until:
            if datetime.now() < self._circuit_open_until:
                return True
            # Circuit timeout expired, allow retry
            self._circuit_open_until = None
            self._failure_count = 0
        return False

    def _record_failure(self):
        """Record failure and potentially open circuit."""
        self._failure_count += 1
        if self._failure_count >= self._circuit_threshold:
            self._circuit_open_until = datetime.now() + timedelta(seconds=self._circuit_timeout)
            self.logger.warning(
                f"Circuit breaker OPEN for {self._circuit_timeout}s after {self._failure_count} failures"
            )

    def _record_success(self):
        """Reset failure counter on success."""
        if self._failure_count > 0:
            self._failure_count = 0
            self.logger.info("Circuit breaker reset after successful operation")

    @property
    def usable(self) -> bool:
        return self._available is not False and not self._is_circuit_open()

    @property
    def client(self):
        """Lazy-load Redis client with connection pooling."""
        if self._client is None and self._redis_url:
            try:
                import redis.asyncio as redis
                self._client = redis.from_url(
                    self._redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                    max_connections=50,
                    socket_connect_timeout=5,
                    socket_timeout=5,
                    retry_on_timeout=True
                )
            except Exception as e:
                self.logger.warning(f"Redis init failed: {e}")
                self._available = False
        return self._client

    async def get(self, key: str) -> Optional[Any]:
        """Get cached value by key with circuit breaker."""
        if not self.usable:
            return None
        try:
            if self.client is None:
                return None
            value = await self.client.get(key)
            self._record_success()
            if value:
                self.logger.debug(f"Cache hit: {key}")
                return json.loads(value)
            return None
        except Exception as e:
            self.logger.debug(f"Cache get error: {e}")
            self._record_failure()
            self._available = False
            return None

    async def _acquire_remote(self, key: str, token: str, ttl_ms: int) -> bool:
        """
        Try to take the Redis lock until it is free or its TTL has passed.

        Returns:
            bool: True if held in Redis, False if Redis is unusable.
        """
        deadline = datetime.now() + timedelta(milliseconds=ttl_ms)
        while self.usable and self.client is not None:
            try:
                if await self.client.set(key, token, nx=True, px=ttl_ms):
                    self._record_success()
                    return True
            except Exception as e:
                self.logger.debug(f"Cache lock error: {e}")
                self._record_failure()
                self._available = False
                return False
            if datetime.now() >= deadline:
                self.logger.warning(f"Lock {key} still held after {ttl_ms}ms, proceeding")
                return False
            await asyncio.sleep(0.05)
        return False

    async def _release_remote(self, key: str, token: str) -> None:
        try:
            await self.client.eval(_RELEASE_SCRIPT, 1, key, token)
        except Exception as e:
            self.logger.debug(f"Cache unlock error: {e}")
            self._record_failure()

    @asynccontextmanager
    async def lock(self, key: str, ttl_ms: int = 5000) -> AsyncIterator[None]:
        """
        Hold a short lock on `key`.

        Always serializes holders in this process; across processes only
        while Redis is reachable.
        """
        local = self._local_locks.setdefault(key, asyncio.Lock())
        self._local_lock_users[key] = self._local_lock_users.get(key, 0) + 1
        try:
            async with local:
                token = uuid.uuid4().hex
                held = await self._acquire_remote(f"lock:{key}", token, ttl_ms)
                try:
                    yield
                finally:
                    if held:
                        await self._release_remote(f"lock:{key}", token)
        finally:
            self._local_lock_users[key] -= 1
            if self._local_lock_users[key] == 0:
                del self._local_lock_users[key]
                del self._local_locks[key]

    async def healthcheck(self) -> bool:
        """Check Redis connection health."""
        if self._redis_url is None:
            return False
        try:
            if self.client is None:
                return False
            await self.client.ping()
            self._available = True
            self._record_success()
            return True
        except Exception:
            self._available = False
            self._record_failure()
            return False


# Global cache instance - lazy initialized
try:
    from settings import settings
    cache_service = CacheService(settings.redis_url_with_auth)
except Exception:
    # Fallback for when config isn't available
    cache_service = CacheService(None)
