import threading
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterable, Iterator

import redis

from storefront.domain.errors import ConflictError
from storefront.utils.retry import redis_retry, lock_poll
from storefront.utils.settings import (
    REDIS_URL,
    LOCK_BACKEND,
    LOCK_TIMEOUT_SECONDS,
    LOCK_TTL_SECONDS,
)
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

# Lua compare-and-delete, runs atomically inside redis,
# nothing can get in between GET and DEL
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


def product_key(product_id: int) -> str:
    return f"product:{product_id}"


def user_key(user_id: int) -> str:
    return f"user:{user_id}"


class LockService(ABC):
    """
    Named locks for the checkout critical section.

    hold_user() serializes checkouts of one user, hold() takes the product locks
    in ascending product id order, so two checkouts that share products cannot
    deadlock. A checkout always takes its user lock before any product lock.
    Locks are released in reverse order.
    """

    def __init__(self, timeout: float = LOCK_TIMEOUT_SECONDS):
        self.timeout = timeout

    @abstractmethod
    def acquire_lock(self, key: str, owner: str) -> bool:
        """Blocks up to self.timeout, returns False if the lock stayed taken."""

    @abstractmethod
    def release_lock(self, key: str, owner: str) -> bool:
        """Releases only if owner holds the lock."""

    def hold(self, product_ids: Iterable[int]):
        return self._hold([product_key(p) for p in sorted(set(product_ids))])

    def hold_user(self, user_id: int):
        return self._hold([user_key(user_id)])

    @contextmanager
    def _hold(self, keys: list[str]) -> Iterator[None]:
        owner = uuid.uuid4().hex
        acquired: list[str] = []
        try:
            for key in keys:
                if not self.acquire_lock(key, owner):
                    logger.warning(f"Timed out waiting for lock {key}")
                    raise ConflictError(
                        f"{key} is being checked out by another order, try again"
                    )
                acquired.append(key)
            yield
        finally:
            for key in reversed(acquired):
                self.release_lock(key, owner)


class InProcessLockService(LockService):
    """
    Keyed map of threading.Lock per lock name, the map itself guarded by a mutex.
    Only serializes checkouts inside one process.
    """

    def __init__(self, timeout: float = LOCK_TIMEOUT_SECONDS):
        super().__init__(timeout)
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._owners: dict[str, str] = {}

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def acquire_lock(self, key: str, owner: str) -> bool:
        lock = self._lock_for(key)
        if not lock.acquire(timeout=self.timeout):
            return False
        with self._guard:
            self._owners[key] = owner
        return True

    def release_lock(self, key: str, owner: str) -> bool:
        with self._guard:
            if self._owners.get(key) != owner:
                return False
            del self._owners[key]
            lock = self._locks[key]
        lock.release()
        return True


class RedisLockService(LockService):
    """
    - lock per name as a redis key with TTL
    - release only by the owner (Lua)
    - works across processes/instances
    """

    def __init__(
        self,
        url: str | None = None,
        client: redis.Redis | None = None,
        timeout: float = LOCK_TIMEOUT_SECONDS,
        ttl: int = LOCK_TTL_SECONDS,
    ):
        super().__init__(timeout)
        self.ttl = ttl
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def _redis_key(key: str) -> str:
        return f"{key}:lock"

    @redis_retry()
    def _try_acquire(self, key: str, owner: str) -> bool:
        # SET product:1:lock "<owner>" NX EX 30
        return bool(
            self.redis.set(
                name=self._redis_key(key),
                value=owner,
                nx=True,  # only if the key does not exist yet
                ex=self.ttl,  # expires by itself if the process dies mid checkout
            )
        )

    def acquire_lock(self, key: str, owner: str) -> bool:
        logger.debug(f"Acquire lock {self._redis_key(key)} for {owner}")
        return lock_poll(self.timeout)(self._try_acquire, key, owner)

    @redis_retry()
    def release_lock(self, key: str, owner: str) -> bool:
        name = self._redis_key(key)
        logger.debug(f"Release lock {name} for {owner}")
        res = self.redis.eval(_RELEASE_LUA, 1, name, owner)
        return bool(res)


_default_lock_service: LockService | None = None
_default_guard = threading.Lock()


def get_lock_service() -> LockService:
    """Process-wide lock service selected by LOCK_BACKEND."""
    global _default_lock_service
    with _default_guard:
        if _default_lock_service is None:
            if LOCK_BACKEND == "redis":
                _default_lock_service = RedisLockService()
            else:
                _default_lock_service = InProcessLockService()
            logger.info(f"Using {type(_default_lock_service).__name__} for checkout locks")
        return _default_lock_service
