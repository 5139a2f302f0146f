"""Tests for the user and product locks used by checkout."""

import threading
from unittest.mock import MagicMock

import pytest

from storefront.domain.errors import ConflictError
from storefront.services.lock_service import InProcessLockService, LockService, RedisLockService


class TestInProcessLockService:
    def test_hold_and_release(self):
        locks = InProcessLockService(timeout=0.1)
        with locks.hold([3, 1, 2]):
            assert not locks.acquire_lock("product:1", "someone-else")
        assert locks.acquire_lock("product:1", "someone-else")
        assert locks.release_lock("product:1", "someone-else")

    def test_contended_product_times_out(self):
        locks = InProcessLockService(timeout=0.1)
        held = threading.Event()
        done = threading.Event()

        def holder():
            with locks.hold([7]):
                held.set()
                done.wait(5)

        t = threading.Thread(target=holder)
        t.start()
        held.wait(5)
        try:
            with pytest.raises(ConflictError):
                with locks.hold([5, 7]):
                    pass
            # the lock taken before the timeout is released again
            assert locks.acquire_lock("product:5", "other-owner")
            locks.release_lock("product:5", "other-owner")
        finally:
            done.set()
            t.join()

    def test_release_by_other_owner_is_refused(self):
        locks = InProcessLockService(timeout=0.1)
        assert locks.acquire_lock("product:1", "a")
        assert not locks.release_lock("product:1", "b")
        assert locks.release_lock("product:1", "a")

    def test_duplicate_ids_lock_once(self):
        locks = InProcessLockService(timeout=0.1)
        with locks.hold([4, 4, 4]):
            pass
        assert locks.acquire_lock("product:4", "x")

    def test_user_lock_is_separate_from_products(self):
        locks = InProcessLockService(timeout=0.1)
        with locks.hold_user(2):
            assert not locks.acquire_lock("user:2", "other-owner")
            assert locks.acquire_lock("user:3", "other-owner")
            with locks.hold([2]):
                pass
        assert locks.acquire_lock("user:2", "other-owner")

    def test_user_lock_times_out(self):
        locks = InProcessLockService(timeout=0.1)
        assert locks.acquire_lock("user:2", "other-owner")
        with pytest.raises(ConflictError):
            with locks.hold_user(2):
                pass


class TestLockServiceBase:
    def test_backend_must_implement_acquire_and_release(self):
        class AcquireOnly(LockService):
            def acquire_lock(self, key, owner):
                return True

        with pytest.raises(TypeError):
            AcquireOnly()

        with pytest.raises(TypeError):
            LockService()


class TestRedisLockService:
    def test_hold_sets_and_releases_keys_in_order(self):
        client = MagicMock()
        client.set.return_value = True
        client.eval.return_value = 1
        locks = RedisLockService(client=client, timeout=0.2, ttl=30)

        with locks.hold([9, 2]):
            pass

        keys = [c.kwargs["name"] for c in client.set.call_args_list]
        assert keys == ["product:2:lock", "product:9:lock"]
        assert all(c.kwargs["nx"] and c.kwargs["ex"] == 30 for c in client.set.call_args_list)

        owner = client.set.call_args_list[0].kwargs["value"]
        released = [c.args for c in client.eval.call_args_list]
        assert [r[2] for r in released] == ["product:9:lock", "product:2:lock"]
        assert all(r[3] == owner for r in released)

    def test_user_lock_key(self):
        client = MagicMock()
        client.set.return_value = True
        client.eval.return_value = 1
        locks = RedisLockService(client=client, timeout=0.2)

        with locks.hold_user(7):
            pass

        assert client.set.call_args.kwargs["name"] == "user:7:lock"
        assert client.eval.call_args.args[2] == "user:7:lock"

    def test_taken_lock_times_out(self):
        client = MagicMock()
        client.set.return_value = None
        locks = RedisLockService(client=client, timeout=0.2)

        with pytest.raises(ConflictError):
            with locks.hold([1]):
                pass

        assert client.set.call_count > 1
        client.eval.assert_not_called()

    def test_lock_freed_while_waiting(self):
        client = MagicMock()
        client.set.side_effect = [None, None, True]
        client.eval.return_value = 1
        locks = RedisLockService(client=client, timeout=2)

        with locks.hold([1]):
            pass

        assert client.set.call_count == 3
        client.eval.assert_called_once()
