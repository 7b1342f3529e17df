"""Tests for per-key critical sections."""

import threading
import time

from commerce.shared.locking import KeyedLock


class TestKeyedLock:
    def test_same_key_is_reentrant(self):
        locks = KeyedLock()
        with locks.hold("a"):
            with locks.hold("a", "b"):
                pass

    def test_same_key_serializes_threads(self):
        locks = KeyedLock()
        inside = []
        overlaps = []

        def worker():
            with locks.hold("p-1"):
                if inside:
                    overlaps.append(True)
                inside.append(True)
                time.sleep(0.01)
                inside.pop()

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert overlaps == []

    def test_opposite_orders_do_not_deadlock(self):
        locks = KeyedLock()
        done = []

        def worker(keys):
            for _ in range(50):
                with locks.hold(*keys):
                    pass
            done.append(keys)

        first = threading.Thread(target=worker, args=(("x", "y"),))
        second = threading.Thread(target=worker, args=(("y", "x"),))
        first.start()
        second.start()
        first.join(timeout=5)
        second.join(timeout=5)

        assert len(done) == 2

    def test_releases_on_error(self):
        locks = KeyedLock()
        try:
            with locks.hold("k"):
                raise RuntimeError("boom")
        except RuntimeError:
            pass

        acquired = []

        def worker():
            with locks.hold("k"):
                acquired.append(True)

        thread = threading.Thread(target=worker)
        thread.start()
        thread.join(timeout=5)
        assert acquired == [True]


class TestLockRegistryCleanup:
    def test_entry_dropped_after_hold(self):
        locks = KeyedLock()
        with locks.hold("p-1", "p-2"):
            assert "p-1" in locks
            assert "p-2" in locks

        assert "p-1" not in locks
        assert "p-2" not in locks

    def test_entry_kept_while_nested(self):
        locks = KeyedLock()
        with locks.hold("p-1"):
            with locks.hold("p-1"):
                pass
            assert "p-1" in locks

        assert "p-1" not in locks

    def test_entry_dropped_after_error(self):
        locks = KeyedLock()
        try:
            with locks.hold("k"):
                raise RuntimeError("boom")
        except RuntimeError:
            pass

        assert "k" not in locks

    def test_distinct_keys_do_not_accumulate(self):
        locks = KeyedLock()
        for n in range(1000):
            with locks.hold(f"missing-{n}"):
                pass

        assert not any(f"missing-{n}" in locks for n in range(1000))

    def test_entry_kept_for_waiting_thread(self):
        locks = KeyedLock()
        waiting = threading.Event()
        acquired = []

        def worker():
            waiting.set()
            with locks.hold("k"):
                acquired.append(True)

        with locks.hold("k"):
            thread = threading.Thread(target=worker)
            thread.start()
            waiting.wait(timeout=5)
            time.sleep(0.01)
        thread.join(timeout=5)

        assert acquired == [True]
        assert "k" not in locks
