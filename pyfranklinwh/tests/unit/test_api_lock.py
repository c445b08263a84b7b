import threading

import pytest

from pyfranklinwh.api_lock import acquire_lock_with_backoff, acquire_with_exponential_backoff
from pyfranklinwh.exceptions import LockTimeout


def test_acquire_free_lock():
    lock = threading.Lock()
    assert acquire_with_exponential_backoff(lock, timeout=0.5) is True
    lock.release()


def test_acquire_held_lock_times_out():
    lock = threading.Lock()
    lock.acquire()
    try:
        assert acquire_with_exponential_backoff(lock, timeout=0.2, initial_delay=0.05, jitter=0) is False
    finally:
        lock.release()


def test_context_manager_releases():
    lock = threading.RLock()
    with acquire_lock_with_backoff(lock, 0.5):
        pass
    assert lock.acquire(blocking=False)
    lock.release()


def test_context_manager_is_reentrant_for_rlock():
    lock = threading.RLock()
    with acquire_lock_with_backoff(lock, 0.5):
        with acquire_lock_with_backoff(lock, 0.5):
            pass


def test_context_manager_raises_when_held_by_other_thread():
    lock = threading.RLock()
    held = threading.Event()
    done = threading.Event()

    def holder():
        with lock:
            held.set()
            done.wait(2)

    t = threading.Thread(target=holder)
    t.start()
    held.wait(2)
    try:
        with pytest.raises(LockTimeout):
            with acquire_lock_with_backoff(lock, 0.2, initial_delay=0.05, jitter=0):
                pass
    finally:
        done.set()
        t.join()


def test_free_lock_acquired_with_zero_timeout():
    lock = threading.Lock()
    assert acquire_with_exponential_backoff(lock, timeout=0) is True
    lock.release()
