import logging
import random
import time
from contextlib import contextmanager

from pyfranklinwh.exceptions import LockTimeout

log = logging.getLogger(__name__)


def acquire_with_exponential_backoff(lock, timeout: float, initial_delay: float = 0.1, factor: int = 2,
                                     max_delay: int = 2, jitter: float = 0.1) -> bool:
    """
    Poll a session lock until it is free or timeout seconds have passed.
    The wait between polls doubles up to max_delay, plus up to jitter seconds.
    """
    deadline = time.perf_counter() + timeout
    delay = initial_delay
    while True:
        if lock.acquire(blocking=False):
            return True
        remaining = deadline - time.perf_counter()
        if remaining <= 0:
            return False
        log.debug(f"Session lock busy, retrying in {min(delay, remaining):.2f}s")
        time.sleep(min(delay, remaining) + random.uniform(0, jitter))
        delay = min(delay * factor, max_delay)


@contextmanager
def acquire_lock_with_backoff(lock, timeout, **backoff_kwargs):
    """Hold the session lock for the block, or raise LockTimeout"""
    if not acquire_with_exponential_backoff(lock, timeout, **backoff_kwargs):
        raise LockTimeout(f"Session lock not acquired within {timeout}s")
    try:
        yield
    finally:
        lock.release()
