import functools
import logging

from pyfranklinwh.api_lock import acquire_lock_with_backoff

log = logging.getLogger('pyfranklinwh')


# Lock Decorator
# Serializes calls on one session: the token and sequence counter are shared
def uses_api_lock(func):
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        with acquire_lock_with_backoff(self.session.lock, self.lock_timeout):
            return func(self, *args, **kwargs)
    return wrapper


# Mode Table Decorator
# Learns the installation's mode table on first use and keeps it for the session
def uses_mode_table(func):
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        if self._modes is None:
            log.debug(f"Learning mode table before {func.__name__}")
            self.refresh_modes()
        return func(self, *args, **kwargs)
    return wrapper
