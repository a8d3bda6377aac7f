from __future__ import annotations

import contextlib
import fcntl
import logging
import os
import time
from typing import Iterator, Optional

from . import constants as K
from .logging import diag

log = logging.getLogger(__name__)


def lock_path_for(path: str) -> str:
    return path + K.LOCK_SUFFIX


@contextlib.contextmanager
def exclusive_lock(
    path: str,
    timeout: float = K.DEFAULT_LOCK_TIMEOUT,
    poll_interval: float = K.DEFAULT_LOCK_POLL_INTERVAL,
    logger: Optional[logging.Logger] = None,
) -> Iterator[bool]:
    """Hold an advisory flock on ``<path>.lock`` for the duration of the block.

    Yields True when the lock was obtained. When the lock file cannot be opened
    or the lock is still held elsewhere after ``timeout`` seconds, yields False
    and the block runs unlocked.
    """
    logger = logger or log
    lock_file = lock_path_for(path)
    try:
        os.makedirs(os.path.dirname(os.path.abspath(lock_file)), exist_ok=True)
        fd = os.open(lock_file, os.O_RDWR | os.O_CREAT, K.FILE_MODE)
    except OSError as e:
        diag(logger, logging.DEBUG, "Cannot open lock file %s: %s", lock_file, e)
        yield False
        return

    try:
        locked = _acquire(fd, timeout, poll_interval)
        if not locked:
            diag(logger, logging.DEBUG, "Timed out after %.1fs waiting for %s", timeout, lock_file)
        try:
            yield locked
        finally:
            if locked:
                fcntl.flock(fd, fcntl.LOCK_UN)
    finally:
        os.close(fd)


def _acquire(fd: int, timeout: float, poll_interval: float) -> bool:
    deadline = time.monotonic() + max(timeout, 0.0)
    while True:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            return True
        except BlockingIOError:
            if time.monotonic() >= deadline:
                return False
            time.sleep(poll_interval)
        except OSError as e:
            diag(log, logging.DEBUG, "flock failed: %s", e)
            return False
