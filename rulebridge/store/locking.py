"""Advisory inter-process lock held while a store is being mutated."""

from __future__ import annotations

import fcntl
import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from rulebridge.errors import RuleIOError, StoreLockedError

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT = 10.0
DEFAULT_POLL_INTERVAL = 0.05


@contextmanager
def store_lock(
    lock_path: Path,
    timeout: float = DEFAULT_LOCK_TIMEOUT,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
) -> Iterator[None]:
    """Hold an exclusive ``flock`` on ``lock_path``.

    Uses ``LOCK_EX | LOCK_NB`` in a retry loop and raises ``StoreLockedError``
    once ``timeout`` seconds have passed. The lock file is never removed.
    """
    try:
        lock_path.parent.mkdir(parents=True, exist_ok=True)
        handle = open(lock_path, "a+")
    except OSError as exc:
        raise RuleIOError(lock_path, exc) from exc

    start = time.monotonic()
    try:
        while True:
            try:
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                break
            except OSError:
                if time.monotonic() - start >= timeout:
                    raise StoreLockedError(lock_path, timeout) from None
                time.sleep(poll_interval)
        logger.debug("acquired store lock %s", lock_path)
        try:
            yield
        finally:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
            logger.debug("released store lock %s", lock_path)
    finally:
        handle.close()
