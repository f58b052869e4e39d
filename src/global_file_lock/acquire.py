"""Acquisition loop: claim, back off, repeat.

Functions
---------
- acquire       — coroutine, suspends only the caller between attempts
- acquire_sync  — blocking twin for threads and scripts
"""
from __future__ import annotations

import logging
import os

from global_file_lock.backoff import Backoff
from global_file_lock.claim import try_claim, try_claim_async
from global_file_lock.errors import LockTimeoutError

logger = logging.getLogger(__name__)


async def acquire(identity: str | os.PathLike[str], backoff: Backoff) -> int:
    """Claim ``identity``, retrying on the ``backoff`` schedule.

    Parameters
    ----------
    identity:
        Path of the lock file.
    backoff:
        Schedule deciding how long to wait and when to give up.

    Returns
    -------
    int
        Number of claim attempts made, including the successful one.

    Raises
    ------
    LockTimeoutError
        If the schedule gives up.  No lock file has been created.
    """
    state = backoff.new_state()
    attempts = 1
    while not await try_claim_async(identity):
        try:
            await backoff.wait(state)
        except LockTimeoutError as exc:
            exc.identity = identity
            raise
        attempts += 1
    logger.debug("acquire: %s claimed after %d attempt(s)", os.fspath(identity), attempts)
    return attempts


def acquire_sync(identity: str | os.PathLike[str], backoff: Backoff) -> int:
    """Blocking version of :func:`acquire`."""
    state = backoff.new_state()
    attempts = 1
    while not try_claim(identity):
        try:
            backoff.wait_sync(state)
        except LockTimeoutError as exc:
            exc.identity = identity
            raise
        attempts += 1
    logger.debug("acquire: %s claimed after %d attempt(s)", os.fspath(identity), attempts)
    return attempts


__all__ = ["acquire", "acquire_sync"]
