"""Atomic claim and release of a lock file.

A claim is an exclusive file creation: ``open(path, "x")`` either creates
the file or fails because it already exists, atomically with respect to
every other process on the same filesystem.  Releasing deletes the file.

Functions
---------
- try_claim        — one claim attempt, ``True`` if this call created the file
- release          — delete the lock file
- try_claim_async  — ``try_claim`` in a worker thread
- release_async    — ``release`` in a worker thread
"""
from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from global_file_lock.errors import LockReleaseError

logger = logging.getLogger(__name__)

LOCK_FILE_CONTENT: str = "Lock File.\n"


def _ensure_parent_dir(lock_path: Path) -> None:
    """Create the parent directory tree of ``lock_path`` if missing.

    Errors other than "already exists" are logged and dropped; they come
    back as a failed claim when the file itself cannot be created.
    """
    try:
        lock_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.debug("claim: could not create directory %s: %s", lock_path.parent, exc)


def try_claim(identity: str | os.PathLike[str]) -> bool:
    """Attempt to create the lock file for ``identity``.

    Parameters
    ----------
    identity:
        Path of the lock file.

    Returns
    -------
    bool
        True if this call created the file, False if it already existed or
        could not be created.  Never raises for I/O errors.
    """
    lock_path = Path(identity)
    _ensure_parent_dir(lock_path)
    try:
        handle = open(lock_path, "x", encoding="utf-8")
    except FileExistsError:
        logger.debug("claim: %s is held", lock_path)
        return False
    except OSError as exc:
        logger.debug("claim: could not create %s: %s", lock_path, exc)
        return False
    # The file exists from here on and belongs to this caller; its content
    # is informational only.
    try:
        with handle:
            handle.write(LOCK_FILE_CONTENT)
    except OSError as exc:
        logger.debug("claim: could not write placeholder to %s: %s", lock_path, exc)
    logger.debug("claim: acquired %s", lock_path)
    return True


def release(identity: str | os.PathLike[str]) -> None:
    """Delete the lock file for ``identity``.

    Raises
    ------
    LockReleaseError
        If the lock file no longer exists.
    """
    lock_path = Path(identity)
    try:
        lock_path.unlink()
    except FileNotFoundError as exc:
        raise LockReleaseError(identity) from exc
    logger.debug("claim: released %s", lock_path)


async def try_claim_async(identity: str | os.PathLike[str]) -> bool:
    """Run :func:`try_claim` without blocking the event loop.

    The worker thread cannot be interrupted.  If the caller is cancelled
    while it runs, the attempt is allowed to finish and a file it created
    is removed again before the cancellation propagates.
    """
    pending = asyncio.ensure_future(asyncio.to_thread(try_claim, identity))
    try:
        return await asyncio.shield(pending)
    except asyncio.CancelledError:
        await asyncio.wait({pending})
        if pending.result():
            logger.debug("claim: caller cancelled, undoing claim on %s", identity)
            release(identity)
        raise


async def release_async(identity: str | os.PathLike[str]) -> None:
    """Run :func:`release` without blocking the event loop.

    A cancelled caller still waits for the unlink to finish, so the lock
    file never outlives its holder.
    """
    pending = asyncio.ensure_future(asyncio.to_thread(release, identity))
    try:
        await asyncio.shield(pending)
    except asyncio.CancelledError:
        await asyncio.wait({pending})
        if pending.exception() is not None:
            logger.warning("%s; caller was cancelled during release.", pending.exception())
        raise


__all__ = [
    "LOCK_FILE_CONTENT",
    "release",
    "release_async",
    "try_claim",
    "try_claim_async",
]
