"""Critical-section wrapper around the file lock.

A :class:`GlobalLock` runs caller-supplied work while holding the lock file
for an identity, and removes the file on every exit path.  The lock is
shared by everything that agrees on the path: other coroutines, threads,
processes, or programs written in other languages.

Classes
-------
GlobalLock
    Holds one validated ``LockConfig``.  Offers ``acquire_and_run`` for
    sync or async work, ``run_sync`` for blocking callers, and the
    ``hold`` / ``hold_sync`` context managers.

Functions
---------
get_sync_file_op
    Build a ``GlobalLock`` and return its bound ``acquire_and_run``.

Example
-------
::

    from global_file_lock import GlobalLock

    lock = GlobalLock(delay_cap=300)

    async def bump() -> int:
        return await lock.acquire_and_run("/tmp/locks/counter.lock", read_and_increment)
"""
from __future__ import annotations

import inspect
import logging
import os
import random
from contextlib import asynccontextmanager, contextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Iterator, TypeVar

from global_file_lock.acquire import acquire, acquire_sync
from global_file_lock.backoff import Backoff
from global_file_lock.claim import release, release_async
from global_file_lock.config import LockConfig
from global_file_lock.errors import LockReleaseError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GlobalLock:
    """Filesystem lock that guards caller-supplied work.

    Parameters
    ----------
    config:
        Backoff tunables.  Defaults to ``LockConfig()``.
    rng:
        Random source for the backoff growth factor.
    **overrides:
        Individual ``LockConfig`` fields, applied on top of ``config``.
        ``None`` values are ignored.

    Raises
    ------
    pydantic.ValidationError
        If the resulting configuration is invalid.
    """

    def __init__(
        self,
        config: LockConfig | None = None,
        *,
        rng: random.Random | None = None,
        **overrides: Any,
    ) -> None:
        if overrides:
            base = config.model_dump() if config is not None else None
            config = LockConfig.from_mapping(base, **overrides)
        self._config: LockConfig = config or LockConfig()
        self._backoff = Backoff(self._config, rng=rng)

    @property
    def config(self) -> LockConfig:
        """The configuration shared by every acquisition."""
        return self._config

    # ------------------------------------------------------------------
    # Context managers
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def hold(self, identity: str | os.PathLike[str]) -> AsyncIterator[None]:
        """Hold the lock for the body of an ``async with`` block.

        Raises
        ------
        LockTimeoutError
            If the lock could not be claimed.  The body does not run.
        LockReleaseError
            If the body succeeded but the lock file vanished before release.
        """
        await acquire(identity, self._backoff)
        try:
            yield
        except BaseException:
            try:
                await release_async(identity)
            except LockReleaseError as exc:
                _log_masked_release_failure(exc)
            raise
        await release_async(identity)

    @contextmanager
    def hold_sync(self, identity: str | os.PathLike[str]) -> Iterator[None]:
        """Blocking version of :meth:`hold`."""
        acquire_sync(identity, self._backoff)
        try:
            yield
        except BaseException:
            try:
                release(identity)
            except LockReleaseError as exc:
                _log_masked_release_failure(exc)
            raise
        release(identity)

    # ------------------------------------------------------------------
    # Run work under the lock
    # ------------------------------------------------------------------

    async def acquire_and_run(
        self,
        identity: str | os.PathLike[str],
        work: Callable[[], T | Awaitable[T]],
    ) -> T:
        """Run ``work`` while holding the lock for ``identity``.

        Parameters
        ----------
        identity:
            Path of the lock file.  Missing parent directories are created.
        work:
            Zero-argument callable.  If it returns an awaitable, the
            awaitable is awaited while the lock is still held.

        Returns
        -------
        T
            Whatever ``work`` produced.

        Raises
        ------
        LockTimeoutError
            If the lock could not be claimed.  ``work`` did not run.
        Exception
            Any error raised by ``work``, unchanged, after the lock file has
            been removed.
        """
        async with self.hold(identity):
            result = work()
            if inspect.isawaitable(result):
                result = await result
        return result

    __call__ = acquire_and_run

    def run_sync(self, identity: str | os.PathLike[str], work: Callable[[], T]) -> T:
        """Blocking version of :meth:`acquire_and_run` for synchronous ``work``."""
        with self.hold_sync(identity):
            return work()

    def __repr__(self) -> str:
        return f"GlobalLock(config={self._config!r})"


def _log_masked_release_failure(exc: LockReleaseError) -> None:
    logger.warning("%s; re-raising the error from the protected work instead.", exc)


def get_sync_file_op(
    config: LockConfig | None = None,
    **options: Any,
) -> Callable[[str | os.PathLike[str], Callable[[], Any]], Awaitable[Any]]:
    """Return an ``acquire_and_run`` coroutine function with its own config.

    ``options`` are ``LockConfig`` field names, e.g. ``delay_cap=300``.
    """
    return GlobalLock(config, **options).acquire_and_run


__all__ = ["GlobalLock", "get_sync_file_op"]
