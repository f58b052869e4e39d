"""Exception hierarchy for global-file-lock.

Contention is never an error: a failed claim is retried silently.  Only the
outcomes below reach the caller.

Classes
-------
- LockError         — base class for every error raised by this package
- LockTimeoutError  — the backoff schedule gave up before the lock was claimed
- LockReleaseError  — the lock file was already gone when the holder released it
"""
from __future__ import annotations

import os


class LockError(Exception):
    """Base class for all global-file-lock errors."""


class LockTimeoutError(LockError, TimeoutError):
    """Raised when the over-cap retry budget is exhausted.

    No lock file exists for the failing acquisition when this is raised, so
    callers can tell it apart from a failure of the protected work: only the
    latter means the work ran at all.

    Parameters
    ----------
    elapsed:
        Wall-clock seconds since the acquisition started.
    attempts:
        Number of backoff delays taken before giving up.
    identity:
        The lock identity, when known.  The acquisition loop fills this in
        before re-raising.
    """

    def __init__(
        self,
        elapsed: float,
        attempts: int = 0,
        identity: str | os.PathLike[str] | None = None,
    ) -> None:
        self.elapsed = elapsed
        self.attempts = attempts
        self.identity = identity
        super().__init__(str(self))

    def __str__(self) -> str:
        # Rendered lazily: the acquisition loop attaches ``identity`` later.
        where = f" on {os.fspath(self.identity)!r}" if self.identity is not None else ""
        return (
            f"Locked for too long{where}. "
            f"( {self.elapsed * 1000:.0f} ms, {self.attempts} attempts )"
        )

    def __reduce__(self) -> tuple[object, ...]:
        return (type(self), (self.elapsed, self.attempts, self.identity))


class LockReleaseError(LockError, FileNotFoundError):
    """Raised when the lock file is missing at release time.

    This means something outside the rightful holder removed the file, so
    mutual exclusion may already have been broken.
    """

    def __init__(self, identity: str | os.PathLike[str]) -> None:
        self.identity = identity
        super().__init__(f"Lock file {os.fspath(identity)!r} vanished before release.")

    def __reduce__(self) -> tuple[object, ...]:
        return (type(self), (self.identity,))


__all__ = ["LockError", "LockReleaseError", "LockTimeoutError"]
