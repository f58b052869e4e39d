"""global-file-lock — cross-process mutual exclusion through lock files.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import global_file_lock
>>> global_file_lock.__version__
'0.1.0'
"""
from __future__ import annotations

# Configuration and errors
from global_file_lock.config import LockConfig
from global_file_lock.errors import LockError, LockReleaseError, LockTimeoutError

# Protocol building blocks
from global_file_lock.backoff import Backoff, BackoffState
from global_file_lock.claim import release, try_claim
from global_file_lock.acquire import acquire, acquire_sync

# Critical-section wrapper
from global_file_lock.lock import GlobalLock, get_sync_file_op

__version__: str = "0.1.0"

__all__ = [
    "__version__",
    # Configuration and errors
    "LockConfig",
    "LockError",
    "LockReleaseError",
    "LockTimeoutError",
    # Building blocks
    "Backoff",
    "BackoffState",
    "acquire",
    "acquire_sync",
    "release",
    "try_claim",
    # Wrapper
    "GlobalLock",
    "get_sync_file_op",
]
