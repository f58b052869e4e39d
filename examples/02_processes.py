#!/usr/bin/env python3
"""Example: Cross-process locking — global-file-lock

Four worker processes append lines to a shared log.  Each worker writes a
start and an end marker inside the lock; the markers never interleave.

Usage:
    python examples/02_processes.py

Requirements:
    pip install global-file-lock
"""
from __future__ import annotations

import multiprocessing
import os
import tempfile
from pathlib import Path

from global_file_lock import GlobalLock, LockConfig, LockTimeoutError


def worker(log_path: str, lock_path: str) -> None:
    lock = GlobalLock(LockConfig(delay_cap=200, max_over_cap_retries=20))

    def append_block() -> None:
        with open(log_path, "a", encoding="utf-8") as handle:
            handle.write(f"start {os.getpid()}\n")
            handle.flush()
            handle.write(f"end   {os.getpid()}\n")

    for _ in range(3):
        lock.run_sync(lock_path, append_block)


def main() -> None:
    workdir = Path(tempfile.mkdtemp())
    log_path = workdir / "shared.log"
    lock_path = workdir / "shared.lock"

    processes = [
        multiprocessing.Process(target=worker, args=(str(log_path), str(lock_path)))
        for _ in range(4)
    ]
    for process in processes:
        process.start()
    for process in processes:
        process.join()

    lines = log_path.read_text(encoding="utf-8").splitlines()
    pairs_ok = all(
        lines[i].split()[1] == lines[i + 1].split()[1] for i in range(0, len(lines), 2)
    )
    print(f"Wrote {len(lines)} lines; blocks intact: {pairs_ok}")

    # A lock file nobody releases makes later callers time out.
    lock_path.write_text("left by a crashed holder\n")
    impatient = GlobalLock(delay_cap=50, max_over_cap_retries=0)
    try:
        impatient.run_sync(lock_path, lambda: None)
    except LockTimeoutError as exc:
        print(f"Timed out as expected: {exc}")


if __name__ == "__main__":
    main()
