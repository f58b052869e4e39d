#!/usr/bin/env python3
"""Example: Quickstart — global-file-lock

Several coroutines increment a counter stored in a JSON file.  Each
read-modify-write runs inside the lock, so no increment is lost.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install global-file-lock
"""
from __future__ import annotations

import asyncio
import json
import tempfile
from pathlib import Path

import global_file_lock
from global_file_lock import get_sync_file_op


async def main() -> None:
    print(f"global-file-lock version: {global_file_lock.__version__}")

    workdir = Path(tempfile.mkdtemp())
    counter_path = workdir / "counter.json"
    lock_path = workdir / "locks" / "counter.lock"
    counter_path.write_text(json.dumps({"value": 0}))

    # Step 1: Build the lock operation with default backoff settings
    sync_file_op = get_sync_file_op()

    # Step 2: Define the critical section
    async def increment() -> int:
        data = json.loads(counter_path.read_text())
        await asyncio.sleep(0.001)  # widen the race window
        data["value"] += 1
        counter_path.write_text(json.dumps(data))
        return data["value"]

    # Step 3: Run many increments concurrently
    results = await asyncio.gather(*(sync_file_op(lock_path, increment) for _ in range(20)))

    final = json.loads(counter_path.read_text())["value"]
    print(f"Increments returned: {sorted(results)}")
    print(f"Final counter value: {final}")
    print(f"Lock file left behind: {lock_path.exists()}")


if __name__ == "__main__":
    asyncio.run(main())
