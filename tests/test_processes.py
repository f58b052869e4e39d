"""Cross-process mutual exclusion.

Each child process is a separate interpreter that appends a start and an
end marker to a shared log while holding the lock.  If exclusion holds,
markers from different processes never interleave.
"""
from __future__ import annotations

import subprocess
import sys
from pathlib import Path

_CHILD = """
import os, sys, time
from global_file_lock import GlobalLock

log_path, lock_path = sys.argv[1], sys.argv[2]
lock = GlobalLock(initial_delay=1, restart_delay=1, delay_cap=20, max_over_cap_retries=1000)

def append_block():
    with open(log_path, "a", encoding="utf-8") as handle:
        handle.write(f"start {os.getpid()}\\n")
        handle.flush()
        time.sleep(0.01)
        handle.write(f"end {os.getpid()}\\n")

for _ in range(3):
    lock.run_sync(lock_path, append_block)
"""


def test_processes_never_interleave(tmp_path: Path) -> None:
    log_path = tmp_path / "shared.log"
    lock_path = tmp_path / "locks" / "shared.lock"

    children = [
        subprocess.Popen([sys.executable, "-c", _CHILD, str(log_path), str(lock_path)])
        for _ in range(4)
    ]
    for child in children:
        assert child.wait(timeout=60) == 0

    lines = log_path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 4 * 3 * 2
    for start, end in zip(lines[::2], lines[1::2]):
        assert start.startswith("start ")
        assert end.startswith("end ")
        assert start.split()[1] == end.split()[1]
    assert not lock_path.exists()
