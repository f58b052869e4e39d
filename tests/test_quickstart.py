"""Test that the quickstart API works for global-file-lock."""
from __future__ import annotations

from pathlib import Path

import pytest


def test_quickstart_import() -> None:
    import global_file_lock

    assert global_file_lock.__version__ == "0.1.0"


@pytest.mark.asyncio
async def test_quickstart_async(tmp_path: Path) -> None:
    from global_file_lock import get_sync_file_op

    sync_file_op = get_sync_file_op()
    result = await sync_file_op(str(tmp_path / "quick.lock"), lambda: "hello")
    assert result == "hello"


def test_quickstart_sync(tmp_path: Path) -> None:
    from global_file_lock import GlobalLock

    lock = GlobalLock()
    assert lock.run_sync(tmp_path / "quick-sync.lock", lambda: 3) == 3


def test_quickstart_repr() -> None:
    from global_file_lock import GlobalLock

    assert "GlobalLock" in repr(GlobalLock())
