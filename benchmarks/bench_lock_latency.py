"""Benchmark: uncontended and contended lock latency — p50/p99.

Measures the wall-clock cost of GlobalLock.acquire_and_run with an empty
critical section, first with a single caller and then with several
coroutines competing for the same lock file.
"""
from __future__ import annotations

import asyncio
import json
import sys
import tempfile
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from global_file_lock.lock import GlobalLock

_WARMUP: int = 50
_ITERATIONS: int = 1_000
_CONTENDERS: int = 8


def _summarise(operation: str, latencies_ms: list[float]) -> dict[str, object]:
    sorted_lats = sorted(latencies_ms)
    n = len(sorted_lats)
    total = sum(latencies_ms) / 1000
    return {
        "operation": operation,
        "iterations": n,
        "total_seconds": round(total, 4),
        "ops_per_second": round(n / total, 1) if total else 0.0,
        "avg_latency_ms": round(sum(latencies_ms) / n, 4),
        "p50_latency_ms": round(sorted_lats[n // 2], 4),
        "p99_latency_ms": round(sorted_lats[min(int(n * 0.99), n - 1)], 4),
    }


async def bench_uncontended(lock_path: Path) -> dict[str, object]:
    """Single caller: claim, empty work, release."""
    lock = GlobalLock()
    for _ in range(_WARMUP):
        await lock.acquire_and_run(lock_path, lambda: None)

    latencies_ms: list[float] = []
    for _ in range(_ITERATIONS):
        t0 = time.perf_counter()
        await lock.acquire_and_run(lock_path, lambda: None)
        latencies_ms.append((time.perf_counter() - t0) * 1000)
    return _summarise("uncontended_acquire_and_run", latencies_ms)


async def bench_contended(lock_path: Path) -> dict[str, object]:
    """Several coroutines loop on the same lock file."""
    lock = GlobalLock()
    latencies_ms: list[float] = []
    per_task = _ITERATIONS // _CONTENDERS

    async def contender() -> None:
        for _ in range(per_task):
            t0 = time.perf_counter()
            await lock.acquire_and_run(lock_path, lambda: None)
            latencies_ms.append((time.perf_counter() - t0) * 1000)

    await asyncio.gather(*(contender() for _ in range(_CONTENDERS)))
    return _summarise(f"contended_acquire_and_run_x{_CONTENDERS}", latencies_ms)


def run_benchmark() -> list[dict[str, object]]:
    """Entry point returning one result dict per scenario."""
    workdir = Path(tempfile.mkdtemp())
    results = [
        asyncio.run(bench_uncontended(workdir / "uncontended.lock")),
        asyncio.run(bench_contended(workdir / "contended.lock")),
    ]
    for result in results:
        print(
            f"[bench_lock_latency] {result['operation']}: "
            f"p50={result['p50_latency_ms']:.4f}ms  "
            f"p99={result['p99_latency_ms']:.4f}ms"
        )
    return results


if __name__ == "__main__":
    results = run_benchmark()
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)
    output_path = results_dir / "lock_latency_baseline.json"
    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(results, fh, indent=2)
    print(f"Results saved to {output_path}")
