#!/usr/bin/env python
"""
Rough timings for the main store operations at a few dataset sizes.

    python bench.py
"""
import asyncio
import random
import shutil
import time
from pathlib import Path

from segmon import Segmon

BENCHMARK_PATH = Path(__file__).parent / "benchmark-data"
TEST_SIZES = [100, 1_000, 10_000]
COLLECTION = "bench"


def reset_test_dir():
    shutil.rmtree(BENCHMARK_PATH, ignore_errors=True)
    BENCHMARK_PATH.mkdir()


async def run_benchmark(name, coro):
    start = time.perf_counter()
    result = await coro
    elapsed = (time.perf_counter() - start) * 1000
    print(f"  {name:<25} {elapsed:10.2f} ms")
    return result


async def benchmark():
    reset_test_dir()

    db = Segmon(
        base_path=BENCHMARK_PATH,
        segment_size=50 * 1024,
        max_items_per_segment=100,
    )

    print("\nRunning segmon benchmarks")

    for size in TEST_SIZES:
        print(f"\nDataset: {size:,} documents")
        print("=" * 40)

        payload = [
            {"name": f"User_{i}", "age": random.randint(18, 67), "active": i % 2 == 0}
            for i in range(size)
        ]

        created = await run_benchmark("bulk_create", db.bulk_create(COLLECTION, payload))
        first, middle, last = created[0], created[size // 2], created[-1]

        await run_benchmark("find (all)", db.find(COLLECTION, {}))
        await run_benchmark("find (filtered)", db.find(COLLECTION, {"active": True}))

        await run_benchmark("update (first)", db.update(COLLECTION, first["id"], {"age": 99}))
        await run_benchmark("update (middle)", db.update(COLLECTION, middle["id"], {"age": 50}))
        await run_benchmark("update (last)", db.update(COLLECTION, last["id"], {"age": 1}))

        await run_benchmark("delete (first)", db.delete(COLLECTION, first["id"]))

        shutil.rmtree(BENCHMARK_PATH / COLLECTION)

    shutil.rmtree(BENCHMARK_PATH, ignore_errors=True)


if __name__ == "__main__":
    asyncio.run(benchmark())
