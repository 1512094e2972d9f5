import gc
import time

import pytest
try:
    import psutil
    PSUTIL_AVAILABLE = True
except ImportError:
    PSUTIL_AVAILABLE = False

from lazy_iterator import from_iterable, merge, new_iterator


def naturals():
    """Generator that could theoretically run forever."""
    i = 0
    while True:
        yield i
        i += 1


class TestLazyIteratorPerformance:
    """Throughput and laziness of long pipelines."""

    def test_large_dataset_pipeline(self):
        dataset_size = 100_000

        start_time = time.time()
        result = list(
            from_iterable(range(dataset_size))
            .filter(lambda x: x % 10 == 0)
            .map(lambda x: x * x)
            .filter(lambda x: x % 100 == 0)
            .take(1000)
        )
        processing_time = time.time() - start_time

        assert len(result) == 1000
        assert result[0] == 0
        assert result[1] == 100
        assert processing_time < 2.0, f"Processing too slow: {processing_time:.3f}s"

        print(f"\nLazyIterator Large Dataset Performance:")
        print(f"  Dataset size: {dataset_size:,}")
        print(f"  Processing time: {processing_time:.3f}s")

    def test_infinite_sequence(self):
        start_time = time.time()
        result = list(
            from_iterable(naturals())
            .filter(lambda x: x % 1000 == 0)
            .map(lambda x: x // 1000)
            .take(100)
        )
        processing_time = time.time() - start_time

        assert result == list(range(100))
        assert processing_time < 1.0, f"Should be fast: {processing_time:.3f}s"

    def test_merge_many_sources(self):
        sources = [from_iterable(range(i, 40_000, 20)) for i in range(20)]

        start_time = time.time()
        previous = -1
        count = 0
        for item in merge(*sources):
            assert item > previous
            previous = item
            count += 1
        processing_time = time.time() - start_time

        assert count == 40_000
        print(f"\nMerge of 20 sources: {count:,} items in {processing_time:.3f}s")

    def test_chunking(self):
        dataset_size = 50_000
        chunk_size = 100

        chunks = list(
            from_iterable(range(dataset_size))
            .filter(lambda x: x % 2 == 0)
            .chunk(size=chunk_size, include_partial=True)
        )

        assert len(chunks) == (dataset_size // 2) // chunk_size
        assert all(len(chunk) == chunk_size for chunk in chunks)

    @pytest.mark.slow
    @pytest.mark.skipif(not PSUTIL_AVAILABLE, reason="psutil not available")
    def test_constant_memory_over_long_stream(self):
        """Memory stays flat while a long stream flows through a pipeline."""
        process = psutil.Process()

        def get_memory_mb():
            return process.memory_info().rss / 1024 / 1024

        counter = {"n": 0}

        def produce():
            counter["n"] += 1
            return {"id": counter["n"], "payload": "x" * 256}

        stream = (new_iterator(produce)
                  .filter(lambda r: r["id"] % 3 != 0)
                  .map(lambda r: (r["id"], len(r["payload"])))
                  .dedup()
                  .take(500_000))

        gc.collect()
        baseline_memory = get_memory_mb()
        samples = []
        for i, _ in enumerate(stream):
            if i % 50_000 == 0:
                samples.append(get_memory_mb())

        growth = max(samples) - baseline_memory
        assert growth < 50, f"Memory grew by {growth:.1f} MB"

        print(f"\nLazyIterator Memory Usage:")
        print(f"  Baseline: {baseline_memory:.1f} MB")
        print(f"  Peak sample: {max(samples):.1f} MB")
