"""Tests for the batch executor."""

import asyncio
import unittest
from unittest.mock import AsyncMock, patch

from src.dynamic.batch import BatchConfig, BatchExecutor
from src.dynamic.exceptions import ValidationError


def _fast_config(**overrides: int) -> BatchConfig:
    settings = {
        "chunk_size": 10,
        "max_parallel": 10,
        "delay_between_chunks_ms": 0,
        "retry_attempts": 1,
    }
    settings.update(overrides)
    return BatchConfig(**settings)


class TestBatchExecutorOutcomes(unittest.IsolatedAsyncioTestCase):
    """Tests for how BatchExecutor classifies item outcomes."""

    async def test_all_items_succeed(self) -> None:
        """Test that every successful item keeps its index and output."""

        async def double(value: int) -> int:
            return value * 2

        result = await BatchExecutor(_fast_config()).run([1, 2, 3], double)

        self.assertEqual([s.index for s in result.successful], [0, 1, 2])
        self.assertEqual([s.output for s in result.successful], [2, 4, 6])
        self.assertEqual(result.failed, [])
        self.assertEqual(result.total, 3)
        self.assertGreaterEqual(result.total_duration_ms, 0)

    async def test_persistent_failure_retried_once(self) -> None:
        """Test a 10-item batch where item 3 always fails."""
        calls: dict[int, int] = {}

        async def operation(value: int) -> int:
            calls[value] = calls.get(value, 0) + 1
            if value == 3:
                raise RuntimeError("upstream rejected item")
            return value

        result = await BatchExecutor(_fast_config()).run(list(range(10)), operation)

        self.assertEqual(len(result.successful), 9)
        self.assertEqual(len(result.failed), 1)
        failure = result.failed[0]
        self.assertEqual(failure.index, 3)
        self.assertEqual(failure.input, 3)
        self.assertEqual(failure.attempts, 2)
        self.assertEqual(failure.error_message, "upstream rejected item")
        self.assertEqual(calls[3], 2)
        self.assertEqual(calls[0], 1)

    async def test_transient_failure_recovers_on_retry(self) -> None:
        """Test that an item failing once succeeds in the retry pass."""
        failed_once: set[int] = set()

        async def flaky(value: int) -> int:
            if value == 1 and value not in failed_once:
                failed_once.add(value)
                raise RuntimeError("rate limited")
            return value

        result = await BatchExecutor(_fast_config()).run([0, 1, 2], flaky)

        self.assertEqual(result.failed, [])
        recovered = next(s for s in result.successful if s.index == 1)
        self.assertEqual(recovered.attempts, 2)

    async def test_all_items_fail(self) -> None:
        """Test that an all-fail batch still reports every index exactly once."""

        async def broken(value: int) -> int:
            raise RuntimeError()

        result = await BatchExecutor(_fast_config(chunk_size=3)).run(list(range(7)), broken)

        self.assertEqual(result.successful, [])
        self.assertEqual(sorted(f.index for f in result.failed), list(range(7)))
        self.assertTrue(all(f.error_message == "RuntimeError" for f in result.failed))

    async def test_non_retryable_errors_fail_immediately(self) -> None:
        """Test that non-retryable errors are not retried."""
        operation = AsyncMock(side_effect=ValidationError("bad input"))

        result = await BatchExecutor(_fast_config()).run(
            ["a"], operation, non_retryable=(ValidationError,)
        )

        self.assertEqual(result.failed[0].attempts, 1)
        operation.assert_awaited_once_with("a")

    async def test_no_retry_when_disabled(self) -> None:
        """Test that retry_attempts=0 gives each item a single attempt."""
        operation = AsyncMock(side_effect=RuntimeError("nope"))

        result = await BatchExecutor(_fast_config(retry_attempts=0)).run([1, 2], operation)

        self.assertEqual([f.attempts for f in result.failed], [1, 1])
        self.assertEqual(operation.await_count, 2)

    async def test_every_index_covered_exactly_once(self) -> None:
        """Test that successes and failures partition the input indices."""

        async def odd_fails(value: int) -> int:
            if value % 2:
                raise RuntimeError("odd")
            return value

        for size in (0, 1, 9, 10, 11, 25):
            with self.subTest(size=size):
                result = await BatchExecutor(_fast_config(chunk_size=4)).run(
                    list(range(size)), odd_fails
                )
                indices = [s.index for s in result.successful] + [f.index for f in result.failed]
                self.assertEqual(sorted(indices), list(range(size)))

    async def test_non_sequence_raises_type_error(self) -> None:
        """Test that a non-sequence input is a programmer error."""
        operation = AsyncMock()

        with self.assertRaises(TypeError):
            await BatchExecutor().run("abc", operation)
        with self.assertRaises(TypeError):
            await BatchExecutor().run({1, 2}, operation)  # type: ignore[arg-type]


class TestBatchExecutorScheduling(unittest.IsolatedAsyncioTestCase):
    """Tests for chunking, concurrency and pacing."""

    async def test_concurrency_never_exceeds_max_parallel(self) -> None:
        """Test that in-flight operations stay within max_parallel."""
        in_flight = 0
        peak = 0

        async def tracked(value: int) -> int:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return value

        config = _fast_config(chunk_size=10, max_parallel=3)
        result = await BatchExecutor(config).run(list(range(10)), tracked)

        self.assertEqual(len(result.successful), 10)
        self.assertLessEqual(peak, 3)
        self.assertGreater(peak, 1)

    async def test_chunks_run_in_sequence(self) -> None:
        """Test that a chunk finishes before the next one starts."""
        order: list[str] = []

        async def recorded(value: int) -> int:
            order.append(f"start-{value}")
            await asyncio.sleep(0.005 * (3 - value % 3))
            order.append(f"end-{value}")
            return value

        await BatchExecutor(_fast_config(chunk_size=3)).run(list(range(6)), recorded)

        last_end_first_chunk = max(order.index(f"end-{i}") for i in range(3))
        first_start_second_chunk = min(order.index(f"start-{i}") for i in range(3, 6))
        self.assertLess(last_end_first_chunk, first_start_second_chunk)

    async def test_delay_only_between_chunks(self) -> None:
        """Test that the pause runs between chunks and not after the last."""
        operation = AsyncMock(side_effect=lambda value: value)
        config = _fast_config(chunk_size=2, delay_between_chunks_ms=250)

        with patch("src.dynamic.batch.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await BatchExecutor(config).run([1, 2, 3, 4, 5], operation)

        self.assertEqual(mock_sleep.await_count, 2)
        mock_sleep.assert_awaited_with(0.25)


if __name__ == "__main__":
    unittest.main()
