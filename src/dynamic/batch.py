"""Chunked, bounded-concurrency batch execution with retry.

Runs many independent async operations against the rate-limited Notion API.
One failure never aborts the rest: every input ends up either in
``successful`` or ``failed`` of the returned ``BatchResult``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchConfig:
    """Tuning for batch execution.

    :param chunk_size: Items per chunk; chunks run strictly in sequence.
    :param max_parallel: Maximum in-flight operations within a chunk.
    :param delay_between_chunks_ms: Pause after every chunk except the last.
    :param retry_attempts: Extra passes given to failed items.
    """

    chunk_size: int = 10
    max_parallel: int = 10
    delay_between_chunks_ms: int = 100
    retry_attempts: int = 1


@dataclass
class BatchSuccess:
    """An item whose operation succeeded."""

    index: int
    input: Any
    output: Any
    attempts: int = 1


@dataclass
class BatchFailure:
    """An item whose operation failed on every attempt."""

    index: int
    input: Any
    error_message: str
    attempts: int = 1


@dataclass
class BatchResult:
    """Outcome of a batch run, covering every input index exactly once."""

    successful: list[BatchSuccess] = field(default_factory=list)
    failed: list[BatchFailure] = field(default_factory=list)
    total_duration_ms: float = 0.0

    @property
    def total(self) -> int:
        """Number of items in the batch."""
        return len(self.successful) + len(self.failed)


@dataclass
class _Outcome:
    index: int
    output: Any = None
    error: Exception | None = None


class BatchExecutor:
    """Run async operations over a sequence of inputs in rate-limited chunks."""

    def __init__(self, config: BatchConfig | None = None) -> None:
        """Initialise the executor.

        :param config: Batch tuning. Defaults to BatchConfig().
        """
        self._config = config or BatchConfig()

    @property
    def config(self) -> BatchConfig:
        """The executor's batch tuning."""
        return self._config

    async def run(
        self,
        items: Sequence[Any],
        operation: Callable[[Any], Awaitable[Any]],
        *,
        non_retryable: tuple[type[Exception], ...] = (),
    ) -> BatchResult:
        """Run an operation over every item and classify each outcome.

        :param items: Inputs, one operation call each.
        :param operation: Async callable applied to each input.
        :param non_retryable: Exception types that fail an item without retry.
        :returns: BatchResult preserving the original index of every item.
        :raises TypeError: If items is not a sequence.
        """
        if isinstance(items, str | bytes) or not isinstance(items, Sequence):
            raise TypeError(f"Batch items must be a sequence, got {type(items).__name__}")

        start = time.perf_counter()
        attempts = dict.fromkeys(range(len(items)), 0)
        outputs: dict[int, Any] = {}
        errors: dict[int, Exception] = {}

        logger.info(
            f"Processing batch: items={len(items)}, chunk_size={self._config.chunk_size}, "
            f"max_parallel={self._config.max_parallel}"
        )

        pending = list(range(len(items)))
        for attempt in range(self._config.retry_attempts + 1):
            if not pending:
                break

            if attempt > 0:
                logger.info(f"Retrying failed batch items: count={len(pending)}, attempt={attempt}")

            for outcome in await self._run_pass(items, pending, operation):
                attempts[outcome.index] += 1
                if outcome.error is None:
                    outputs[outcome.index] = outcome.output
                    errors.pop(outcome.index, None)
                else:
                    errors[outcome.index] = outcome.error

            pending = [
                index
                for index in sorted(errors)
                if not isinstance(errors[index], non_retryable)
            ]

        result = BatchResult(
            successful=[
                BatchSuccess(index=i, input=items[i], output=outputs[i], attempts=attempts[i])
                for i in sorted(outputs)
            ],
            failed=[
                BatchFailure(
                    index=i,
                    input=items[i],
                    error_message=str(errors[i]) or type(errors[i]).__name__,
                    attempts=attempts[i],
                )
                for i in sorted(errors)
            ],
            total_duration_ms=(time.perf_counter() - start) * 1000,
        )

        logger.info(
            f"Batch complete: successful={len(result.successful)}, failed={len(result.failed)}, "
            f"elapsed={result.total_duration_ms:.0f}ms"
        )
        return result

    async def _run_pass(
        self,
        items: Sequence[Any],
        indices: list[int],
        operation: Callable[[Any], Awaitable[Any]],
    ) -> list[_Outcome]:
        """Run one pass over the given indices, chunk by chunk."""
        chunk_size = self._config.chunk_size
        chunks = [indices[i : i + chunk_size] for i in range(0, len(indices), chunk_size)]
        semaphore = asyncio.Semaphore(self._config.max_parallel)
        outcomes: list[_Outcome] = []

        for number, chunk in enumerate(chunks, start=1):
            logger.debug(f"Processing chunk {number}/{len(chunks)}: size={len(chunk)}")

            outcomes.extend(
                await asyncio.gather(
                    *(self._settle(index, items[index], operation, semaphore) for index in chunk)
                )
            )

            if number < len(chunks) and self._config.delay_between_chunks_ms > 0:
                await asyncio.sleep(self._config.delay_between_chunks_ms / 1000)

        return outcomes

    async def _settle(
        self,
        index: int,
        item: Any,
        operation: Callable[[Any], Awaitable[Any]],
        semaphore: asyncio.Semaphore,
    ) -> _Outcome:
        """Run a single operation, capturing its error instead of raising."""
        async with semaphore:
            try:
                return _Outcome(index=index, output=await operation(item))
            except Exception as e:
                logger.warning(f"Batch item failed: index={index}, error={e}")
                return _Outcome(index=index, error=e)
