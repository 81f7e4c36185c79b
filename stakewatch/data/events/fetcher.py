"""Fetch contract logs over a block range in bounded, self-splitting batches."""

from collections.abc import Iterable

from typing import Protocol

import httpx
from rich.progress import Progress

from stakewatch.data.events.models import StakeEvent
from stakewatch.helpers.cache import RunCache
from stakewatch.helpers.constants import (
    BLOCK_TIME_SECONDS,
    DEFAULT_LOG_BATCH_SIZE,
    MIN_LOG_BATCH_SIZE,
)
from stakewatch.helpers.errors import BatchSplitError, LogQueryTooLargeError
from stakewatch.helpers.logging import get_logger
from stakewatch.helpers.progress import track_batches
from stakewatch.helpers.rpc_models import LogFilter, RawLog


logger = get_logger(__name__)


class LogReader(Protocol):
    """A log source: the JSON-RPC client or the Etherscan client."""

    async def get_logs(
        self,
        client: httpx.AsyncClient,
        log_filter: LogFilter,
        from_block: int,
        to_block: int,
    ) -> list[RawLog]: ...

    async def get_block_number(self, client: httpx.AsyncClient) -> int: ...

    async def get_block_timestamp(
        self, client: httpx.AsyncClient, block_number: int
    ) -> int: ...


class BlockIndexer(Protocol):
    """A service that maps a timestamp straight to a block number."""

    async def get_block_number_by_time(
        self, client: httpx.AsyncClient, timestamp: int, closest: str = "before"
    ) -> int | None: ...


def partition_block_range(
    from_block: int, to_block: int, batch_size: int
) -> list[tuple[int, int]]:
    """Split an inclusive block range into contiguous batches.

    Args:
        from_block: First block (inclusive)
        to_block: Last block (inclusive)
        batch_size: Maximum blocks per batch

    Returns:
        Inclusive ``(start, end)`` pairs covering the range without gaps or overlap

    Raises:
        ValueError: If the range is inverted or negative, or batch_size < 1
    """
    if from_block < 0 or to_block < 0:
        msg = f"Block numbers must be non-negative, got {from_block}-{to_block}"
        raise ValueError(msg)
    if from_block > to_block:
        msg = f"from_block {from_block} is after to_block {to_block}"
        raise ValueError(msg)
    if batch_size < 1:
        msg = f"batch_size must be at least 1, got {batch_size}"
        raise ValueError(msg)

    return [
        (start, min(start + batch_size - 1, to_block))
        for start in range(from_block, to_block + 1, batch_size)
    ]


def sort_logs(logs: Iterable[RawLog]) -> list[RawLog]:
    """Stable sort into chain order (block, then log index)."""
    return sorted(logs, key=lambda log: log.sort_key)


class LogFetcher:
    """Fetch every log matching a filter across a block range.

    Batches are queried one at a time. A batch the provider rejects as too
    large is halved and each half fetched in turn, down to
    ``min_batch_size`` blocks; past that floor the failure is a hard
    ``BatchSplitError``.
    """

    def __init__(
        self,
        reader: LogReader,
        *,
        batch_size: int = DEFAULT_LOG_BATCH_SIZE,
        min_batch_size: int = MIN_LOG_BATCH_SIZE,
        indexer: BlockIndexer | None = None,
        cache: RunCache | None = None,
        block_time: int = BLOCK_TIME_SECONDS,
    ) -> None:
        """Initialize the fetcher.

        Args:
            reader: Client that runs range queries and block lookups
            batch_size: Blocks per range query
            min_batch_size: Smallest range a too-large batch is split down to
            indexer: Optional precise timestamp-to-block service
            cache: Run cache for block timestamps
            block_time: Assumed seconds per block for extrapolation
        """
        if min_batch_size < 1:
            msg = "min_batch_size must be at least 1"
            raise ValueError(msg)
        if batch_size < min_batch_size:
            msg = f"batch_size {batch_size} is below min_batch_size {min_batch_size}"
            raise ValueError(msg)
        if block_time <= 0:
            msg = "block_time must be positive"
            raise ValueError(msg)

        self.reader = reader
        self.batch_size = batch_size
        self.min_batch_size = min_batch_size
        self.indexer = indexer
        self.cache = cache if cache is not None else RunCache()
        self.block_time = block_time

    async def get_block_timestamp(
        self, client: httpx.AsyncClient, block_number: int
    ) -> int:
        """Timestamp of a block, memoized in the run cache."""
        cached = self.cache.block_timestamps.get(block_number)
        if cached is not None:
            return cached
        timestamp = await self.reader.get_block_timestamp(client, block_number)
        self.cache.block_timestamps[block_number] = timestamp
        return timestamp

    async def _head(self, client: httpx.AsyncClient) -> tuple[int, int]:
        number = await self.reader.get_block_number(client)
        return number, await self.get_block_timestamp(client, number)

    async def estimate_block_at(
        self,
        client: httpx.AsyncClient,
        timestamp: int,
        head: tuple[int, int] | None = None,
    ) -> int:
        """Extrapolate the block produced at a timestamp from the chain head.

        The result assumes a fixed block interval, so it can be off by a few
        minutes' worth of blocks. Timestamps after the head resolve to the head.

        Args:
            client: HTTP client instance
            timestamp: Unix time to locate
            head: Known ``(number, timestamp)`` of the head block, if already fetched

        Returns:
            Estimated block number, clamped to ``[0, head]``
        """
        head_number, head_timestamp = head or await self._head(client)
        blocks_back = (head_timestamp - timestamp) // self.block_time
        return max(0, min(head_number, head_number - blocks_back))

    async def _block_at(
        self, client: httpx.AsyncClient, timestamp: int, head: tuple[int, int]
    ) -> int:
        if self.indexer is not None:
            try:
                block = await self.indexer.get_block_number_by_time(client, timestamp)
            except (httpx.HTTPError, ValueError, RuntimeError) as e:
                logger.warning(
                    "Block lookup by time failed, estimating instead: %s", e
                )
            else:
                if block is not None:
                    return min(block, head[0])
        return await self.estimate_block_at(client, timestamp, head)

    async def resolve_block_range(
        self,
        client: httpx.AsyncClient,
        start_timestamp: int,
        end_timestamp: int | None = None,
    ) -> tuple[int, int]:
        """Turn a time window into an inclusive block range.

        Args:
            client: HTTP client instance
            start_timestamp: Window start (Unix seconds)
            end_timestamp: Window end (Unix seconds); the chain head when omitted

        Returns:
            ``(from_block, to_block)``
        """
        head = await self._head(client)
        to_block = (
            head[0]
            if end_timestamp is None
            else await self._block_at(client, end_timestamp, head)
        )
        from_block = min(await self._block_at(client, start_timestamp, head), to_block)
        logger.info(
            "Resolved time window to blocks %d-%d (%d blocks)",
            from_block,
            to_block,
            to_block - from_block + 1,
        )
        return from_block, to_block

    async def _fetch_range(
        self,
        client: httpx.AsyncClient,
        log_filter: LogFilter,
        from_block: int,
        to_block: int,
    ) -> list[RawLog]:
        try:
            return await self.reader.get_logs(client, log_filter, from_block, to_block)
        except LogQueryTooLargeError as e:
            size = to_block - from_block + 1
            if size // 2 < self.min_batch_size:
                raise BatchSplitError(from_block, to_block) from e

            middle = from_block + size // 2 - 1
            logger.warning(
                "Blocks %d-%d returned too many logs, splitting into %d-%d and %d-%d",
                from_block,
                to_block,
                from_block,
                middle,
                middle + 1,
                to_block,
            )
            left = await self._fetch_range(client, log_filter, from_block, middle)
            right = await self._fetch_range(client, log_filter, middle + 1, to_block)
            return left + right

    async def fetch_logs(
        self,
        client: httpx.AsyncClient,
        log_filter: LogFilter,
        from_block: int,
        to_block: int,
        progress: Progress | None = None,
    ) -> list[RawLog]:
        """Fetch all logs matching a filter in ``[from_block, to_block]``.

        Args:
            client: HTTP client instance
            log_filter: Contract address and topics to match
            from_block: First block (inclusive)
            to_block: Last block (inclusive)
            progress: Optional progress display, advanced by blocks covered

        Returns:
            Logs in chain order

        Raises:
            BatchSplitError: If a minimum-size range is still too large
            ValueError: If the block range is invalid
        """
        batches = partition_block_range(from_block, to_block, self.batch_size)
        description = "Fetching logs"
        task_id = (
            progress.add_task(description, total=to_block - from_block + 1)
            if progress is not None
            else None
        )

        logs: list[RawLog] = []
        for batch_num, (start, end) in enumerate(batches, start=1):
            batch_logs = await self._fetch_range(client, log_filter, start, end)
            logs.extend(batch_logs)
            logger.debug(
                "Batch %d/%d (blocks %d-%d): %d logs",
                batch_num,
                len(batches),
                start,
                end,
                len(batch_logs),
            )
            if progress is not None and task_id is not None:
                track_batches(
                    progress,
                    task_id,
                    batch_num,
                    len(batches),
                    end - start + 1,
                    description,
                )

        logger.info(
            "Fetched %d logs from blocks %d-%d in %d batches",
            len(logs),
            from_block,
            to_block,
            len(batches),
        )
        return sort_logs(logs)

    async def attach_timestamps(
        self, client: httpx.AsyncClient, events: Iterable[StakeEvent]
    ) -> list[StakeEvent]:
        """Fill in block timestamps for events decoded without one.

        Events that already carry a timestamp, or have no block number, are
        returned unchanged. Each distinct block is looked up once per run.
        """
        result: list[StakeEvent] = []
        for event in events:
            if event.timestamp is not None or event.block_number is None:
                result.append(event)
                continue
            timestamp = await self.get_block_timestamp(client, event.block_number)
            result.append(event.model_copy(update={"timestamp": timestamp}))
        return result


__all__ = [
    "BlockIndexer",
    "LogFetcher",
    "LogReader",
    "partition_block_range",
    "sort_logs",
]
