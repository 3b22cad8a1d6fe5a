"""
Stream Merger/Aggregator - merge per-source parse output into one collection.

One producer task per location descriptor pushes parsed records into a
shared bounded queue; a single consumer tags each record with the job's
group and buffers it. The first producer failure cancels the remaining
producers and ends the merge without handing back a partial collection.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from core.config import settings
from core.exceptions import IngestionJobError, ParseError
from ingestion.registry import SourceRegistry
from schemas.job import LocationDescriptor

logger = logging.getLogger(__name__)


class _ProducerDone:
    """Queue marker: one producer finished (error is None on success)"""

    __slots__ = ("descriptor", "error")

    def __init__(self, descriptor: LocationDescriptor, error: Optional[BaseException] = None):
        self.descriptor = descriptor
        self.error = error


class StreamAggregator:
    """
    Merge the lazy record sequences of all fetched sources.

    Ordering: records of one source keep the adapter's order; records of
    different sources interleave in no guaranteed order.
    """

    def __init__(
        self,
        registry: SourceRegistry,
        blob_store,
        queue_size: Optional[int] = None
    ):
        self.registry = registry
        self.blob_store = blob_store
        self.queue_size = queue_size or settings.MERGE_QUEUE_SIZE

    async def collect(
        self,
        locations: List[LocationDescriptor],
        group_id: str
    ) -> List[Dict[str, Any]]:
        """
        Parse every location and materialize the merged, tagged records.

        Raises:
            UnknownSourceError: A descriptor names a source with no adapter
            ParseError: A parser failed mid-sequence
        """
        # Resolve every adapter before any parsing starts
        adapters = [(descriptor, self.registry.get(descriptor.source)) for descriptor in locations]

        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        producers = [
            asyncio.create_task(
                self._produce(descriptor, adapter, queue),
                name=f"parse-{descriptor.source.value}"
            )
            for descriptor, adapter in adapters
        ]

        results: List[Dict[str, Any]] = []
        remaining = len(producers)
        try:
            while remaining:
                item = await queue.get()
                if isinstance(item, _ProducerDone):
                    remaining -= 1
                    if item.error is not None:
                        raise _as_parse_error(item.descriptor, item.error)
                    continue
                item["groupId"] = group_id
                results.append(item)
        finally:
            await _cancel_all(producers)

        logger.info(f"Aggregated {len(results)} records from {len(locations)} sources")
        return results

    async def _produce(self, descriptor: LocationDescriptor, adapter, queue: asyncio.Queue) -> None:
        count = 0
        try:
            blob = await self.blob_store.get(descriptor.location)
            async for record in adapter.parse(blob, descriptor.config):
                await queue.put(record)
                count += 1
        except asyncio.CancelledError:
            raise
        except Exception as e:
            await queue.put(_ProducerDone(descriptor, e))
            return

        logger.info(f"Parsed {count} {descriptor.source.value} records")
        await queue.put(_ProducerDone(descriptor))


async def _cancel_all(tasks: List[asyncio.Task]) -> None:
    pending = [task for task in tasks if not task.done()]
    for task in pending:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


def _as_parse_error(descriptor: LocationDescriptor, error: BaseException) -> IngestionJobError:
    if isinstance(error, IngestionJobError):
        return error
    return ParseError(
        f"{descriptor.source.value} parser failed: {error}",
        context={"source": descriptor.source.value, "location": descriptor.location},
        original_exception=error
    )
