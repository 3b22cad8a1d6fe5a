"""
Fetch Coordinator - concurrent download of every configured source.

Each configured source gets one task that streams its raw payload into the
blob store. The first failing task ends the fetch phase; sibling tasks are
left to finish on their own and their results are discarded.
"""

import asyncio
import logging
import os
import time
from typing import Any, AsyncIterator, Dict, List, Optional

from core.exceptions import FetchError, IngestionJobError
from ingestion.registry import SourceRegistry
from models.base import SourceKey
from schemas.job import JobDescription, LocationDescriptor

logger = logging.getLogger(__name__)


class FetchCoordinator:
    """
    Launch all configured source fetches concurrently.

    Responsibilities:
    - One fetch task per configured source key, none for absent keys
    - Save each payload stream to the blob store
    - Remove the dexcom staging file after its fetch attempt
    - Fail fast on the first error without cancelling in-flight fetches
    """

    def __init__(self, registry: SourceRegistry, blob_store):
        self.registry = registry
        self.blob_store = blob_store

    async def fetch_all(self, job: JobDescription) -> List[LocationDescriptor]:
        """
        Fetch every configured source for a job.

        Returns:
            Location descriptors in source-key order

        Raises:
            FetchError: The first fetch failure observed
        """
        tasks = {
            source: asyncio.create_task(
                self._fetch_source(job.group_id, source, job.source_config(source)),
                name=f"fetch-{source.value}"
            )
            for source in job.configured_sources()
        }

        if not tasks:
            logger.info(f"No sources configured for group[{job.group_id}]")
            return []

        done, pending = await asyncio.wait(
            tasks.values(), return_when=asyncio.FIRST_EXCEPTION
        )

        failures = [
            (source, task.exception())
            for source, task in tasks.items()
            if task in done and task.exception() is not None
        ]
        if failures:
            for other in pending:
                other.add_done_callback(_discard_result)
            for source, error in failures[1:]:
                logger.warning(f"Additional {source.value} fetch failure: {error}")
            source, error = failures[0]
            raise _as_fetch_error(source, job.group_id, error)

        return [tasks[source].result() for source in tasks]

    async def _fetch_source(
        self,
        group_id: str,
        source: SourceKey,
        config: Dict[str, Any]
    ) -> LocationDescriptor:
        try:
            adapter = self.registry.get(source)
            logger.info(f"Fetching {source.value} data for user[{config.get('username')}]")
            stream = _timed_stream(source, adapter.fetch(config))
            location = await self.blob_store.save(group_id, adapter.filename, stream)
        finally:
            if source == SourceKey.DEXCOM:
                await _remove_staging_file(config.get("file"))

        return LocationDescriptor(source=source, location=location, config=config)


async def _timed_stream(source: SourceKey, chunks: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
    """Pass chunks through, logging time to first byte and total size"""
    start = time.monotonic()
    bytes_pulled = 0
    first = True

    async for chunk in chunks:
        if first and chunk:
            first = False
            logger.info(f"First byte pulled in [{_millis_since(start)}] millis.")
        bytes_pulled += len(chunk)
        yield chunk

    logger.info(
        f"{source.value} data pulled in [{_millis_since(start)}] millis.  Size [{bytes_pulled}]"
    )


async def _remove_staging_file(path: Optional[str]) -> None:
    if not path:
        return
    try:
        await asyncio.to_thread(os.unlink, path)
    except OSError as e:
        logger.warning(f"error deleting file[{path}]: {e}")


def _as_fetch_error(source: SourceKey, group_id: str, error: BaseException) -> IngestionJobError:
    if isinstance(error, IngestionJobError):
        return error
    return FetchError(
        str(error) or f"Couldn't fetch {source.value} data",
        context={"source": source.value, "group_id": group_id},
        original_exception=error
    )


def _discard_result(task: asyncio.Task) -> None:
    """Retrieve the outcome of a fetch that finished after the job failed"""
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.warning(f"Discarded late failure from {task.get_name()}: {error}")
    else:
        logger.info(f"Discarded late result from {task.get_name()}")


def _millis_since(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
