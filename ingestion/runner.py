# ============================================================================
# File: ingestion/runner.py
# Description: Ingestion job orchestrator with a single reporting exit path
# ============================================================================
"""
Ingestion Job Runner - Orchestrates Fetch, Replace, Parse, Store.

One job per invocation:
- Fetch every configured source concurrently (fail fast)
- Delete the group's previous data (delete_first mode)
- Parse and merge all payloads, tagging records with the group
- Store the merged collection
- Report success or failure through the JobReporter
"""

from typing import Awaitable, Callable, Optional, BinaryIO, TextIO, Union
import logging

from core.config import settings
from core.database import create_engine, create_session_maker
from core.exceptions import IngestionJobError, PersistenceError
from ingestion.aggregator import StreamAggregator
from ingestion.committer import ReplaceCommitter
from ingestion.fetcher import FetchCoordinator
from ingestion.job_input import read_job_description, resolve_storage_dir
from ingestion.loaders.event_store import EventStore
from ingestion.registry import SourceRegistry, default_registry
from ingestion.reporter import JobReporter, exit_code
from ingestion.storage.blob_store import LocalBlobStore
from schemas.job import JobDescription
from schemas.sync_task import SyncTask

logger = logging.getLogger(__name__)

UNEXPECTED_REASON = "Unexpected error"


class IngestionJobRunner:
    """
    Run one ingestion job to a terminal outcome.

    State machine:
        Fetching -> Parsing -> Storing -> Done-Success
        any error -> Done-Failure

    Every failure, whichever phase raised it, goes through
    JobReporter.fail; there are no retries.
    """

    def __init__(
        self,
        fetcher: FetchCoordinator,
        aggregator: StreamAggregator,
        committer: ReplaceCommitter,
        reporter: JobReporter
    ):
        self.fetcher = fetcher
        self.aggregator = aggregator
        self.committer = committer
        self.reporter = reporter

    async def run(self, job: JobDescription) -> SyncTask:
        """
        Run the job and return its outcome.

        Never raises for job errors; the outcome carries the failure reason.
        """
        group_id = job.group_id

        try:
            # --------------------------------------------------
            # PHASE 1: FETCH
            # --------------------------------------------------
            locations = await self.fetcher.fetch_all(job)
            logger.info(f"Fetched {len(locations)} payloads for group[{group_id}]")

            # --------------------------------------------------
            # PHASE 2: CLEAR PREVIOUS DATA (delete_first mode)
            # --------------------------------------------------
            await self.committer.clear(group_id)

            # --------------------------------------------------
            # PHASE 3: PARSE & AGGREGATE
            # --------------------------------------------------
            records = await self.aggregator.collect(locations, group_id)

            # --------------------------------------------------
            # PHASE 4: STORE
            # --------------------------------------------------
            stored = await self.committer.commit(group_id, records)

        except IngestionJobError as e:
            return await self.reporter.fail(e.reason, e)

        except Exception as e:
            return await self.reporter.fail(UNEXPECTED_REASON, e)

        return await self.reporter.succeed(stored)


async def run_job(
    stream: Union[BinaryIO, TextIO],
    storage_dir: Optional[str] = None,
    *,
    registry: Optional[SourceRegistry] = None,
    blob_store=None,
    store=None,
    close: Optional[Callable[[], Awaitable[None]]] = None,
    replace_mode: Optional[str] = None
) -> int:
    """
    Entry point for one invocation: read input, run, return the exit code.

    Args:
        stream: Job description input, read to EOF
        storage_dir: Optional directory for error.json
        registry: Source adapters (default: every shipped adapter)
        blob_store: Raw payload store (default: LocalBlobStore)
        store: Persisted-record store (default: EventStore on a new session)
        close: Releases ``store``'s connection; required with ``store``
        replace_mode: delete_first or staged (default: settings.REPLACE_MODE)
    """
    reporter = JobReporter(close=close if store is not None else None)

    try:
        reporter.storage_dir = resolve_storage_dir(storage_dir)
        job = read_job_description(stream)
        reporter.group_id = job.group_id

        registry = registry or default_registry()
        registry.validate()

        if store is None:
            store, close = _open_event_store()
            reporter.on_close(close)
    except IngestionJobError as e:
        return exit_code(await reporter.fail(e.reason, e))

    blob_store = blob_store or LocalBlobStore(settings.BLOB_STORAGE_DIR)
    runner = IngestionJobRunner(
        fetcher=FetchCoordinator(registry, blob_store),
        aggregator=StreamAggregator(registry, blob_store),
        committer=ReplaceCommitter(store, replace_mode or settings.REPLACE_MODE),
        reporter=reporter
    )

    task = await runner.run(job)
    return exit_code(task)


def _open_event_store():
    """EventStore on a fresh session, plus the callback that releases it"""
    try:
        engine = create_engine()
        session = create_session_maker(engine)()
    except Exception as e:
        raise PersistenceError(
            "Failed to open database session",
            context={"operation": "CONNECT"},
            original_exception=e
        )

    async def close():
        await session.close()
        await engine.dispose()

    return EventStore(session), close
