"""
Job Reporter - the single success/failure exit path of an ingestion job.
"""

import json
import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional, Union

from core.exceptions import IngestionJobError
from models.base import SyncStatus
from schemas.sync_task import SyncTask, is_successful

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 255

ERROR_FILENAME = "error.json"


class JobReporter:
    """
    Report the outcome of one job.

    Both outcomes release the database resource exactly once. On failure
    the reason is logged with the full error detail and, when a storage
    directory was given at launch, written to ``error.json`` there.
    """

    def __init__(
        self,
        group_id: Optional[str] = None,
        storage_dir: Optional[Union[str, Path]] = None,
        close: Optional[Callable[[], Awaitable[None]]] = None
    ):
        self.group_id = group_id
        self.storage_dir = Path(storage_dir) if storage_dir is not None else None
        self._close = close
        self._closed = False

    def on_close(self, close: Optional[Callable[[], Awaitable[None]]]) -> None:
        """Register the callback that releases the database connection"""
        self._close = close

    async def succeed(self, records_stored: int) -> SyncTask:
        await self._release()
        logger.info(f"Job succeeded for group[{self.group_id}] with {records_stored} events")
        return SyncTask(
            group_id=self.group_id,
            status=SyncStatus.SUCCESS,
            records_stored=records_stored
        )

    async def fail(self, reason: str, error: Optional[BaseException] = None) -> SyncTask:
        await self._release()

        detail = error.to_dict() if isinstance(error, IngestionJobError) else repr(error)
        logger.warning(
            f"Failing due to error, with reason[{reason}].",
            exc_info=error,
            extra={"error_context": detail}
        )

        if self.storage_dir is not None:
            self._write_error(reason)

        return SyncTask(group_id=self.group_id, status=SyncStatus.ERROR, reason=reason)

    async def _release(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._close is None:
            return
        try:
            await self._close()
        except Exception:
            logger.exception("Failed to close database connection")

    def _write_error(self, reason: str) -> None:
        path = self.storage_dir / ERROR_FILENAME
        try:
            path.write_text(json.dumps({"reason": reason}))
        except OSError:
            logger.exception(f"Failed to write {path}")


def exit_code(task: SyncTask) -> int:
    """Process exit code for a job outcome"""
    return EXIT_SUCCESS if is_successful(task) else EXIT_FAILURE
