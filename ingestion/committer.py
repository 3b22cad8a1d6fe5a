"""
Replace Committer - a group's new record set replaces its old one.
"""

from typing import Any, Dict, List
import logging

from core.exceptions import EmptyResultError

logger = logging.getLogger(__name__)

DELETE_FIRST = "delete_first"
STAGED = "staged"


class ReplaceCommitter:
    """
    Apply replace semantics against the persisted-record store.

    Modes:
    - delete_first: clear() runs before parsing and commit() only stores.
      An empty or failed parse leaves the group with no data.
    - staged: nothing is deleted until a non-empty collection is ready;
      commit() then deletes and stores in one transaction.
    """

    def __init__(self, store, mode: str = DELETE_FIRST):
        if mode not in (DELETE_FIRST, STAGED):
            raise ValueError(f"Unknown replace mode: {mode}")
        self.store = store
        self.mode = mode

    @property
    def deletes_before_parse(self) -> bool:
        return self.mode == DELETE_FIRST

    async def clear(self, group_id: str) -> None:
        """Delete the group's persisted records (delete_first mode only)"""
        if self.deletes_before_parse:
            await self.store.delete_data(group_id)

    async def commit(self, group_id: str, records: List[Dict[str, Any]]) -> int:
        """
        Persist the merged collection.

        Raises:
            EmptyResultError: The collection is empty
            PersistenceError: The store rejected the write
        """
        if not records:
            raise EmptyResultError(
                "No results",
                context={"group_id": group_id, "mode": self.mode}
            )

        if self.deletes_before_parse:
            return await self.store.store_data(records)
        return await self.store.replace_data(group_id, records)
