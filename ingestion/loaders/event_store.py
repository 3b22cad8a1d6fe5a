"""
Persisted-record store for normalized device events
"""

from typing import Any, Dict, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import delete, insert
from pydantic import ValidationError
from models.device_event import DeviceEvent
from schemas.device_event import DeviceEventCreate
from core.exceptions import PersistenceError
import logging

logger = logging.getLogger(__name__)


class EventStore:
    """
    Delete and bulk-store a group's device events.
    
    Ensures:
    - Every record passes the record-shape validator before it is written
    - store_data issues one bulk INSERT and one commit
    - Failed writes are rolled back and raised as PersistenceError
    """
    
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
    
    async def delete_data(self, group_id: str) -> None:
        """Delete every persisted event for a group"""
        logger.info(f"Deleting all data for group[{group_id}]")
        
        try:
            await self.db.execute(delete(DeviceEvent).where(DeviceEvent.group_id == group_id))
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            raise PersistenceError(
                "Failed to delete group data",
                context={"operation": "DELETE", "group_id": group_id},
                original_exception=e
            )
    
    async def store_data(self, records: List[Dict[str, Any]]) -> int:
        """
        Insert records in one bulk statement.
        
        Args:
            records: Normalized event records, each tagged with groupId
            
        Returns:
            Number of records stored
        """
        if not records:
            return 0
        
        rows = self._to_rows(records)
        
        try:
            await self.db.execute(insert(DeviceEvent), rows)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            raise PersistenceError(
                "Failed to store records",
                context={"operation": "INSERT", "records": len(rows)},
                original_exception=e
            )
        
        logger.info(f"Persisted[{len(rows)}] events to db.")
        return len(rows)
    
    async def replace_data(self, group_id: str, records: List[Dict[str, Any]]) -> int:
        """
        Delete a group's events and insert the new set in one transaction.
        
        Either both statements commit or neither does.
        """
        rows = self._to_rows(records)
        logger.info(f"Replacing all data for group[{group_id}] with {len(rows)} events")
        
        try:
            await self.db.execute(delete(DeviceEvent).where(DeviceEvent.group_id == group_id))
            if rows:
                await self.db.execute(insert(DeviceEvent), rows)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            raise PersistenceError(
                "Failed to replace group data",
                context={"operation": "REPLACE", "group_id": group_id, "records": len(rows)},
                original_exception=e
            )
        
        logger.info(f"Persisted[{len(rows)}] events to db.")
        return len(rows)
    
    @staticmethod
    def _to_rows(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        rows = []
        for index, record in enumerate(records):
            try:
                rows.append(DeviceEventCreate.model_validate(record).to_row())
            except ValidationError as e:
                raise PersistenceError(
                    "Record failed validation",
                    context={"operation": "VALIDATE", "record_index": index},
                    original_exception=e
                )
        return rows
