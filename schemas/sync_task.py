"""
Outcome of one ingestion job and helpers for reading it
"""

from pydantic import BaseModel, Field
from typing import Optional, Any
from models.base import SyncStatus
import uuid


class SyncTask(BaseModel):
    """Terminal result of an ingestion job, as reported to callers"""
    
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    group_id: Optional[str] = Field(None, alias="groupId")
    status: SyncStatus
    reason: Optional[str] = None
    records_stored: int = Field(0, alias="recordsStored", ge=0)
    
    class Config:
        populate_by_name = True
        use_enum_values = True


def _field(task: Any, name: str) -> Any:
    if isinstance(task, dict):
        return task.get(name)
    return getattr(task, name, None)


def is_successful(task: Any) -> bool:
    if not task:
        return False
    return _field(task, "status") == SyncStatus.SUCCESS.value


def is_failed(task: Any) -> bool:
    if not task:
        return False
    return _field(task, "status") == SyncStatus.ERROR.value


def get_task_id(task: Any) -> Optional[str]:
    if not task:
        return None
    return _field(task, "id")
