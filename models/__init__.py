"""
SQLAlchemy ORM models for database tables.

Models:
    base: Base declarative class and shared enums (SourceKey, SyncStatus)
    device_event: Normalized device events, owned by a group

Usage:
    from models import DeviceEvent
    from models.base import SourceKey

Example:
    event = DeviceEvent(
        group_id="g1",
        source=SourceKey.CARELINK.value,
        event_type="smbg",
        device_id="carelink-1234",
        event_time="2014-03-01T10:00:00",
        payload={"type": "smbg", "value": 5.5}
    )
    session.add(event)
    await session.commit()
"""

from models.base import Base, SourceKey, SyncStatus
from models.device_event import DeviceEvent

__all__ = [
    "Base",
    "SourceKey",
    "SyncStatus",
    "DeviceEvent",
]
