"""
Record-shape validation for normalized device events
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional, Dict, Any

# Fields that identify an event within a group
ID_FIELDS = ("type", "deviceId", "time")

# Upload records describe the upload itself and need these as well
UPLOAD_FIELDS = ("timezone", "uploadId", "byUser", "version")


class DeviceEventCreate(BaseModel):
    """
    Validated normalized event, ready to become a DeviceEvent row.

    Unknown fields are kept; the full record is stored as the row payload.
    """
    
    group_id: str = Field(..., alias="groupId", min_length=1)
    type: str = Field(..., min_length=1, max_length=64)
    device_id: str = Field(..., alias="deviceId", min_length=1, max_length=255)
    time: str = Field(..., min_length=1, max_length=64)
    source: Optional[str] = None
    
    # Upload metadata
    timezone: Optional[str] = None
    upload_id: Optional[str] = Field(None, alias="uploadId")
    by_user: Optional[str] = Field(None, alias="byUser")
    version: Optional[str] = None
    
    @model_validator(mode="after")
    def check_upload_fields(self):
        """Upload records must carry every upload metadata field"""
        if self.type == "upload":
            missing = [
                name for name, value in (
                    ("timezone", self.timezone),
                    ("uploadId", self.upload_id),
                    ("byUser", self.by_user),
                    ("version", self.version),
                )
                if not value
            ]
            if missing:
                raise ValueError(f"upload record missing {', '.join(missing)}")
        return self
    
    def to_row(self) -> Dict[str, Any]:
        """Column values for an INSERT into device_events"""
        return {
            "group_id": self.group_id,
            "source": self.source,
            "event_type": self.type,
            "device_id": self.device_id,
            "event_time": self.time,
            "payload": self.model_dump(mode="json", by_alias=True, exclude_none=True),
        }
    
    class Config:
        populate_by_name = True
        extra = "allow"
