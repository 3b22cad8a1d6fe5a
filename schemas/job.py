"""
Pydantic schemas for the ingestion job input and fetch results
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from models.base import SourceKey

SourceConfig = Dict[str, Any]


class JobDescription(BaseModel):
    """
    One ingestion job, read once per invocation.

    Presence of a source key enables that source; its value is the opaque
    credential/option bag handed to the source's adapters.
    """
    
    group_id: str = Field(..., alias="groupId", min_length=1)
    
    carelink: Optional[SourceConfig] = None
    diasend: Optional[SourceConfig] = None
    tconnect: Optional[SourceConfig] = None
    dexcom: Optional[SourceConfig] = None
    
    def source_config(self, source: SourceKey) -> Optional[SourceConfig]:
        """Config for a source key, or None when the source is not configured"""
        return getattr(self, source.value)
    
    def configured_sources(self):
        """Source keys with a config, in fetch order"""
        return [source for source in SourceKey if self.source_config(source) is not None]
    
    class Config:
        populate_by_name = True
        frozen = True
        extra = "ignore"


class LocationDescriptor(BaseModel):
    """Pointer to a fetched raw payload plus the config used to fetch it"""
    
    source: SourceKey
    location: str
    config: SourceConfig = Field(default_factory=dict)
    
    class Config:
        frozen = True
