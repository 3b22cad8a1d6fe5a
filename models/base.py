from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()


# ============================================================================
# ENUMS
# ============================================================================

class SourceKey(str, enum.Enum):
    """External device-data sources, in fetch order"""
    CARELINK = "carelink"
    DIASEND = "diasend"
    TCONNECT = "tconnect"
    DEXCOM = "dexcom"


class SyncStatus(str, enum.Enum):
    """Terminal outcome of one ingestion job"""
    SUCCESS = "success"
    ERROR = "error"
