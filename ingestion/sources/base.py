"""
Abstract base class for device-data source adapters
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, AsyncIterator, Dict, Optional
import logging

import httpx
import pandas as pd

from core.config import settings
from models.base import SourceKey

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class SourceAdapter(ABC):
    """
    Fetch and parse capabilities for one source key.

    Responsibilities:
    - fetch: authenticate/download and stream the raw payload
    - parse: turn a stored payload into normalized event records

    Subclasses set ``source`` and ``filename`` (the blob name the raw payload
    is saved under).
    """

    source: SourceKey
    filename: str

    @abstractmethod
    def fetch(self, config: Dict[str, Any]) -> AsyncIterator[bytes]:
        """
        Stream the raw payload for a source config.

        Errors (authentication, HTTP, missing options) are raised while the
        stream is consumed.
        """

    @abstractmethod
    def parse(self, blob: bytes, config: Dict[str, Any]) -> AsyncIterator[Dict[str, Any]]:
        """
        Lazily yield normalized event records from a raw payload.

        May raise mid-sequence on malformed input.
        """

    def make_event(
        self,
        event_type: str,
        device_id: str,
        time: datetime,
        **fields: Any
    ) -> Dict[str, Any]:
        """Build a normalized event record tagged with this adapter's source"""
        event = {
            "type": event_type,
            "deviceId": device_id,
            "time": time.isoformat(),
            "source": self.source.value,
        }
        event.update({k: v for k, v in fields.items() if v is not None})
        return event

    def http_client(self) -> httpx.AsyncClient:
        """HTTP client with cookie persistence for portal logins"""
        return httpx.AsyncClient(
            timeout=settings.HTTP_TIMEOUT,
            follow_redirects=True,
            headers={"User-Agent": "devicesync/1.0"}
        )


def require(config: Dict[str, Any], key: str) -> Any:
    """Return a required config option or raise ValueError"""
    value = config.get(key)
    if value is None or value == "":
        raise ValueError(f"{key} is a required property")
    return value


def days_ago(config: Dict[str, Any]) -> int:
    """Size of the download window in days"""
    value = config.get("daysAgo") or settings.DEFAULT_DAYS_AGO
    return int(value)


def parse_float(value: Any) -> Optional[float]:
    """Safely parse float value"""
    if value is None or value == "":
        return None
    try:
        result = float(value)
    except (ValueError, TypeError):
        return None
    if pd.isna(result):
        return None
    return result


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a timestamp cell, None for blanks"""
    if value is None or (isinstance(value, float) and pd.isna(value)) or value == "":
        return None
    timestamp = pd.to_datetime(value)
    if pd.isna(timestamp):
        return None
    return timestamp.to_pydatetime()
