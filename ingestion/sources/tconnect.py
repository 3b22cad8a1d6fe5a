"""
t:connect pump export adapter
"""

import io
import logging
from datetime import date, timedelta
from typing import Any, AsyncIterator, Dict
from xml.etree import ElementTree

from ingestion.sources.base import (
    CHUNK_SIZE,
    SourceAdapter,
    days_ago,
    parse_float,
    parse_timestamp,
    require,
)
from models.base import SourceKey

logger = logging.getLogger(__name__)

TCONNECT_URLS = {
    "login": "https://tconnect.tandemdiabetes.com/login.aspx",
    "export": "https://tconnect.tandemdiabetes.com/export/xml",
}

# Element tag -> (event type, value attribute, value field, units)
READING_TAGS = {
    "BG": ("smbg", "value", "value", "mg/dL"),
    "CGM": ("cbg", "value", "value", "mg/dL"),
    "Bolus": ("bolus", "insulinDelivered", "normal", None),
    "Basal": ("basal", "rate", "rate", None),
}


class TConnectAdapter(SourceAdapter):
    """
    Download and parse the t:connect XML export.

    The export names the pump in a ``Device`` element (``serialNumber``
    attribute) ahead of the readings; every reading element carries a
    ``dateTime`` attribute.
    """

    source = SourceKey.TCONNECT
    filename = "tconnect.xml"

    async def fetch(self, config: Dict[str, Any]) -> AsyncIterator[bytes]:
        username = require(config, "username")
        password = require(config, "password")
        window = days_ago(config)

        today = date.today()
        params = {
            "startDate": (today - timedelta(days=window)).strftime("%m-%d-%Y"),
            "endDate": today.strftime("%m-%d-%Y"),
        }

        async with self.http_client() as client:
            response = await client.post(
                TCONNECT_URLS["login"],
                data={"email": username, "password": password}
            )
            response.raise_for_status()

            async with client.stream("GET", TCONNECT_URLS["export"], params=params) as response:
                response.raise_for_status()
                async for chunk in response.aiter_bytes(CHUNK_SIZE):
                    yield chunk

    async def parse(self, blob: bytes, config: Dict[str, Any]) -> AsyncIterator[Dict[str, Any]]:
        device_id = "tconnect-unknown"

        for _, element in ElementTree.iterparse(io.BytesIO(blob), events=("end",)):
            tag = element.tag
            if tag == "Device":
                device_id = f"tconnect-{element.get('serialNumber', 'unknown')}"
                continue

            mapping = READING_TAGS.get(tag)
            if mapping is None:
                continue

            event_type, attribute, field, units = mapping
            time = parse_timestamp(element.get("dateTime"))
            value = parse_float(element.get(attribute))
            element.clear()
            if time is None or value is None:
                continue

            yield self.make_event(event_type, device_id, time, **{field: value, "units": units})
