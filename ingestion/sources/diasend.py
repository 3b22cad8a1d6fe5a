"""
Diasend meter/pump export adapter
"""

import asyncio
import io
import logging
from datetime import date, timedelta
from typing import Any, AsyncIterator, Dict

import pandas as pd

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

DIASEND_URLS = {
    "login": "https://international.diasend.com/diasend/includes/account/login.php",
    "export": "https://international.diasend.com/reports/export/xls",
}

GLUCOSE_SHEET = "Name and glucose"
INSULIN_SHEET = "Insulin use and carbs"


class DiasendAdapter(SourceAdapter):
    """
    Download and parse the Diasend spreadsheet export.

    The workbook has one sheet of glucose readings (mmol/L) and one sheet of
    insulin deliveries. Each sheet is optional.
    """

    source = SourceKey.DIASEND
    filename = "diasend.xls"

    async def fetch(self, config: Dict[str, Any]) -> AsyncIterator[bytes]:
        username = require(config, "username")
        password = require(config, "password")
        window = days_ago(config)

        today = date.today()
        params = {
            "from": (today - timedelta(days=window)).isoformat(),
            "to": today.isoformat(),
        }

        async with self.http_client() as client:
            response = await client.post(
                DIASEND_URLS["login"],
                data={"user": username, "passwd": password}
            )
            response.raise_for_status()

            async with client.stream("GET", DIASEND_URLS["export"], params=params) as response:
                response.raise_for_status()
                async for chunk in response.aiter_bytes(CHUNK_SIZE):
                    yield chunk

    async def parse(self, blob: bytes, config: Dict[str, Any]) -> AsyncIterator[Dict[str, Any]]:
        sheets = await asyncio.to_thread(read_workbook, blob)
        device_id = f"diasend-{config.get('username', 'unknown')}"

        glucose = sheets.get(GLUCOSE_SHEET)
        if glucose is not None:
            logger.info(f"Parsing {len(glucose)} Diasend glucose rows")
            for row in glucose.to_dict(orient="records"):
                time = parse_timestamp(row.get("Time"))
                value = parse_float(row.get("mmol/L"))
                if time is None or value is None:
                    continue
                yield self.make_event("smbg", device_id, time, value=value, units="mmol/L")

        insulin = sheets.get(INSULIN_SHEET)
        if insulin is not None:
            logger.info(f"Parsing {len(insulin)} Diasend insulin rows")
            for row in insulin.to_dict(orient="records"):
                time = parse_timestamp(row.get("Time"))
                if time is None:
                    continue
                rate = parse_float(row.get("Basal Amount (U/h)"))
                if rate is not None:
                    yield self.make_event("basal", device_id, time, rate=rate)
                bolus = parse_float(row.get("Bolus Volume (U)"))
                if bolus is not None:
                    yield self.make_event("bolus", device_id, time, normal=bolus)


def read_workbook(blob: bytes) -> Dict[str, pd.DataFrame]:
    """Load every sheet of the workbook, keyed by sheet name"""
    sheets = pd.read_excel(io.BytesIO(blob), sheet_name=None)
    return {name.strip(): df.fillna("") for name, df in sheets.items()}
