"""
CareLink pump/CGM export adapter
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

CARELINK_URLS = {
    "security": "https://carelink.minimed.com/patient/j_security_check",
    "login": "https://carelink.minimed.com/patient/main/login.do",
    "csv": "https://carelink.minimed.com/patient/main/selectCSV.do",
}

# Column -> (event type, value field, units)
VALUE_COLUMNS = {
    "BG Reading (mg/dL)": ("smbg", "value", "mg/dL"),
    "Sensor Glucose (mg/dL)": ("cbg", "value", "mg/dL"),
    "Bolus Volume Delivered (U)": ("bolus", "normal", None),
    "Basal Rate (U/h)": ("basal", "rate", None),
}


class CarelinkAdapter(SourceAdapter):
    """
    Download and parse the CareLink CSV report.

    Fetch logs into the patient portal with the configured username and
    password, then requests the CSV export covering the last ``daysAgo``
    days (default 14).
    """

    source = SourceKey.CARELINK
    filename = "carelink.csv"

    async def fetch(self, config: Dict[str, Any]) -> AsyncIterator[bytes]:
        username = require(config, "username")
        password = require(config, "password")
        window = days_ago(config)

        today = date.today()
        form = {
            "report": 11,
            "listSeparator": ",",
            "datePicker1": today.strftime("%m/%d/%Y"),
            "datePicker2": (today - timedelta(days=window)).strftime("%m/%d/%Y"),
        }

        async with self.http_client() as client:
            response = await client.post(
                CARELINK_URLS["security"],
                params={"j_username": username, "j_password": password}
            )
            response.raise_for_status()

            response = await client.get(CARELINK_URLS["login"])
            response.raise_for_status()

            async with client.stream(
                "POST", CARELINK_URLS["csv"], params={"t": "11"}, data=form
            ) as response:
                response.raise_for_status()
                async for chunk in response.aiter_bytes(CHUNK_SIZE):
                    yield chunk

    async def parse(self, blob: bytes, config: Dict[str, Any]) -> AsyncIterator[Dict[str, Any]]:
        df = await asyncio.to_thread(read_report, blob)
        logger.info(f"Parsing {len(df)} CareLink rows")

        for row in df.to_dict(orient="records"):
            time = _row_time(row)
            if time is None:
                continue
            device_id = f"carelink-{row.get('Raw-Device Type') or 'unknown'}"

            for column, (event_type, field, units) in VALUE_COLUMNS.items():
                value = parse_float(row.get(column))
                if value is None:
                    continue
                yield self.make_event(
                    event_type,
                    device_id,
                    time,
                    **{field: value, "units": units}
                )


def read_report(blob: bytes) -> pd.DataFrame:
    """
    Load the CSV report, skipping the patient preamble.

    The export starts with a block of patient/device lines; the data table
    begins at the row whose first cell is "Index".
    """
    text = blob.decode("utf-8-sig", errors="replace")
    lines = text.splitlines()
    header_index = next(
        (i for i, line in enumerate(lines) if line.split(",", 1)[0].strip() == "Index"),
        None
    )
    if header_index is None:
        raise ValueError("CareLink report has no data table header")

    df = pd.read_csv(io.StringIO(text), skiprows=header_index, dtype=str).fillna("")
    df.columns = df.columns.str.strip()
    return df


def _row_time(row: Dict[str, Any]):
    if row.get("Timestamp"):
        return parse_timestamp(row["Timestamp"])
    if row.get("Date") and row.get("Time"):
        return parse_timestamp(f"{row['Date']} {row['Time']}")
    return None
