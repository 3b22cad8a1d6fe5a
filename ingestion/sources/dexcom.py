"""
Dexcom Studio export adapter

Dexcom data arrives as a file uploaded to a local staging path (config
``file``) rather than from a web portal. The fetch coordinator removes the
staging file once the fetch attempt is over.
"""

import asyncio
import io
import logging
from pathlib import Path
from typing import Any, AsyncIterator, Dict

import pandas as pd

from ingestion.sources.base import (
    CHUNK_SIZE,
    SourceAdapter,
    parse_float,
    parse_timestamp,
    require,
)
from models.base import SourceKey

logger = logging.getLogger(__name__)

# Reading kind -> (event type, time column, value column)
READING_COLUMNS = {
    "sensor": ("cbg", "GlucoseDisplayTime", "GlucoseValue"),
    "meter": ("smbg", "MeterDisplayTime", "MeterValue"),
}


class DexcomAdapter(SourceAdapter):
    """Read and parse a tab-delimited Dexcom Studio export"""

    source = SourceKey.DEXCOM
    filename = "dexcom.csv"

    async def fetch(self, config: Dict[str, Any]) -> AsyncIterator[bytes]:
        path = Path(require(config, "file"))

        with open(path, "rb") as fh:
            while True:
                chunk = await asyncio.to_thread(fh.read, CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk

    async def parse(self, blob: bytes, config: Dict[str, Any]) -> AsyncIterator[Dict[str, Any]]:
        df = await asyncio.to_thread(read_export, blob)
        device_id = f"dexcom-{_serial_number(df)}"
        logger.info(f"Parsing {len(df)} Dexcom rows")

        for row in df.to_dict(orient="records"):
            for event_type, time_column, value_column in READING_COLUMNS.values():
                time = parse_timestamp(row.get(time_column))
                value = parse_float(row.get(value_column))
                if time is None or value is None:
                    continue
                yield self.make_event(
                    event_type,
                    device_id,
                    time,
                    value=value,
                    units="mg/dL",
                    timezone=config.get("timezone")
                )


def read_export(blob: bytes) -> pd.DataFrame:
    text = blob.decode("utf-8-sig", errors="replace")
    df = pd.read_csv(io.StringIO(text), sep="\t", dtype=str).fillna("")
    df.columns = df.columns.str.strip()
    return df


def _serial_number(df: pd.DataFrame) -> str:
    """Receiver serial from the PatientInfo columns, if the export has them"""
    if "PatientInfoField" not in df.columns or "PatientInfoValue" not in df.columns:
        return "unknown"
    matches = df.loc[df["PatientInfoField"] == "SerialNumber", "PatientInfoValue"]
    if matches.empty or not matches.iloc[0]:
        return "unknown"
    return str(matches.iloc[0])
