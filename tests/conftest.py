"""
Pytest configuration and fixtures
"""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from core.exceptions import PersistenceError
from ingestion.registry import SourceRegistry
from ingestion.sources.base import SourceAdapter
from ingestion.storage.blob_store import LocalBlobStore
from models.base import SourceKey


class FakeAdapter(SourceAdapter):
    """Adapter with scripted fetch/parse behaviour"""

    def __init__(
        self,
        source: SourceKey,
        records: Optional[List[Dict[str, Any]]] = None,
        payload: bytes = b"payload",
        fetch_error: Optional[Exception] = None,
        fetch_delay: float = 0,
        parse_error: Optional[Exception] = None,
        fail_after: int = 0,
        parse_delay: float = 0
    ):
        self.source = source
        self.filename = f"{source.value}.raw"
        self.records = records or []
        self.payload = payload
        self.fetch_error = fetch_error
        self.fetch_delay = fetch_delay
        self.parse_error = parse_error
        self.fail_after = fail_after
        self.parse_delay = parse_delay
        self.fetch_calls: List[Dict[str, Any]] = []
        self.parse_calls: List[Any] = []
        self.fetch_finished = False
        self.parse_cancelled = False

    async def fetch(self, config):
        self.fetch_calls.append(config)
        if self.fetch_delay:
            await asyncio.sleep(self.fetch_delay)
        if self.fetch_error is not None:
            raise self.fetch_error
        yield self.payload
        self.fetch_finished = True

    async def parse(self, blob, config):
        self.parse_calls.append((blob, config))
        try:
            for index, record in enumerate(self.records):
                if self.parse_error is not None and index == self.fail_after:
                    raise self.parse_error
                if self.parse_delay:
                    await asyncio.sleep(self.parse_delay)
                yield dict(record)
            if self.parse_error is not None and self.fail_after >= len(self.records):
                raise self.parse_error
        except asyncio.CancelledError:
            self.parse_cancelled = True
            raise


class InMemoryEventStore:
    """Persisted-record store keeping events per group in a dict"""

    def __init__(self, initial: Optional[Dict[str, List[Dict[str, Any]]]] = None, fail_on=()):
        self.data: Dict[str, List[Dict[str, Any]]] = {
            group: list(records) for group, records in (initial or {}).items()
        }
        self.fail_on = set(fail_on)
        self.calls: List[tuple] = []

    def _check(self, operation: str):
        if operation in self.fail_on:
            raise PersistenceError(f"Simulated {operation} failure", context={"operation": operation})

    async def delete_data(self, group_id: str) -> None:
        self.calls.append(("delete", group_id))
        self._check("delete")
        self.data.pop(group_id, None)

    async def store_data(self, records: List[Dict[str, Any]]) -> int:
        self.calls.append(("store", len(records)))
        self._check("store")
        for record in records:
            self.data.setdefault(record["groupId"], []).append(record)
        return len(records)

    async def replace_data(self, group_id: str, records: List[Dict[str, Any]]) -> int:
        self.calls.append(("replace", group_id, len(records)))
        self._check("replace")
        self.data[group_id] = list(records)
        return len(records)


class CloseCounter:
    """Async close callback that counts its calls"""

    def __init__(self):
        self.calls = 0

    async def __call__(self):
        self.calls += 1


def make_records(source: SourceKey, count: int) -> List[Dict[str, Any]]:
    return [
        {
            "type": "smbg",
            "deviceId": f"{source.value}-device",
            "time": f"2014-03-01T10:{i:02d}:00",
            "value": 100 + i,
            "source": source.value,
        }
        for i in range(count)
    ]


@pytest.fixture
def adapters():
    """One fake adapter per source key, each parsing to no records"""
    return {source: FakeAdapter(source) for source in SourceKey}


@pytest.fixture
def registry(adapters):
    return SourceRegistry(adapters.values())


@pytest.fixture
def blob_store(tmp_path):
    return LocalBlobStore(tmp_path / "blobs")


@pytest.fixture
def event_store():
    return InMemoryEventStore()


@pytest.fixture
def close_counter():
    return CloseCounter()


@pytest.fixture
def records_for():
    """Factory for sample normalized records of a source"""
    return make_records


@pytest.fixture
def fake_adapter():
    """Factory for scripted adapters"""
    return FakeAdapter


@pytest.fixture
def store_factory():
    """Factory for in-memory event stores"""
    return InMemoryEventStore


@pytest.fixture
def storage_dir(tmp_path):
    path = tmp_path / "task"
    path.mkdir()
    return path
