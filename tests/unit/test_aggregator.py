"""
Unit tests for the stream merger/aggregator
"""

import pytest
from core.exceptions import ParseError, UnknownSourceError
from ingestion.aggregator import StreamAggregator
from ingestion.registry import SourceRegistry
from models.base import SourceKey
from schemas.job import LocationDescriptor


async def save_blob(blob_store, source, payload=b"raw"):
    async def chunks():
        yield payload
    location = await blob_store.save("g1", f"{source.value}.raw", chunks())
    return LocationDescriptor(source=source, location=location, config={"k": source.value})


class TestStreamAggregator:
    """Test merging and tagging of parsed records"""

    @pytest.mark.asyncio
    async def test_merges_and_tags_group(self, adapters, registry, blob_store, records_for):
        adapters[SourceKey.CARELINK].records = records_for(SourceKey.CARELINK, 3)
        adapters[SourceKey.DEXCOM].records = records_for(SourceKey.DEXCOM, 2)
        locations = [
            await save_blob(blob_store, SourceKey.CARELINK),
            await save_blob(blob_store, SourceKey.DEXCOM),
        ]

        records = await StreamAggregator(registry, blob_store).collect(locations, "g1")

        assert len(records) == 5
        assert all(r["groupId"] == "g1" for r in records)
        assert sorted(r["source"] for r in records) == ["carelink"] * 3 + ["dexcom"] * 2

    @pytest.mark.asyncio
    async def test_parser_receives_blob_and_config(self, adapters, registry, blob_store):
        location = await save_blob(blob_store, SourceKey.TCONNECT, payload=b"<export/>")

        await StreamAggregator(registry, blob_store).collect([location], "g1")

        assert adapters[SourceKey.TCONNECT].parse_calls == [(b"<export/>", {"k": "tconnect"})]

    @pytest.mark.asyncio
    async def test_preserves_order_within_source(self, adapters, registry, blob_store, records_for):
        adapters[SourceKey.CARELINK].records = records_for(SourceKey.CARELINK, 20)
        adapters[SourceKey.DIASEND].records = records_for(SourceKey.DIASEND, 20)
        locations = [
            await save_blob(blob_store, SourceKey.CARELINK),
            await save_blob(blob_store, SourceKey.DIASEND),
        ]

        records = await StreamAggregator(registry, blob_store, queue_size=1).collect(locations, "g1")

        for source in ("carelink", "diasend"):
            times = [r["time"] for r in records if r["source"] == source]
            assert times == sorted(times)
            assert len(times) == 20

    @pytest.mark.asyncio
    async def test_no_locations(self, registry, blob_store):
        records = await StreamAggregator(registry, blob_store).collect([], "g1")

        assert records == []

    @pytest.mark.asyncio
    async def test_unknown_source(self, fake_adapter, blob_store):
        registry = SourceRegistry([fake_adapter(SourceKey.CARELINK)])
        location = await save_blob(blob_store, SourceKey.DIASEND)

        with pytest.raises(UnknownSourceError):
            await StreamAggregator(registry, blob_store).collect([location], "g1")

    @pytest.mark.asyncio
    async def test_parse_error_mid_sequence(self, adapters, registry, blob_store, records_for):
        adapters[SourceKey.CARELINK].records = records_for(SourceKey.CARELINK, 5)
        adapters[SourceKey.CARELINK].parse_error = ValueError("bad row 3")
        adapters[SourceKey.CARELINK].fail_after = 3
        location = await save_blob(blob_store, SourceKey.CARELINK)

        with pytest.raises(ParseError) as exc_info:
            await StreamAggregator(registry, blob_store).collect([location], "g1")

        assert exc_info.value.reason == "Problem parsing data"
        assert exc_info.value.context["source"] == "carelink"
        assert "bad row 3" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_parse_error_cancels_other_producers(self, adapters, registry, blob_store, records_for):
        adapters[SourceKey.CARELINK].records = records_for(SourceKey.CARELINK, 3)
        adapters[SourceKey.CARELINK].parse_error = ValueError("corrupt")
        adapters[SourceKey.CARELINK].fail_after = 2
        adapters[SourceKey.CARELINK].parse_delay = 0.05
        adapters[SourceKey.DEXCOM].records = records_for(SourceKey.DEXCOM, 50)
        adapters[SourceKey.DEXCOM].parse_delay = 0.01
        locations = [
            await save_blob(blob_store, SourceKey.CARELINK),
            await save_blob(blob_store, SourceKey.DEXCOM),
        ]

        with pytest.raises(ParseError):
            await StreamAggregator(registry, blob_store).collect(locations, "g1")

        assert adapters[SourceKey.DEXCOM].parse_cancelled is True
