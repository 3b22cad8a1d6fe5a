"""
Unit tests for the replace committer
"""

import pytest
from core.exceptions import EmptyResultError, PersistenceError
from ingestion.committer import ReplaceCommitter


class TestDeleteFirstMode:
    """Default mode: delete before parsing, store after"""
    
    @pytest.mark.asyncio
    async def test_clear_deletes_group(self, store_factory):
        store = store_factory({"g1": [{"groupId": "g1"}], "g2": [{"groupId": "g2"}]})
        committer = ReplaceCommitter(store)
        
        await committer.clear("g1")
        
        assert "g1" not in store.data
        assert store.data["g2"] == [{"groupId": "g2"}]
    
    @pytest.mark.asyncio
    async def test_commit_stores_in_one_call(self, event_store):
        committer = ReplaceCommitter(event_store)
        records = [{"groupId": "g1", "n": i} for i in range(3)]
        
        stored = await committer.commit("g1", records)
        
        assert stored == 3
        assert event_store.calls == [("store", 3)]
        assert event_store.data["g1"] == records
    
    @pytest.mark.asyncio
    async def test_empty_collection(self, store_factory):
        store = store_factory({"g1": [{"groupId": "g1"}]})
        committer = ReplaceCommitter(store)
        
        await committer.clear("g1")
        with pytest.raises(EmptyResultError) as exc_info:
            await committer.commit("g1", [])
        
        assert exc_info.value.reason == "No results"
        # Deletion already happened and is not undone
        assert "g1" not in store.data
    
    @pytest.mark.asyncio
    async def test_store_failure_propagates(self, store_factory):
        committer = ReplaceCommitter(store_factory(fail_on={"store"}))
        
        with pytest.raises(PersistenceError):
            await committer.commit("g1", [{"groupId": "g1"}])


class TestStagedMode:
    """Staged mode: previous data survives until new data is ready"""
    
    @pytest.mark.asyncio
    async def test_clear_is_noop(self, store_factory):
        store = store_factory({"g1": [{"groupId": "g1", "old": True}]})
        committer = ReplaceCommitter(store, mode="staged")
        
        await committer.clear("g1")
        
        assert store.calls == []
        assert store.data["g1"] == [{"groupId": "g1", "old": True}]
    
    @pytest.mark.asyncio
    async def test_commit_replaces(self, store_factory):
        store = store_factory({"g1": [{"groupId": "g1", "old": True}]})
        committer = ReplaceCommitter(store, mode="staged")
        
        await committer.commit("g1", [{"groupId": "g1", "new": True}])
        
        assert store.calls == [("replace", "g1", 1)]
        assert store.data["g1"] == [{"groupId": "g1", "new": True}]
    
    @pytest.mark.asyncio
    async def test_empty_collection_keeps_previous_data(self, store_factory):
        store = store_factory({"g1": [{"groupId": "g1", "old": True}]})
        committer = ReplaceCommitter(store, mode="staged")
        
        await committer.clear("g1")
        with pytest.raises(EmptyResultError):
            await committer.commit("g1", [])
        
        assert store.data["g1"] == [{"groupId": "g1", "old": True}]


def test_unknown_mode(event_store):
    with pytest.raises(ValueError):
        ReplaceCommitter(event_store, mode="append")
