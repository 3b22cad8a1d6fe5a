"""
Unit tests for the job reporter
"""

import json
import logging
import pytest
from core.exceptions import FetchError
from ingestion.reporter import EXIT_FAILURE, EXIT_SUCCESS, ERROR_FILENAME, JobReporter, exit_code
from schemas.sync_task import is_failed, is_successful


class TestJobReporter:
    """Test success and failure reporting"""
    
    @pytest.mark.asyncio
    async def test_succeed(self, close_counter, storage_dir):
        reporter = JobReporter("g1", storage_dir, close=close_counter)
        
        task = await reporter.succeed(42)
        
        assert is_successful(task)
        assert task.records_stored == 42
        assert task.group_id == "g1"
        assert exit_code(task) == EXIT_SUCCESS
        assert close_counter.calls == 1
        assert not (storage_dir / ERROR_FILENAME).exists()
    
    @pytest.mark.asyncio
    async def test_fail_writes_error_artifact(self, close_counter, storage_dir):
        reporter = JobReporter("g1", storage_dir, close=close_counter)
        
        task = await reporter.fail("Problem with DB", RuntimeError("boom"))
        
        assert is_failed(task)
        assert task.reason == "Problem with DB"
        assert exit_code(task) == EXIT_FAILURE
        assert close_counter.calls == 1
        artifact = json.loads((storage_dir / ERROR_FILENAME).read_text())
        assert artifact == {"reason": "Problem with DB"}
    
    @pytest.mark.asyncio
    async def test_fail_without_storage_dir(self, close_counter, tmp_path):
        reporter = JobReporter("g1", close=close_counter)
        
        task = await reporter.fail("No results")
        
        assert exit_code(task) == EXIT_FAILURE
        assert list(tmp_path.iterdir()) == []
    
    @pytest.mark.asyncio
    async def test_fail_logs_reason_and_detail(self, storage_dir, caplog):
        reporter = JobReporter("g1", storage_dir)
        error = FetchError("Login rejected", context={"source": "carelink"})
        
        with caplog.at_level(logging.WARNING, logger="ingestion.reporter"):
            await reporter.fail(error.reason, error)
        
        assert "reason[Login rejected]" in caplog.text
        record = caplog.records[-1]
        assert record.error_context["context"]["source"] == "carelink"
    
    @pytest.mark.asyncio
    async def test_close_called_once(self, close_counter):
        reporter = JobReporter("g1", close=close_counter)
        
        await reporter.fail("first")
        await reporter.fail("second")
        
        assert close_counter.calls == 1
    
    @pytest.mark.asyncio
    async def test_close_failure_does_not_mask_outcome(self, storage_dir):
        async def broken_close():
            raise RuntimeError("pool already closed")
        
        reporter = JobReporter("g1", storage_dir, close=broken_close)
        
        task = await reporter.fail("No results")
        
        assert task.reason == "No results"
        assert (storage_dir / ERROR_FILENAME).exists()
    
    @pytest.mark.asyncio
    async def test_on_close_registers_callback(self, close_counter):
        reporter = JobReporter("g1")
        reporter.on_close(close_counter)
        
        await reporter.succeed(1)
        
        assert close_counter.calls == 1
    
    @pytest.mark.asyncio
    async def test_unwritable_artifact_is_logged(self, tmp_path, caplog):
        reporter = JobReporter("g1", tmp_path / "missing")
        
        with caplog.at_level(logging.ERROR, logger="ingestion.reporter"):
            task = await reporter.fail("No results")
        
        assert exit_code(task) == EXIT_FAILURE
        assert "Failed to write" in caplog.text
