"""
Ingestion job components for device-data sources.

This package contains everything one ingestion job needs:

Modules:
    job_input: Read and validate the JSON job description
    registry: Closed mapping of source keys to fetch/parse adapters
    fetcher: Concurrent, fail-fast fetch of every configured source
    aggregator: Merge per-source parse output into one tagged collection
    committer: Replace semantics (delete, then store)
    reporter: Single success/failure exit path, error.json artifact
    runner: Job orchestrator and process entry point

Subpackages:
    sources: Per-source adapters (carelink, diasend, tconnect, dexcom)
    storage: Blob store for raw payloads
    loaders: Persisted-record store for normalized events

Architecture:
    One job per process:

    1. Fetch - every configured source concurrently, payloads to blob store
    2. Clear - delete the group's previous events (delete_first mode)
    3. Parse - merge all payloads, tag records with the group
    4. Store - bulk insert the merged collection
    5. Report - exit 0, or exit 255 with error.json

Usage:
    from ingestion.runner import run_job

    exit_code = await run_job(sys.stdin.buffer, storage_dir="/tmp/task")

Error Handling:
    All components raise errors from core.exceptions; every one of them
    ends the job through JobReporter.fail. There are no retries.
"""

__all__ = [
    "IngestionJobRunner",
    "run_job",
    "FetchCoordinator",
    "StreamAggregator",
    "ReplaceCommitter",
    "JobReporter",
    "SourceRegistry",
]
