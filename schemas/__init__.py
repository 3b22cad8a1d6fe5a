"""
Pydantic schemas for data validation and serialization.

Schemas:
    job: Job description input and location descriptors
    device_event: Record-shape validator for normalized events
    sync_task: Job outcome reported to callers

Usage:
    from schemas.job import JobDescription, LocationDescriptor
    from schemas.device_event import DeviceEventCreate
    from schemas.sync_task import SyncTask, is_successful

Example:
    job = JobDescription.model_validate(
        {"groupId": "g1", "carelink": {"username": "u", "password": "p"}}
    )
    assert job.group_id == "g1"
    assert job.configured_sources() == [SourceKey.CARELINK]
"""

__all__ = [
    "JobDescription",
    "LocationDescriptor",
    "DeviceEventCreate",
    "SyncTask",
    "is_successful",
    "is_failed",
    "get_task_id",
]
