"""
Job Input Reader - one JSON job description per invocation.
"""

import json
import logging
from pathlib import Path
from typing import BinaryIO, Optional, TextIO, Union

from pydantic import ValidationError

from core.exceptions import ConfigError
from schemas.job import JobDescription

logger = logging.getLogger(__name__)


def read_job_description(stream: Union[BinaryIO, TextIO]) -> JobDescription:
    """
    Read the stream to EOF and parse it as a single job description.

    Raises:
        ConfigError: Malformed JSON, missing groupId, or a source config
            that is not an object
    """
    raw = stream.read()
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    return parse_job_description(raw)


def parse_job_description(raw: str) -> JobDescription:
    try:
        document = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(
            "Job description is not valid JSON",
            context={"position": e.pos},
            original_exception=e
        )

    if not isinstance(document, dict):
        raise ConfigError("Job description must be a JSON object")

    group_id = document.get("groupId")
    if not isinstance(group_id, str) or not group_id:
        raise ConfigError("groupId is a required property")

    try:
        job = JobDescription.model_validate(document)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ConfigError(
            f"Invalid job description: {fields}",
            context={"group_id": group_id},
            original_exception=e
        )

    logger.info(
        f"Read job for group[{job.group_id}] with sources "
        f"{[source.value for source in job.configured_sources()]}"
    )
    return job


def resolve_storage_dir(path: Optional[str]) -> Optional[Path]:
    """
    Validate the optional task storage directory launch argument.

    Raises:
        ConfigError: The path does not name an existing directory
    """
    if path is None:
        return None
    storage_dir = Path(path)
    if not storage_dir.is_dir():
        raise ConfigError(
            f"taskStorageDir[{path}] doesn't exist, please provide something that does"
        )
    return storage_dir
