"""
Local filesystem blob store for raw source payloads
"""

import asyncio
import logging
import re
import uuid
from pathlib import Path
from typing import AsyncIterator, Union

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class LocalBlobStore:
    """
    Store raw payloads under a root directory.

    Layout: <root>/<group>/<run>/<filename>. Location handles are paths
    relative to the root, so a handle stays valid if the root is moved.
    """
    
    def __init__(self, root_dir: Union[str, Path]):
        self.root = Path(root_dir)
    
    async def save(self, group_id: str, filename: str, stream: AsyncIterator[bytes]) -> str:
        """
        Write a payload stream to disk.
        
        Args:
            group_id: Group the payload belongs to
            filename: Name of the blob inside the group's run directory
            stream: Async iterator of byte chunks
            
        Returns:
            Location handle for get()
        """
        relative = Path(_safe_name(group_id)) / uuid.uuid4().hex / _safe_name(filename)
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        
        size = 0
        try:
            with open(path, "wb") as fh:
                async for chunk in stream:
                    await asyncio.to_thread(fh.write, chunk)
                    size += len(chunk)
        except (Exception, asyncio.CancelledError):
            # A failed stream leaves no partial blob behind
            _discard(path)
            raise
        
        logger.debug(f"Saved {size} bytes to {relative}")
        return relative.as_posix()
    
    async def get(self, location: str) -> bytes:
        """Read a payload back by its location handle"""
        path = self._resolve(location)
        return await asyncio.to_thread(path.read_bytes)
    
    def _resolve(self, location: str) -> Path:
        root = self.root.resolve()
        path = (root / location).resolve()
        if root not in path.parents:
            raise ValueError(f"Location escapes blob root: {location}")
        return path


def _discard(path: Path) -> None:
    path.unlink(missing_ok=True)
    try:
        path.parent.rmdir()
    except OSError as e:
        logger.warning(f"Could not remove run directory {path.parent}: {e}")


def _safe_name(name: str) -> str:
    cleaned = _UNSAFE_CHARS.sub("_", name).strip(".")
    return cleaned or "_"
