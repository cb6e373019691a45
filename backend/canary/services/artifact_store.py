"""Storage for uploaded update bundles."""
import asyncio
import base64
import binascii
import logging
import time
from pathlib import Path
from typing import Optional

from ..exceptions import ArtifactStorageError, InvalidPayloadError

logger = logging.getLogger(__name__)


class ArtifactStore:
    """Writes update bundles as individual files in one directory.
    
    Files keep the name they were uploaded with (directory components
    stripped) or get ``script_<epoch-ms>.zip``. Existing files with the same
    name are overwritten; nothing is ever cleaned up.
    """
    
    def __init__(self, directory: str | Path):
        self.directory = Path(directory)
    
    @staticmethod
    def decode(encoded: str) -> bytes:
        """Decode a base64 bundle from a request body."""
        try:
            return base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidPayloadError("zipBinary is not valid base64") from e
    
    def target_path(self, name: Optional[str]) -> Path:
        filename = Path(name).name if name else ""
        if not filename or filename in (".", ".."):
            filename = f"script_{int(time.time() * 1000)}.zip"
        return self.directory / filename
    
    async def save(self, payload: bytes, name: Optional[str] = None) -> Path:
        """Write a bundle and return where it landed."""
        path = self.target_path(name)
        try:
            await asyncio.to_thread(self._write, path, payload)
        except OSError as e:
            logger.error(f"Error saving update bundle to {path}: {e}")
            raise ArtifactStorageError(f"Could not write {path.name}") from e
        logger.info(f"Update bundle saved to: {path} ({len(payload)} bytes)")
        return path
    
    def _write(self, path: Path, payload: bytes):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(payload)
