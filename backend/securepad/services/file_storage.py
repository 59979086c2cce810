"""File storage abstraction. Local filesystem for dev, Azure Blob for production."""
import asyncio
import logging
import os
from pathlib import Path

import aiofiles

from securepad.config import Settings
from securepad.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)


class FileStorageService:
    """Handles attachment payload read/write to local disk or Azure Blob Storage.

    Keys are opaque "<pad_id>/<attachment_id><ext>" strings chosen by the
    attachment store.
    """

    def __init__(self, settings: Settings):
        self.storage_type = settings.FILE_STORAGE_TYPE
        self.timeout = settings.STORAGE_TIMEOUT_SECONDS
        self._blob_service = None
        self._container = None

        if self.storage_type == "local":
            self.base_path = Path(settings.FILE_STORAGE_PATH).resolve()
        elif self.storage_type == "azure_blob":
            from azure.storage.blob.aio import BlobServiceClient
            self._blob_service = BlobServiceClient.from_connection_string(
                settings.AZURE_STORAGE_CONNECTION_STRING
            )
            self._container = self._blob_service.get_container_client(
                settings.AZURE_STORAGE_CONTAINER
            )
        else:
            raise ValueError(f"Unknown storage type: {self.storage_type}")

    async def start(self) -> None:
        """Create the storage root (local) or the container (blob) if missing."""
        if self.storage_type == "local":
            self.base_path.mkdir(parents=True, exist_ok=True)
            logger.info(f"Local file storage at {self.base_path}")
            return

        from azure.core.exceptions import ResourceExistsError
        try:
            await self._blob_call(self._container.create_container())
        except ResourceExistsError:
            pass

    async def close(self) -> None:
        if self._blob_service is not None:
            await self._blob_service.close()

    def _resolve(self, key: str) -> Path:
        path = (self.base_path / key).resolve()
        if not path.is_relative_to(self.base_path):
            raise ValueError(f"Storage key escapes storage root: {key!r}")
        return path

    async def _blob_call(self, coro):
        """Bound an object-storage call by the configured timeout."""
        from azure.core.exceptions import AzureError, ResourceExistsError, ResourceNotFoundError
        try:
            return await asyncio.wait_for(coro, timeout=self.timeout)
        except (ResourceNotFoundError, ResourceExistsError):
            raise
        except asyncio.TimeoutError:
            raise UpstreamUnavailable("File storage timed out")
        except AzureError as e:
            logger.error(f"Blob storage error: {e}")
            raise UpstreamUnavailable("File storage is unavailable")

    async def save(self, key: str, file_bytes: bytes) -> str:
        """Save payload bytes under `key`. Returns the key."""
        if self.storage_type == "local":
            file_path = self._resolve(key)
            file_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(file_path, "wb") as f:
                await f.write(file_bytes)
            return key

        await self._blob_call(self._container.upload_blob(key, file_bytes, overwrite=True))
        return key

    async def read(self, key: str) -> bytes:
        """Read payload bytes. Raises FileNotFoundError if the payload is gone."""
        if self.storage_type == "local":
            async with aiofiles.open(self._resolve(key), "rb") as f:
                return await f.read()

        from azure.core.exceptions import ResourceNotFoundError
        try:
            downloader = await self._blob_call(self._container.download_blob(key))
            return await self._blob_call(downloader.readall())
        except ResourceNotFoundError:
            raise FileNotFoundError(key)

    async def exists(self, key: str) -> bool:
        if self.storage_type == "local":
            return self._resolve(key).is_file()
        return await self._blob_call(self._container.get_blob_client(key).exists())

    async def delete(self, key: str) -> bool:
        """Delete a payload. Returns False if it was already missing."""
        if self.storage_type == "local":
            path = self._resolve(key)
            if not path.exists():
                return False
            os.remove(path)
            return True

        from azure.core.exceptions import ResourceNotFoundError
        try:
            await self._blob_call(self._container.delete_blob(key))
            return True
        except ResourceNotFoundError:
            return False

    def local_path(self, key: str) -> Path | None:
        """Filesystem path for streaming a local payload, None for blob storage."""
        if self.storage_type == "local":
            return self._resolve(key)
        return None
