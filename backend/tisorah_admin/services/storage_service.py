"""Object storage client for product and content images.

Talks to the hosted storage REST API over httpx. Objects live in a single
bucket under a folder prefix and are served from a public URL of the form
``{STORAGE_URL}/storage/v1/object/public/{bucket}/{key}``.
"""

import asyncio
import mimetypes
import re
import uuid
from dataclasses import dataclass
from typing import List, Optional, Sequence

import httpx
import structlog

from tisorah_admin.config import settings
from tisorah_admin.core.exceptions import StorageError, UploadError

logger = structlog.get_logger(__name__)

_PUBLIC_PATH_RE = re.compile(r"/storage/v1/object/public/([^/]+)/(.+)$")


@dataclass
class UploadedFile:
    """An in-memory file handed over by the API layer."""

    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def extension(self) -> str:
        _, dot, ext = self.filename.rpartition(".")
        return ext.lower() if dot and ext else "bin"

    def guess_content_type(self) -> str:
        if self.content_type:
            return self.content_type
        guessed, _ = mimetypes.guess_type(self.filename)
        return guessed or "application/octet-stream"


def object_key_from_url(url: str, bucket: Optional[str] = None) -> str:
    """Extract the object key from a public storage URL.

    Raises:
        StorageError: if the URL is not a public object URL (for the bucket)
    """
    match = _PUBLIC_PATH_RE.search(url or "")
    if not match:
        raise StorageError(f"Invalid file URL: {url}")
    url_bucket, key = match.group(1), match.group(2)
    if bucket is not None and url_bucket != bucket:
        raise StorageError(f"URL points to bucket '{url_bucket}', expected '{bucket}'")
    return key


class StorageService:
    """Async client for the storage REST API.

    Each upload gets a fresh uuid4 object name, so retrying a failed upload
    can never collide with a partial earlier attempt.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        bucket: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize storage service.

        Args:
            base_url: Storage endpoint (defaults to settings.STORAGE_URL)
            api_key: Service key sent as bearer token and apikey header
            bucket: Bucket name (defaults to settings.STORAGE_BUCKET)
            client: Optional pre-built httpx client (tests inject a MockTransport)
            timeout: Request timeout in seconds
        """
        self.base_url = (base_url or settings.STORAGE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.STORAGE_API_KEY
        self.bucket = bucket or settings.STORAGE_BUCKET
        self._client = client
        self._owns_client = client is None
        self.timeout = timeout or settings.STORAGE_TIMEOUT_SECONDS
        self.logger = logger.bind(service="storage_service", bucket=self.bucket)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {}
            if self.api_key:
                headers = {"Authorization": f"Bearer {self.api_key}", "apikey": self.api_key}
            self._client = httpx.AsyncClient(headers=headers, timeout=self.timeout)
            self.logger.info("storage_client_created", base_url=self.base_url)
        return self._client

    def public_url(self, key: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{key}"

    async def upload(self, file: UploadedFile, folder: str = "products") -> str:
        """Upload one file and return its public URL.

        Raises:
            UploadError: if the storage API rejects the upload or is unreachable
        """
        if file is None or not file.content:
            raise UploadError("No file provided")

        key = f"{folder}/{uuid.uuid4()}.{file.extension}"
        url = f"{self.base_url}/storage/v1/object/{self.bucket}/{key}"

        try:
            response = await self._get_client().post(
                url,
                content=file.content,
                headers={"Content-Type": file.guess_content_type()},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            self.logger.error(
                "image_upload_failed",
                filename=file.filename,
                status_code=e.response.status_code,
                body=e.response.text[:200],
            )
            raise UploadError(f"Failed to upload {file.filename}") from e
        except httpx.HTTPError as e:
            self.logger.error("image_upload_failed", filename=file.filename, error=str(e))
            raise UploadError(f"Failed to upload {file.filename}") from e

        public = self.public_url(key)
        self.logger.info("image_uploaded", filename=file.filename, key=key)
        return public

    async def upload_many(self, files: Sequence[UploadedFile], folder: str = "products") -> List[str]:
        """Upload files concurrently; URLs come back in input order.

        Raises:
            UploadError: if any single upload fails
        """
        if not files:
            return []

        results = await asyncio.gather(
            *(self.upload(f, folder=folder) for f in files),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            self.logger.error("image_batch_upload_failed", total=len(files), failed=len(failures))
            first = failures[0]
            if isinstance(first, UploadError):
                raise first
            raise UploadError("Failed to upload images") from first

        return list(results)

    async def delete(self, url: str) -> bool:
        """Delete the object behind a public URL.

        An object that is already gone counts as deleted.

        Raises:
            StorageError: if the URL cannot be parsed or the API call fails
        """
        key = object_key_from_url(url, bucket=self.bucket)
        endpoint = f"{self.base_url}/storage/v1/object/{self.bucket}"

        try:
            response = await self._get_client().request(
                "DELETE",
                endpoint,
                json={"prefixes": [key]},
            )
            if response.status_code == 404:
                self.logger.info("image_already_absent", key=key)
                return True
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            self.logger.error(
                "image_delete_failed",
                key=key,
                status_code=e.response.status_code,
            )
            raise StorageError(f"Failed to delete {key}") from e
        except httpx.HTTPError as e:
            self.logger.error("image_delete_failed", key=key, error=str(e))
            raise StorageError(f"Failed to delete {key}") from e

        self.logger.info("image_deleted", key=key)
        return True

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


# Global storage instance
_storage_instance: Optional[StorageService] = None


def get_storage_service() -> StorageService:
    """Get or create the global storage service instance.

    This is a singleton factory - the same instance (and its connection
    pool) is reused across the application.

    Returns:
        StorageService instance
    """
    global _storage_instance

    if _storage_instance is None:
        _storage_instance = StorageService()
        logger.info("storage_service_initialized", bucket=settings.STORAGE_BUCKET)

    return _storage_instance


async def close_storage_service() -> None:
    global _storage_instance

    if _storage_instance is not None:
        await _storage_instance.close()
        _storage_instance = None
