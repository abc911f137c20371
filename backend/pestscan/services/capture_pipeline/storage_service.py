# backend/pestscan/services/capture_pipeline/storage_service.py
"""
Capture Pipeline Storage Service

Uploads artifacts to the hosted object storage bucket and resolves their
public URLs.
"""

import asyncio
from typing import Optional

import requests

from ...config import settings
from ...enums import LogEmoji, LoggerName, LogSource
from ...exceptions import UploadError
from ...models.capture_pipeline_models import CapturedArtifact
from ..logger import get_service_logger
from .interfaces import ArtifactStorage
from .supabase_client import HostedBackendClient, error_message
from .utils import generate_storage_key

logger = get_service_logger(
    LoggerName.STORAGE_SERVICE, LogSource.BACKEND, default_emoji=LogEmoji.UPLOAD
)


class SupabaseStorageService(ArtifactStorage):
    """Object storage upload over the hosted backend's storage API."""

    def __init__(self, client: HostedBackendClient, bucket: Optional[str] = None):
        self.client = client
        self.bucket = bucket or settings.storage_bucket

    def public_url(self, key: str) -> str:
        return self.client.url(f"storage/v1/object/public/{self.bucket}/{key}")

    def _upload_sync(self, artifact: CapturedArtifact) -> str:
        key = generate_storage_key(artifact.extension)

        try:
            response = self.client.request(
                "POST",
                f"storage/v1/object/{self.bucket}/{key}",
                headers={"Content-Type": artifact.mime_type},
                data=artifact.content,
            )
        except requests.exceptions.RequestException as e:
            raise UploadError(str(e)) from e

        if not response.ok:
            raise UploadError(error_message(response))

        return self.public_url(key)

    async def upload(self, artifact: CapturedArtifact) -> str:
        """
        Upload an artifact under a random key in the configured bucket.

        Args:
            artifact: Captured or selected artifact

        Returns:
            Public URL of the uploaded object

        Raises:
            UploadError: With the storage layer's message
        """
        logger.debug(
            f"Uploading {artifact.filename}",
            extra_context={"bucket": self.bucket, "size_bytes": artifact.size_bytes},
        )
        url = await asyncio.to_thread(self._upload_sync, artifact)
        logger.info(f"Uploaded {artifact.filename}", extra_context={"url": url})
        return url
