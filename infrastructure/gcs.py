"""
Google Cloud Storage Adapter.

Downloads source archives and stages converted NDJSON for warehouse loads.
Uses ambient Google credentials (ADC).

Exports:
    ObjectStore: GCS download/upload wrapper
"""

import os
from typing import Optional

from google.api_core import exceptions as gcp_exceptions
from google.cloud import storage

from exceptions import StorageError
from util_logger import LoggerFactory, ComponentType


class ObjectStore:
    """
    Thin wrapper over google.cloud.storage.Client.

    Usage:
        store = ObjectStore()
        store.download_blob('my-bucket', 'uploads/roads.zip', '/tmp/job/roads.zip')
        uri = store.upload_file('/tmp/job/out.ndjson', 'my-bucket', '2026-01-01/converted/x.ndjson')
    """

    def __init__(self, client: Optional[storage.Client] = None):
        self._client = client
        self.logger = LoggerFactory.create_logger(ComponentType.ADAPTER, "ObjectStore")

    @property
    def client(self) -> storage.Client:
        if self._client is None:
            self._client = storage.Client()
        return self._client

    def download_blob(self, bucket_name: str, blob_path: str, destination_path: str) -> str:
        """
        Download one object to a local file.

        Raises:
            StorageError: Object missing or download failed
        """
        self.logger.info(f"Downloading gs://{bucket_name}/{blob_path}")
        try:
            blob = self.client.bucket(bucket_name).blob(blob_path)
            blob.download_to_filename(destination_path)
        except gcp_exceptions.NotFound as e:
            raise StorageError(f"Object not found: gs://{bucket_name}/{blob_path}") from e
        except gcp_exceptions.GoogleAPIError as e:
            raise StorageError(f"Failed to download gs://{bucket_name}/{blob_path}: {e}") from e

        self.logger.debug(f"Downloaded {os.path.getsize(destination_path)} bytes to {destination_path}")
        return destination_path

    def upload_file(
        self,
        local_path: str,
        bucket_name: str,
        blob_path: str,
        content_type: str = "application/x-ndjson"
    ) -> str:
        """
        Upload a local file and return its gs:// URI.

        Raises:
            StorageError: Upload failed
        """
        try:
            blob = self.client.bucket(bucket_name).blob(blob_path)
            blob.upload_from_filename(local_path, content_type=content_type, timeout=600)
        except gcp_exceptions.GoogleAPIError as e:
            raise StorageError(f"Failed to upload to gs://{bucket_name}/{blob_path}: {e}") from e

        uri = f"gs://{bucket_name}/{blob_path}"
        self.logger.info(f"Uploaded {os.path.basename(local_path)} to {uri}")
        return uri
