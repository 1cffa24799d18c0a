"""
Azure Blob Storage signed-URL service.

Visit audio is uploaded by clients straight to the container; the service only
hands the transcription provider a short-lived read URL for it.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
from urllib.parse import quote

from azure.storage.blob import BlobSasPermissions, generate_blob_sas

from visitflow.application.ports.services.audio_storage_service import AudioStorageService
from visitflow.core.config import AzureBlobSettings
from visitflow.core.exceptions import StorageError

logger = logging.getLogger("visitflow")


def parse_connection_string(connection_string: str) -> Dict[str, str]:
    """Split ``Key=Value;Key=Value`` into a dict (values may contain '=')."""
    parts: Dict[str, str] = {}
    for part in (connection_string or "").split(";"):
        if "=" in part:
            key, value = part.split("=", 1)
            parts[key.strip()] = value.strip()
    return parts


class AzureBlobAudioStorageService(AudioStorageService):
    """Generate read-only SAS URLs for visit audio blobs."""

    def __init__(self, settings: AzureBlobSettings):
        self.settings = settings
        conn = parse_connection_string(settings.connection_string)
        self._account_name = settings.account_name or conn.get("AccountName", "")
        self._account_key = settings.account_key or conn.get("AccountKey", "")
        self._shared_access_signature = conn.get("SharedAccessSignature", "").lstrip("?")
        self._endpoint_suffix = conn.get("EndpointSuffix", "core.windows.net")

    def _blob_url(self, blob_path: str) -> str:
        return (
            f"https://{self._account_name}.blob.{self._endpoint_suffix}/"
            f"{self.settings.container_name}/{quote(blob_path.lstrip('/'))}"
        )

    def generate_signed_url(self, blob_path: str, expires_in_hours: Optional[int] = None) -> str:
        if not blob_path:
            raise StorageError("Blob path is required to generate a signed URL")
        if not self._account_name:
            raise StorageError(
                "Azure Blob Storage account_name is required for generating signed URLs. "
                "Either set AZURE_BLOB_ACCOUNT_NAME or ensure AZURE_BLOB_CONNECTION_STRING contains AccountName."
            )

        if not self._account_key:
            if self._shared_access_signature:
                logger.info("Using shared access signature from connection string for blob: %s", blob_path)
                return f"{self._blob_url(blob_path)}?{self._shared_access_signature}"
            raise StorageError(
                "Azure Blob Storage account_key is required for generating signed URLs. "
                "Either set AZURE_BLOB_ACCOUNT_KEY or ensure AZURE_BLOB_CONNECTION_STRING contains "
                "AccountKey or SharedAccessSignature."
            )

        hours = expires_in_hours or self.settings.signed_url_expiry_hours
        try:
            sas_token = generate_blob_sas(
                account_name=self._account_name,
                container_name=self.settings.container_name,
                blob_name=blob_path.lstrip("/"),
                account_key=self._account_key,
                permission=BlobSasPermissions(read=True),
                expiry=datetime.now(timezone.utc) + timedelta(hours=hours),
            )
        except Exception as e:
            raise StorageError(f"Failed to sign blob URL: {e}", {"blob_path": blob_path}) from e

        return f"{self._blob_url(blob_path)}?{sas_token}"
