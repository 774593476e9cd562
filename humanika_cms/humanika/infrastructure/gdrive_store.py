"""
Google Drive object store (Service Account, Drive API v3).
upload raises on failure; rename / set_public_access / delete return False and log,
so the asset manager can keep going with a usable file id.
"""
import io
import os
from typing import Any, Optional, Protocol

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.http import MediaIoBaseUpload

from humanika.config import get_settings
from humanika.errors import StorageNotConfigured
from humanika.logging_config import get_logger
from humanika.services.asset_ids import resolve_url

logger = get_logger(__name__)

DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive"]
DEFAULT_MIME_TYPE = "application/octet-stream"


class ObjectStore(Protocol):
    """External object store capability used by the asset manager."""

    def upload(self, data: bytes, name: str, folder_id: str, mime_type: Optional[str] = None) -> str:
        ...

    def rename(self, file_id: str, name: str) -> bool:
        ...

    def set_public_access(self, file_id: str) -> bool:
        ...

    def delete(self, file_id: str) -> bool:
        ...

    def resolve_url(self, file_id: str) -> str:
        ...


def _get_drive_service() -> Any:
    """
    Drive API client from the Service Account JSON.
    ENV: GDRIVE_SA_JSON_PATH.
    """
    settings = get_settings()
    path = settings.gdrive_sa_json_path
    if not path or not os.path.isfile(path):
        raise StorageNotConfigured("GDRIVE_SA_JSON_PATH is not set or the file does not exist")
    creds = service_account.Credentials.from_service_account_file(path, scopes=DRIVE_SCOPES)
    return build("drive", "v3", credentials=creds, cache_discovery=False)


class GoogleDriveStore:
    """ObjectStore over Google Drive. The API client is built lazily on first use."""

    def __init__(self, drive: Any = None) -> None:
        self._drive = drive

    @property
    def drive(self) -> Any:
        if self._drive is None:
            self._drive = _get_drive_service()
        return self._drive

    def upload(self, data: bytes, name: str, folder_id: str, mime_type: Optional[str] = None) -> str:
        media = MediaIoBaseUpload(io.BytesIO(data), mimetype=mime_type or DEFAULT_MIME_TYPE, resumable=False)
        created = (
            self.drive.files()
            .create(
                body={"name": name, "parents": [folder_id]},
                media_body=media,
                fields="id",
            )
            .execute()
        )
        file_id = created.get("id")
        if not file_id:
            raise RuntimeError("drive_upload_returned_no_id")
        logger.info("gdrive.uploaded", file_id=file_id, name=name, folder_id=folder_id)
        return file_id

    def rename(self, file_id: str, name: str) -> bool:
        try:
            self.drive.files().update(fileId=file_id, body={"name": name}, fields="id").execute()
            return True
        except Exception as e:
            logger.warning("gdrive.rename_failed", file_id=file_id, name=name, error=str(e))
            return False

    def set_public_access(self, file_id: str) -> bool:
        permission = {"type": "anyone", "role": "reader", "allowFileDiscovery": False}
        try:
            self.drive.permissions().create(fileId=file_id, body=permission).execute()
            return True
        except Exception as e:
            logger.warning("gdrive.set_public_access_failed", file_id=file_id, error=str(e))
            return False

    def delete(self, file_id: str) -> bool:
        try:
            self.drive.files().delete(fileId=file_id).execute()
            return True
        except Exception as e:
            logger.warning("gdrive.delete_failed", file_id=file_id, error=str(e))
            return False

    def resolve_url(self, file_id: str) -> str:
        return resolve_url(file_id)
