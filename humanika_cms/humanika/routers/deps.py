"""Shared router dependencies: caller identity, recorder, object store, error mapping."""
from typing import List, Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from humanika.config import get_settings
from humanika.db import get_session_factory
from humanika.errors import (
    AssetUploadError,
    Conflict,
    NotFound,
    StorageNotConfigured,
    Unauthorized,
    ValidationError,
    WorkflowError,
)
from humanika.infrastructure.gdrive_store import GoogleDriveStore, ObjectStore
from humanika.logging_config import get_logger
from humanika.schemas.approval import BulkItemOut, BulkResponse
from humanika.services.activity_service import ActivityRecorder
from humanika.services.asset_service import AssetManager
from humanika.services.bulk import BulkItemResult

logger = get_logger(__name__)

HEADER_USER_ID = "X-User-Id"

ERROR_STATUS = {
    Unauthorized: status.HTTP_401_UNAUTHORIZED,
    NotFound: status.HTTP_404_NOT_FOUND,
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    Conflict: status.HTTP_409_CONFLICT,
    AssetUploadError: status.HTTP_502_BAD_GATEWAY,
    StorageNotConfigured: status.HTTP_503_SERVICE_UNAVAILABLE,
}

_store: Optional[ObjectStore] = None


def http_error(e: WorkflowError) -> HTTPException:
    """WorkflowError -> HTTPException with detail {message, code, extra}; unknown subclasses are 500."""
    code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for cls in type(e).__mro__:
        if cls in ERROR_STATUS:
            code = ERROR_STATUS[cls]
            break
    if code >= 500:
        logger.error("api.workflow_error", code=e.code, error=e.message)
    return HTTPException(
        status_code=code,
        detail={"message": e.message, "code": e.code, "extra": e.extra or None},
    )


def get_current_user_id(x_user_id: Optional[str] = Header(None, alias=HEADER_USER_ID)) -> str:
    """Caller identity from X-User-Id. Missing -> 401 before anything is written."""
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Missing X-User-Id header", "code": Unauthorized.code, "extra": None},
        )
    return user_id


def get_activity_recorder(
    request: Request,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> ActivityRecorder:
    """Recorder bound to the caller's ip / user agent."""
    return ActivityRecorder(
        session_factory,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


def get_object_store() -> ObjectStore:
    """Process-wide Drive store; its API client is built on first use."""
    global _store
    if _store is None:
        _store = GoogleDriveStore()
    return _store


def get_asset_manager(store: ObjectStore = Depends(get_object_store)) -> AssetManager:
    return AssetManager(store, get_settings())


def bulk_response(results: List[BulkItemResult]) -> BulkResponse:
    failed = sum(1 for r in results if not r.ok)
    return BulkResponse(
        succeeded=len(results) - failed,
        failed=failed,
        items=[BulkItemOut.model_validate(r) for r in results],
    )
