"""Asset lifecycle API: replace / remove an entity's Drive file, bulk delete, resolve references."""
from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from humanika.db import get_db, get_session_factory
from humanika.entities import get_entity_spec
from humanika.errors import WorkflowError
from humanika.routers.deps import (
    bulk_response,
    get_activity_recorder,
    get_asset_manager,
    get_current_user_id,
    http_error,
)
from humanika.schemas.approval import BulkResponse
from humanika.schemas.asset import AssetOut, AssetRemoveResponse, AssetResolveResponse, BulkDeleteRequest
from humanika.services.activity_service import ActivityRecorder
from humanika.services.asset_ids import extract_file_id, resolve_url
from humanika.services.asset_service import (
    AssetManager,
    UploadedFile,
    delete_entities_with_assets,
    remove_entity_asset,
    replace_entity_asset,
)

router = APIRouter(prefix="/api/assets", tags=["assets"])


@router.get("/resolve", response_model=AssetResolveResponse)
async def get_resolve(
    ref: str = Query(..., min_length=1, description="File id or Drive URL"),
    export: str = Query("view", pattern="^(view|download|uc)$", description="view | download | uc"),
) -> AssetResolveResponse:
    """Normalize a stored reference. Foreign URLs are returned unchanged with owned=false."""
    file_id = extract_file_id(ref)
    return AssetResolveResponse(
        ref=ref,
        file_id=file_id,
        owned=file_id is not None,
        url=resolve_url(file_id, export) if file_id else ref,
    )


@router.put("/{entity_type}/{entity_id}", response_model=AssetOut)
async def put_asset(
    entity_type: str,
    entity_id: str,
    file: UploadFile = File(..., description="New asset file"),
    user_id: str = Depends(get_current_user_id),
    manager: AssetManager = Depends(get_asset_manager),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
    db: AsyncSession = Depends(get_db),
) -> AssetOut:
    """
    Upload a new asset for the entity. The entity points at the new file before the old one
    is deleted; rename / public-access failures are reported in `degraded`, not as errors.
    """
    data = await file.read()
    upload = UploadedFile(data=data, filename=file.filename or "upload", content_type=file.content_type)
    try:
        spec = get_entity_spec(entity_type)
        _entity, result = await replace_entity_asset(
            db, manager, spec.kind, entity_id, upload, user_id, recorder=recorder
        )
    except WorkflowError as e:
        raise http_error(e)
    return AssetOut(
        entity_type=spec.kind.value,
        entity_id=entity_id,
        field=spec.asset_field,
        file_id=result.file_id,
        file_name=result.name,
        url=manager.store.resolve_url(result.file_id),
        degraded=result.degraded,
    )


@router.delete("/{entity_type}/{entity_id}", response_model=AssetRemoveResponse)
async def delete_asset(
    entity_type: str,
    entity_id: str,
    user_id: str = Depends(get_current_user_id),
    manager: AssetManager = Depends(get_asset_manager),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
    db: AsyncSession = Depends(get_db),
) -> AssetRemoveResponse:
    """Clear the entity's asset field; the Drive file is deleted best-effort."""
    try:
        spec = get_entity_spec(entity_type)
        _entity, deleted = await remove_entity_asset(db, manager, spec.kind, entity_id, user_id, recorder=recorder)
    except WorkflowError as e:
        raise http_error(e)
    return AssetRemoveResponse(
        entity_type=spec.kind.value,
        entity_id=entity_id,
        field=spec.asset_field,
        file_deleted=deleted,
    )


@router.post("/{entity_type}/bulk-delete", response_model=BulkResponse)
async def post_bulk_delete(
    entity_type: str,
    payload: BulkDeleteRequest,
    user_id: str = Depends(get_current_user_id),
    manager: AssetManager = Depends(get_asset_manager),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> BulkResponse:
    """Delete entities with their approval requests and assets; per-item outcome."""
    try:
        results = await delete_entities_with_assets(
            session_factory, manager, entity_type, payload.ids, user_id, recorder=recorder
        )
    except WorkflowError as e:
        raise http_error(e)
    return bulk_response(results)
