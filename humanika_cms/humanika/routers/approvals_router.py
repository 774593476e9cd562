"""Approval ledger API: submit, decide, list, delete, bulk decide."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from humanika.config import get_settings
from humanika.db import get_db, get_session_factory
from humanika.errors import WorkflowError
from humanika.routers.deps import bulk_response, get_activity_recorder, get_current_user_id, http_error
from humanika.schemas.approval import (
    ApprovalDecisionRequest,
    ApprovalListResponse,
    ApprovalOut,
    ApprovalSubmitRequest,
    BulkDecideRequest,
    BulkResponse,
)
from humanika.schemas.common import MessageResponse
from humanika.services.activity_service import ActivityRecorder
from humanika.services.approval_service import (
    bulk_decide,
    decide_approval,
    delete_approval,
    get_approval,
    list_approvals,
    submit_for_approval,
)

router = APIRouter(prefix="/api/approvals", tags=["approvals"])


@router.post("", response_model=ApprovalOut)
async def post_approval(
    payload: ApprovalSubmitRequest,
    user_id: str = Depends(get_current_user_id),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
    db: AsyncSession = Depends(get_db),
) -> ApprovalOut:
    """Submit an entity for approval (creates or resets its single request, entity -> PENDING)."""
    try:
        approval = await submit_for_approval(
            db, payload.entity_type, payload.entity_id, user_id, note=payload.note, recorder=recorder
        )
    except WorkflowError as e:
        raise http_error(e)
    await db.refresh(approval)
    return ApprovalOut.model_validate(approval)


@router.get("", response_model=ApprovalListResponse)
async def get_approvals(
    status_filter: Optional[str] = Query(None, alias="status", description="PENDING | APPROVED | REJECTED"),
    entity_type: Optional[str] = Query(None, description="Entity kind tag"),
    limit: int = Query(50, ge=1, description="Max rows (capped by APPROVAL_LIST_MAX_LIMIT)"),
    db: AsyncSession = Depends(get_db),
) -> ApprovalListResponse:
    """Approval requests, newest first."""
    limit = min(limit, get_settings().approval_list_max_limit)
    try:
        approvals = await list_approvals(db, status=status_filter, entity_type=entity_type, limit=limit)
    except WorkflowError as e:
        raise http_error(e)
    return ApprovalListResponse(approvals=[ApprovalOut.model_validate(a) for a in approvals])


@router.post("/bulk-decide", response_model=BulkResponse)
async def post_bulk_decide(
    payload: BulkDecideRequest,
    user_id: str = Depends(get_current_user_id),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> BulkResponse:
    """Decide many requests; each item commits on its own and reports its own outcome."""
    try:
        results = await bulk_decide(
            session_factory, payload.ids, payload.status, user_id, note=payload.note, recorder=recorder
        )
    except WorkflowError as e:
        raise http_error(e)
    return bulk_response(results)


@router.get("/{approval_id}", response_model=ApprovalOut)
async def get_approval_by_id(
    approval_id: str,
    db: AsyncSession = Depends(get_db),
) -> ApprovalOut:
    try:
        approval = await get_approval(db, approval_id)
    except WorkflowError as e:
        raise http_error(e)
    return ApprovalOut.model_validate(approval)


@router.patch("/{approval_id}", response_model=ApprovalOut)
async def patch_approval(
    approval_id: str,
    payload: ApprovalDecisionRequest,
    user_id: str = Depends(get_current_user_id),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
    db: AsyncSession = Depends(get_db),
) -> ApprovalOut:
    """
    Reviewer decision (APPROVED | REJECTED). The bound entity is moved to PUBLISH / DRAFT
    in the same transaction. 409 when expected_version is stale.
    """
    try:
        approval = await decide_approval(
            db,
            approval_id,
            payload.status,
            user_id,
            note=payload.note,
            expected_version=payload.expected_version,
            recorder=recorder,
        )
    except WorkflowError as e:
        raise http_error(e)
    await db.refresh(approval)
    return ApprovalOut.model_validate(approval)


@router.delete("/{approval_id}", response_model=MessageResponse)
async def delete_approval_by_id(
    approval_id: str,
    user_id: str = Depends(get_current_user_id),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete a request; the entity keeps its current status."""
    try:
        await delete_approval(db, approval_id, user_id, recorder=recorder)
    except WorkflowError as e:
        raise http_error(e)
    return MessageResponse(message="Approval deleted")
