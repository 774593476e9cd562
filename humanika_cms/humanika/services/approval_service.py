"""
Approval ledger: submit / decide / resubmit / delete approval requests bound to any entity kind.
- submit: find-or-create per (entity_type, entity_id), force the entity to PENDING.
- decide: validate everything first (no partial write), update the request, then sync the entity status.
- bulk_decide: one session per item, per-item outcome.
Activity logging goes through an ActivityRecorder and never blocks the mutation.
"""
from typing import Any, Dict, List, Optional, Sequence, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from humanika.entities import EntityRepository, EntitySpec, entity_title, get_entity_spec
from humanika.enums import ActivityType, ApprovalStatus, EntityKind, EntityStatus
from humanika.errors import Conflict, NotFound, Unauthorized, ValidationError, WorkflowError
from humanika.logging_config import get_logger
from humanika.models import ApprovalRequest
from humanika.services.activity_service import Recorder, record_activity
from humanika.services.bulk import BulkItemResult
from humanika.services.status_sync_service import sync_entity_status

logger = get_logger(__name__)

DECISIONS = (ApprovalStatus.APPROVED, ApprovalStatus.REJECTED)


def _snapshot(approval: ApprovalRequest) -> Dict[str, Any]:
    return {
        "entityType": approval.entity_type,
        "entityId": approval.entity_id,
        "userId": approval.requested_by,
        "status": approval.status,
        "note": approval.note,
    }


def parse_decision(decision: Union[str, ApprovalStatus, None]) -> ApprovalStatus:
    """APPROVED | REJECTED; anything else (including None) is a ValidationError."""
    if decision is None or (isinstance(decision, str) and not decision.strip()):
        raise ValidationError("Decision is required")
    raw = decision.value if isinstance(decision, ApprovalStatus) else str(decision).strip().upper()
    try:
        value = ApprovalStatus(raw)
    except ValueError:
        raise ValidationError(f"Invalid decision: {decision}", extra={"allowed": [d.value for d in DECISIONS]})
    if value not in DECISIONS:
        raise ValidationError(f"Invalid decision: {value.value}", extra={"allowed": [d.value for d in DECISIONS]})
    return value


async def find_approval_by_entity(
    db: AsyncSession,
    entity_type: Union[str, EntityKind],
    entity_id: str,
) -> Optional[ApprovalRequest]:
    """Oldest request for the entity (storage allows duplicates, the ledger keeps one)."""
    kind = EntityKind.parse(entity_type)
    if kind is None:
        return None
    r = await db.execute(
        select(ApprovalRequest)
        .where(
            ApprovalRequest.entity_type == kind.value,
            ApprovalRequest.entity_id == entity_id,
        )
        .order_by(ApprovalRequest.created_at.asc(), ApprovalRequest.id.asc())
        .limit(1)
    )
    return r.scalar_one_or_none()


async def get_approval(db: AsyncSession, request_id: str) -> ApprovalRequest:
    approval = await db.get(ApprovalRequest, request_id) if request_id else None
    if approval is None:
        raise NotFound("Approval not found", extra={"approval_id": request_id})
    return approval


async def list_approvals(
    db: AsyncSession,
    status: Optional[str] = None,
    entity_type: Optional[str] = None,
    limit: int = 50,
) -> List[ApprovalRequest]:
    """Newest first, optional status / entity_type filters."""
    q = select(ApprovalRequest).order_by(ApprovalRequest.created_at.desc()).limit(limit)
    if status:
        q = q.where(ApprovalRequest.status == status.upper())
    if entity_type:
        q = q.where(ApprovalRequest.entity_type == get_entity_spec(entity_type).kind.value)
    r = await db.execute(q)
    return list(r.scalars().all())


async def _load_entity(db: AsyncSession, spec: EntitySpec, entity_id: str) -> Any:
    entity = await EntityRepository(db, spec.kind).find_unique(entity_id)
    if entity is None:
        raise NotFound(
            f"{spec.label} not found",
            extra={"entity_type": spec.kind.value, "entity_id": entity_id},
        )
    return entity


async def submit_for_approval(
    db: AsyncSession,
    entity_type: Union[str, EntityKind],
    entity_id: str,
    requester_id: Optional[str],
    note: Optional[str] = None,
    recorder: Optional[Recorder] = None,
) -> ApprovalRequest:
    """
    Create or update (in place) the approval request of an entity and set the entity to PENDING.
    Repeated calls keep a single row; the latest note wins.
    """
    if not requester_id:
        raise Unauthorized("Requester is required")
    spec = get_entity_spec(entity_type)
    entity = await _load_entity(db, spec, entity_id)

    approval = await find_approval_by_entity(db, spec.kind, entity_id)
    if approval is None:
        approval = ApprovalRequest(
            entity_type=spec.kind.value,
            entity_id=entity_id,
            requested_by=requester_id,
            status=ApprovalStatus.PENDING.value,
            note=note,
            version=1,
        )
        db.add(approval)
        activity_type = ActivityType.CREATE
        old_data = None
    else:
        old_data = _snapshot(approval)
        approval.status = ApprovalStatus.PENDING.value
        approval.requested_by = requester_id
        approval.reviewed_by = None
        if note is not None:
            approval.note = note
        approval.version = (approval.version or 0) + 1
        activity_type = ActivityType.UPDATE

    entity.status = EntityStatus.PENDING.value
    await db.flush()

    logger.info(
        "approval.submitted",
        approval_id=approval.id,
        entity_type=spec.kind.value,
        entity_id=entity_id,
        requester=requester_id,
        created=activity_type == ActivityType.CREATE,
    )
    await record_activity(
        recorder,
        user_id=requester_id,
        activity_type=activity_type,
        entity_type="Approval",
        entity_id=approval.id,
        description=f"Submitted {spec.label.lower()} for approval: {entity_title(spec, entity)}",
        metadata={"oldData": old_data, "newData": _snapshot(approval)},
    )
    return approval


async def decide_approval(
    db: AsyncSession,
    request_id: str,
    decision: Union[str, ApprovalStatus, None],
    reviewer_id: Optional[str],
    note: Optional[str] = None,
    expected_version: Optional[int] = None,
    recorder: Optional[Recorder] = None,
) -> ApprovalRequest:
    """
    Record a reviewer decision and apply it to the bound entity.
    Checks (caller, request, decision, version, entity) all run before the first write.
    Without expected_version concurrent decisions are last-write-wins.
    """
    if not reviewer_id:
        raise Unauthorized("Reviewer is required")
    approval = await get_approval(db, request_id)
    value = parse_decision(decision)
    if expected_version is not None and expected_version != approval.version:
        raise Conflict(
            "Approval was modified by another reviewer",
            extra={"expected_version": expected_version, "current_version": approval.version},
        )
    kind = EntityKind.parse(approval.entity_type)
    if kind is not None:
        await _load_entity(db, get_entity_spec(kind), approval.entity_id)

    old_data = {"status": approval.status, "note": approval.note}
    approval.status = value.value
    approval.reviewed_by = reviewer_id
    if note is not None:
        approval.note = note
    approval.version = (approval.version or 0) + 1
    await db.flush()

    synced = await sync_entity_status(db, approval.entity_type, approval.entity_id, value)
    logger.info(
        "approval.decided",
        approval_id=approval.id,
        decision=value.value,
        reviewer=reviewer_id,
        entity_type=approval.entity_type,
        entity_id=approval.entity_id,
        synced=synced,
    )
    await record_activity(
        recorder,
        user_id=reviewer_id,
        activity_type=ActivityType.APPROVE if value == ApprovalStatus.APPROVED else ActivityType.REJECT,
        entity_type="Approval",
        entity_id=approval.id,
        description=f"Updated approval status to {value.value} for {approval.entity_type} entity",
        metadata={"oldData": old_data, "newData": {"status": approval.status, "note": approval.note}},
    )
    return approval


async def resubmit_if_decided(
    db: AsyncSession,
    entity_type: Union[str, EntityKind],
    entity_id: str,
    requester_id: Optional[str],
    recorder: Optional[Recorder] = None,
) -> Optional[ApprovalRequest]:
    """
    Entity was edited after a decision: put its APPROVED/REJECTED request back to PENDING
    and the entity back to PENDING. None when there is no decided request.
    """
    spec = get_entity_spec(entity_type)
    approval = await find_approval_by_entity(db, spec.kind, entity_id)
    if approval is None or approval.status not in (ApprovalStatus.APPROVED.value, ApprovalStatus.REJECTED.value):
        return None
    return await submit_for_approval(
        db,
        spec.kind,
        entity_id,
        requester_id,
        note=f"{spec.label} updated and resubmitted for approval",
        recorder=recorder,
    )


async def delete_approval(
    db: AsyncSession,
    request_id: str,
    user_id: Optional[str],
    recorder: Optional[Recorder] = None,
) -> None:
    """Delete a request. The entity status is left as is."""
    if not user_id:
        raise Unauthorized("Caller is required")
    approval = await get_approval(db, request_id)
    old_data = _snapshot(approval)
    entity_type = approval.entity_type
    await db.delete(approval)
    await db.flush()
    logger.info("approval.deleted", approval_id=request_id, user=user_id)
    await record_activity(
        recorder,
        user_id=user_id,
        activity_type=ActivityType.DELETE,
        entity_type="Approval",
        entity_id=request_id,
        description=f"Deleted approval for {entity_type} entity",
        metadata={"oldData": old_data, "newData": None},
    )


async def bulk_decide(
    session_factory: async_sessionmaker[AsyncSession],
    request_ids: Sequence[str],
    decision: Union[str, ApprovalStatus, None],
    reviewer_id: Optional[str],
    note: Optional[str] = None,
    recorder: Optional[Recorder] = None,
) -> List[BulkItemResult]:
    """
    Decide many requests, one transaction per item, sequentially.
    A failing item is reported and the loop continues.
    """
    if not reviewer_id:
        raise Unauthorized("Reviewer is required")
    value = parse_decision(decision)

    results: List[BulkItemResult] = []
    for request_id in request_ids:
        try:
            async with session_factory() as db:
                approval = await decide_approval(db, request_id, value, reviewer_id, note=note, recorder=recorder)
                status = approval.status
                await db.commit()
        except WorkflowError as e:
            logger.warning("approval.bulk_item_failed", approval_id=request_id, error=e.code)
            results.append(BulkItemResult(id=request_id, ok=False, error=e.code, detail=e.message))
            continue
        except Exception as e:
            logger.error("approval.bulk_item_failed", approval_id=request_id, error=str(e))
            results.append(BulkItemResult(id=request_id, ok=False, error="internal_error", detail=str(e)))
            continue
        results.append(BulkItemResult(id=request_id, ok=True, status=status))

    logger.info(
        "approval.bulk_decided",
        decision=value.value,
        total=len(results),
        failed=sum(1 for r in results if not r.ok),
    )
    return results
