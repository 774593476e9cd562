"""
Entity status synchronizer: applies an approval decision onto the bound entity.
APPROVED -> status PUBLISH (Article: is_published=True, published_at=now)
REJECTED -> status DRAFT   (Article: is_published=False, published_at=None)
Runs after the ledger write, so it never raises: unknown tag, missing entity
or a storage error are logged and reported as False. Re-running with the same
decision leaves the row unchanged (safe to retry).
"""
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from humanika.entities import ENTITY_REGISTRY
from humanika.enums import ApprovalStatus, EntityKind, EntityStatus
from humanika.logging_config import get_logger

logger = get_logger(__name__)


def _apply_status(entity: Any, decision: ApprovalStatus) -> None:
    if decision == ApprovalStatus.APPROVED:
        entity.status = EntityStatus.PUBLISH.value
    else:
        entity.status = EntityStatus.DRAFT.value


def _apply_article(entity: Any, decision: ApprovalStatus) -> None:
    _apply_status(entity, decision)
    if decision == ApprovalStatus.APPROVED:
        # keep the first publish time when re-synced
        if not (entity.is_published and entity.published_at):
            entity.published_at = datetime.now(timezone.utc)
        entity.is_published = True
    else:
        entity.is_published = False
        entity.published_at = None


STATUS_APPLIERS: Dict[EntityKind, Callable[[Any, ApprovalStatus], None]] = {
    EntityKind.WORK_PROGRAM: _apply_status,
    EntityKind.EVENT: _apply_status,
    EntityKind.FINANCE: _apply_status,
    EntityKind.DOCUMENT: _apply_status,
    EntityKind.ARTICLE: _apply_article,
    EntityKind.LETTER: _apply_status,
}


async def sync_entity_status(
    db: AsyncSession,
    entity_type: Union[str, EntityKind],
    entity_id: str,
    decision: Union[str, ApprovalStatus],
) -> bool:
    """Apply decision to the entity row. True when a row was written."""
    kind = EntityKind.parse(entity_type)
    if kind is None:
        logger.warning("status_sync.unknown_entity_kind", entity_type=str(entity_type), entity_id=entity_id)
        return False
    try:
        decision = ApprovalStatus(decision)
    except ValueError:
        logger.warning("status_sync.unsupported_decision", decision=str(decision), entity_id=entity_id)
        return False
    if decision == ApprovalStatus.PENDING:
        logger.warning("status_sync.unsupported_decision", decision=decision.value, entity_id=entity_id)
        return False

    spec = ENTITY_REGISTRY[kind]
    try:
        entity = await db.get(spec.model, entity_id)
        if entity is None:
            logger.warning("status_sync.entity_missing", entity_type=kind.value, entity_id=entity_id)
            return False
        STATUS_APPLIERS[kind](entity, decision)
        await db.flush()
    except SQLAlchemyError as e:
        logger.error(
            "status_sync.failed",
            entity_type=kind.value,
            entity_id=entity_id,
            decision=decision.value,
            error=str(e),
        )
        return False

    logger.info(
        "status_sync.applied",
        entity_type=kind.value,
        entity_id=entity_id,
        decision=decision.value,
        status=entity.status,
    )
    return True
