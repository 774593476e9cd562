"""
Activity recorder: best-effort audit trail.
Writes in its own session so a failure here never rolls back the mutation it documents.
"""
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from humanika.enums import ActivityType
from humanika.logging_config import get_logger
from humanika.models import ActivityLog

logger = get_logger(__name__)


class Recorder(Protocol):
    async def record(
        self,
        user_id: Optional[str],
        activity_type: ActivityType,
        entity_type: str,
        entity_id: Optional[str],
        description: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        ...


async def record_activity(recorder: Optional[Recorder], **kwargs: Any) -> None:
    """Call recorder.record; a raising recorder is logged and never undoes the write it documents."""
    if recorder is None:
        return
    try:
        await recorder.record(**kwargs)
    except Exception as e:
        logger.warning("activity.recorder_error", entity_type=kwargs.get("entity_type"), error=str(e))


class ActivityRecorder:
    """record(...) is fire-and-forget: never raises."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        self.session_factory = session_factory
        self.ip_address = ip_address
        self.user_agent = user_agent

    async def record(
        self,
        user_id: Optional[str],
        activity_type: ActivityType,
        entity_type: str,
        entity_id: Optional[str],
        description: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        try:
            async with self.session_factory() as session:
                session.add(
                    ActivityLog(
                        user_id=user_id,
                        activity_type=ActivityType(activity_type).value,
                        entity_type=entity_type,
                        entity_id=entity_id,
                        description=description,
                        metadata_=metadata,
                        ip_address=self.ip_address,
                        user_agent=self.user_agent,
                    )
                )
                await session.commit()
        except Exception as e:
            logger.warning(
                "activity.record_failed",
                activity_type=str(activity_type),
                entity_type=entity_type,
                entity_id=entity_id,
                error=str(e),
            )
            return False
        return True


async def list_activities(
    db: AsyncSession,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    limit: int = 50,
) -> List[ActivityLog]:
    """Newest first."""
    q = select(ActivityLog).order_by(ActivityLog.created_at.desc()).limit(limit)
    if entity_type:
        q = q.where(ActivityLog.entity_type == entity_type)
    if entity_id:
        q = q.where(ActivityLog.entity_id == entity_id)
    r = await db.execute(q)
    return list(r.scalars().all())
