"""Activity log API: who did what to which entity (newest first)."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from humanika.db import get_db
from humanika.schemas.audit import ActivityListResponse, ActivityOut
from humanika.services.activity_service import list_activities

router = APIRouter(prefix="/api", tags=["audit"])


@router.get("/activities", response_model=ActivityListResponse)
async def get_activities(
    entity_type: Optional[str] = Query(None, description="Approval | Event | Document | ..."),
    entity_id: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=200, description="Max rows"),
    db: AsyncSession = Depends(get_db),
) -> ActivityListResponse:
    activities = await list_activities(db, entity_type=entity_type, entity_id=entity_id, limit=limit)
    out = [
        ActivityOut(
            id=a.id,
            user_id=a.user_id,
            activity_type=a.activity_type,
            entity_type=a.entity_type,
            entity_id=a.entity_id,
            description=a.description,
            metadata=a.metadata_,
            created_at=a.created_at,
        )
        for a in activities
    ]
    return ActivityListResponse(activities=out)
