"""Activity log schemas."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class ActivityOut(BaseModel):
    """One activity log row."""

    id: str
    user_id: Optional[str] = None
    activity_type: str
    entity_type: str
    entity_id: Optional[str] = None
    description: str
    metadata: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None


class ActivityListResponse(BaseModel):
    """Response for GET /audit/activities."""

    activities: List[ActivityOut]
