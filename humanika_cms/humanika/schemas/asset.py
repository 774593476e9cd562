"""Asset (Drive file) schemas."""
from typing import List, Optional

from pydantic import BaseModel, Field


class AssetOut(BaseModel):
    """Result of PUT /api/assets/{entity_type}/{entity_id}."""

    entity_type: str
    entity_id: str
    field: str
    file_id: str
    file_name: str
    url: str
    degraded: List[str] = Field(default_factory=list, description="Post-upload steps that failed: rename | public_access")


class AssetRemoveResponse(BaseModel):
    """Result of DELETE /api/assets/{entity_type}/{entity_id}."""

    entity_type: str
    entity_id: str
    field: str
    file_deleted: bool = Field(..., description="False when the Drive file could not be deleted (field is cleared anyway)")


class BulkDeleteRequest(BaseModel):
    """Body for POST /api/assets/{entity_type}/bulk-delete."""

    ids: List[str] = Field(..., min_length=1, max_length=100)


class AssetResolveResponse(BaseModel):
    """Response for GET /api/assets/resolve."""

    ref: str
    file_id: Optional[str] = None
    owned: bool
    url: str
