"""Approval request/response schemas."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ApprovalSubmitRequest(BaseModel):
    """Body for POST /api/approvals."""

    entity_type: str = Field(..., description="WORK_PROGRAM | EVENT | FINANCE | DOCUMENT | ARTICLE | LETTER")
    entity_id: str = Field(..., min_length=1, description="Id of the submitted entity")
    note: Optional[str] = Field(None, description="Note for reviewers")


class ApprovalDecisionRequest(BaseModel):
    """Body for PATCH /api/approvals/{approval_id}. status is validated by the ledger (422 if missing)."""

    status: Optional[str] = Field(None, description="APPROVED | REJECTED")
    note: Optional[str] = None
    expected_version: Optional[int] = Field(
        None, ge=1, description="Reject with 409 if the request changed since this version"
    )


class ApprovalOut(BaseModel):
    """One approval request."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    entity_type: str
    entity_id: str
    requested_by: str
    reviewed_by: Optional[str] = None
    status: str
    note: Optional[str] = None
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ApprovalListResponse(BaseModel):
    """Response for GET /api/approvals."""

    approvals: List[ApprovalOut]


class BulkDecideRequest(BaseModel):
    """Body for POST /api/approvals/bulk-decide."""

    ids: List[str] = Field(..., min_length=1, max_length=100)
    status: Optional[str] = Field(None, description="APPROVED | REJECTED")
    note: Optional[str] = None


class BulkItemOut(BaseModel):
    """Outcome of one item."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    ok: bool
    status: Optional[str] = None
    error: Optional[str] = None
    detail: Optional[str] = None
    asset_deleted: Optional[bool] = None


class BulkResponse(BaseModel):
    """Per-item results; succeeded + failed == len(items)."""

    succeeded: int
    failed: int
    items: List[BulkItemOut]
