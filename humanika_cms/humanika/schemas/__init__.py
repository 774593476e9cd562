"""Pydantic request/response schemas."""
from humanika.schemas.common import ErrorResponse, MessageResponse
from humanika.schemas.approval import (
    ApprovalDecisionRequest,
    ApprovalListResponse,
    ApprovalOut,
    ApprovalSubmitRequest,
    BulkDecideRequest,
    BulkItemOut,
    BulkResponse,
)
from humanika.schemas.asset import (
    AssetOut,
    AssetRemoveResponse,
    AssetResolveResponse,
    BulkDeleteRequest,
)
from humanika.schemas.audit import ActivityOut, ActivityListResponse

__all__ = [
    "ErrorResponse",
    "MessageResponse",
    "ApprovalDecisionRequest",
    "ApprovalListResponse",
    "ApprovalOut",
    "ApprovalSubmitRequest",
    "BulkDecideRequest",
    "BulkItemOut",
    "BulkResponse",
    "AssetOut",
    "AssetRemoveResponse",
    "AssetResolveResponse",
    "BulkDeleteRequest",
    "ActivityOut",
    "ActivityListResponse",
]
