"""Common schemas (errors, messages)."""
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Body of `detail` on a workflow error response."""

    message: str = Field(..., description="Error message")
    code: str = Field(..., description="Error code: unauthorized | not_found | validation_error | ...")
    extra: Optional[Dict[str, Any]] = Field(None, description="Extra context")


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: ErrorDetail


class MessageResponse(BaseModel):
    """Simple message response."""

    message: str = Field(..., description="Message text")
