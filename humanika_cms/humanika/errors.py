"""Workflow exceptions. Routers map `code` to an HTTP status."""
from typing import Any, Dict, Optional


class WorkflowError(ValueError):
    """Base for errors raised by the approval and asset services."""

    code = "workflow_error"

    def __init__(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra or {}


class Unauthorized(WorkflowError):
    """No caller identity. Raised before any write."""

    code = "unauthorized"


class NotFound(WorkflowError):
    """Approval request or bound entity is missing."""

    code = "not_found"


class ValidationError(WorkflowError):
    """Missing or invalid decision / field."""

    code = "validation_error"


class Conflict(WorkflowError):
    """Stale `expected_version` on a decision."""

    code = "conflict"


class UnknownEntityKind(ValidationError):
    """Entity type tag outside the six known kinds."""

    code = "unknown_entity_kind"


class AssetUploadError(WorkflowError):
    """Initial upload to the object store failed; nothing was attached."""

    code = "asset_upload_failed"


class StorageNotConfigured(WorkflowError):
    code = "storage_not_configured"
