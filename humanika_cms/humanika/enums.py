"""Status and tag enums shared by models, services and schemas."""
from enum import Enum
from typing import Optional


class EntityKind(str, Enum):
    """Entity kinds eligible for the approval workflow (ApprovalRequest.entity_type)."""

    WORK_PROGRAM = "WORK_PROGRAM"
    EVENT = "EVENT"
    FINANCE = "FINANCE"
    DOCUMENT = "DOCUMENT"
    ARTICLE = "ARTICLE"
    LETTER = "LETTER"

    @classmethod
    def parse(cls, value: "str | EntityKind | None") -> Optional["EntityKind"]:
        """Tag -> EntityKind; None for anything outside the six kinds."""
        if isinstance(value, cls):
            return value
        if not value:
            return None
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return None


class EntityStatus(str, Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    PUBLISH = "PUBLISH"


class ApprovalStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ActivityType(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    UPLOAD = "UPLOAD"
    OTHER = "OTHER"
