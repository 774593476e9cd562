"""Approval request model: one row per submitted entity, bound polymorphically by (entity_type, entity_id)."""
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from humanika.db import Base


class ApprovalRequest(Base):
    """
    entity_type: WORK_PROGRAM | EVENT | FINANCE | DOCUMENT | ARTICLE | LETTER.
    entity_id: untyped reference into the matching table (no FK).
    status: PENDING | APPROVED | REJECTED.
    version: bumped on every write; used by the optional expected_version check on decide.
    No unique constraint on (entity_type, entity_id): submit finds and updates instead.
    """

    __tablename__ = "approval_requests"
    __mapper_args__ = {"eager_defaults": True}
    __table_args__ = (Index("ix_approval_requests_entity", "entity_type", "entity_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    entity_type: Mapped[str] = mapped_column(String(32), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(36), nullable=False)
    requested_by: Mapped[str] = mapped_column(String(64), nullable=False)
    reviewed_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    status: Mapped[str] = mapped_column(String(16), default="PENDING", nullable=False)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
