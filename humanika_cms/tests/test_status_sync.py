"""
Status synchronizer: APPROVED -> PUBLISH, REJECTED -> DRAFT for every entity kind;
Article also tracks is_published / published_at. Never raises.
"""
from datetime import datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from humanika.enums import ApprovalStatus, EntityKind
from humanika.models import Article, Document, Event, Finance, Letter, WorkProgram
from humanika.services.status_sync_service import sync_entity_status

ENTITIES = [
    (EntityKind.WORK_PROGRAM, WorkProgram, {"name": "Orientation week"}),
    (EntityKind.EVENT, Event, {"name": "Seminar"}),
    (EntityKind.FINANCE, Finance, {"name": "Snacks", "amount": 150000}),
    (EntityKind.DOCUMENT, Document, {"name": "Annual report"}),
    (EntityKind.LETTER, Letter, {"regarding": "Room booking"}),
    (EntityKind.ARTICLE, Article, {"title": "Welcome"}),
]


@pytest.mark.asyncio
@pytest.mark.parametrize("kind,model,fields", ENTITIES)
async def test_approved_publishes_and_rejected_drafts(db: AsyncSession, kind, model, fields) -> None:
    db.add(model(id="E1", status="PENDING", **fields))
    await db.flush()

    assert await sync_entity_status(db, kind, "E1", ApprovalStatus.APPROVED) is True
    entity = await db.get(model, "E1")
    assert entity.status == "PUBLISH"

    assert await sync_entity_status(db, kind.value, "E1", "REJECTED") is True
    assert entity.status == "DRAFT"


@pytest.mark.asyncio
async def test_article_publish_fields(db: AsyncSession) -> None:
    db.add(Article(id="A1", title="Hello", status="PENDING"))
    await db.flush()

    await sync_entity_status(db, EntityKind.ARTICLE, "A1", ApprovalStatus.APPROVED)
    article = await db.get(Article, "A1")
    assert article.is_published is True
    assert article.published_at is not None

    await sync_entity_status(db, EntityKind.ARTICLE, "A1", ApprovalStatus.REJECTED)
    assert article.is_published is False
    assert article.published_at is None


@pytest.mark.asyncio
async def test_article_resync_keeps_first_publish_time(db: AsyncSession) -> None:
    first = datetime(2024, 1, 1, tzinfo=timezone.utc)
    db.add(Article(id="A2", title="Hello", status="PUBLISH", is_published=True, published_at=first))
    await db.flush()
    db.expire_all()

    assert await sync_entity_status(db, EntityKind.ARTICLE, "A2", ApprovalStatus.APPROVED) is True
    article = await db.get(Article, "A2")
    assert article.status == "PUBLISH"
    # SQLite drops tzinfo on the way back
    assert article.published_at.replace(tzinfo=None) == first.replace(tzinfo=None)


@pytest.mark.asyncio
async def test_unknown_kind_is_noop(db: AsyncSession) -> None:
    assert await sync_entity_status(db, "MEETING", "X1", ApprovalStatus.APPROVED) is False


@pytest.mark.asyncio
async def test_missing_entity_is_noop(db: AsyncSession) -> None:
    assert await sync_entity_status(db, EntityKind.LETTER, "nope", ApprovalStatus.APPROVED) is False


@pytest.mark.asyncio
async def test_pending_or_garbage_decision_is_noop(db: AsyncSession) -> None:
    db.add(Letter(id="L9", regarding="x", status="DRAFT"))
    await db.flush()
    assert await sync_entity_status(db, EntityKind.LETTER, "L9", ApprovalStatus.PENDING) is False
    assert await sync_entity_status(db, EntityKind.LETTER, "L9", "MAYBE") is False
    letter = await db.get(Letter, "L9")
    assert letter.status == "DRAFT"
