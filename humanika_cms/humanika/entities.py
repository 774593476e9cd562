"""
Entity dispatch table: EntityKind -> model, asset slot, Drive naming/folder.
EntityRepository gives every kind the same find_unique / create / update / delete capability,
so the approval and asset services never switch on a raw tag string.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional, Type, Union

from sqlalchemy import delete as sa_delete
from sqlalchemy.ext.asyncio import AsyncSession

from humanika.db import Base
from humanika.enums import EntityKind
from humanika.errors import UnknownEntityKind
from humanika.models import ApprovalRequest, Article, Document, Event, Finance, Letter, WorkProgram


@dataclass(frozen=True)
class EntitySpec:
    kind: EntityKind
    model: Type[Base]
    label: str
    title_attr: str
    asset_field: Optional[str] = None
    file_prefix: Optional[str] = None
    folder_setting: Optional[str] = None


ENTITY_REGISTRY: Dict[EntityKind, EntitySpec] = {
    EntityKind.WORK_PROGRAM: EntitySpec(
        kind=EntityKind.WORK_PROGRAM,
        model=WorkProgram,
        label="Work program",
        title_attr="name",
    ),
    EntityKind.EVENT: EntitySpec(
        kind=EntityKind.EVENT,
        model=Event,
        label="Event",
        title_attr="name",
        asset_field="thumbnail",
        file_prefix="event",
        folder_setting="gdrive_event_thumbnail_folder_id",
    ),
    EntityKind.FINANCE: EntitySpec(
        kind=EntityKind.FINANCE,
        model=Finance,
        label="Finance",
        title_attr="name",
        asset_field="proof",
        file_prefix="finance",
        folder_setting="gdrive_finance_folder_id",
    ),
    EntityKind.DOCUMENT: EntitySpec(
        kind=EntityKind.DOCUMENT,
        model=Document,
        label="Document",
        title_attr="name",
        asset_field="document",
        file_prefix="document",
        folder_setting="gdrive_document_folder_id",
    ),
    EntityKind.ARTICLE: EntitySpec(
        kind=EntityKind.ARTICLE,
        model=Article,
        label="Article",
        title_attr="title",
        asset_field="thumbnail",
        file_prefix="article",
        folder_setting="gdrive_article_folder_id",
    ),
    EntityKind.LETTER: EntitySpec(
        kind=EntityKind.LETTER,
        model=Letter,
        label="Letter",
        title_attr="regarding",
        asset_field="letter",
        file_prefix="letter",
        folder_setting="gdrive_letter_folder_id",
    ),
}


def get_entity_spec(entity_type: Union[str, EntityKind, None]) -> EntitySpec:
    """Lookup by tag. Raises UnknownEntityKind outside the six kinds."""
    kind = EntityKind.parse(entity_type)
    if kind is None:
        raise UnknownEntityKind(f"Unknown entity type: {entity_type}", extra={"entity_type": entity_type})
    return ENTITY_REGISTRY[kind]


def entity_title(spec: EntitySpec, entity: Any) -> str:
    return str(getattr(entity, spec.title_attr, None) or entity.id)


class EntityRepository:
    """find_unique / create / update / delete for one entity kind, on the request's session."""

    def __init__(self, db: AsyncSession, entity_type: Union[str, EntityKind]) -> None:
        self.db = db
        self.spec = get_entity_spec(entity_type)

    @property
    def model(self) -> Type[Base]:
        return self.spec.model

    async def find_unique(self, entity_id: str) -> Optional[Any]:
        if not entity_id:
            return None
        return await self.db.get(self.model, entity_id)

    async def create(self, **values: Any) -> Any:
        entity = self.model(**values)
        self.db.add(entity)
        await self.db.flush()
        return entity

    async def update(self, entity_id: str, **values: Any) -> Optional[Any]:
        """Set attributes on the row and flush. None when the row does not exist."""
        entity = await self.find_unique(entity_id)
        if entity is None:
            return None
        for key, value in values.items():
            setattr(entity, key, value)
        await self.db.flush()
        return entity

    async def delete(self, entity_id: str) -> Optional[Any]:
        """
        Delete the row and, since the binding has no FK, its approval requests.
        Returns the deleted entity (detached) or None.
        """
        entity = await self.find_unique(entity_id)
        if entity is None:
            return None
        await self.db.execute(
            sa_delete(ApprovalRequest).where(
                ApprovalRequest.entity_type == self.spec.kind.value,
                ApprovalRequest.entity_id == entity_id,
            )
        )
        await self.db.delete(entity)
        await self.db.flush()
        return entity
