"""
Asset lifecycle: attach / replace / remove Drive files held in an entity's asset slot.
- attach: upload as temp_<ms> -> rename to final name -> make public. Only the upload may fail hard;
  rename / public-access failures are logged and the temp-named id is kept.
- replace: attach first, swap the slot, and only then delete the old file (best-effort).
- remove: clear the slot immediately, delete the file best-effort.
A leaked Drive file is acceptable; an entity pointing at a deleted file is not.
"""
import asyncio
import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple, Union

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from humanika.config import Settings, get_settings
from humanika.entities import EntityRepository, EntitySpec, entity_title, get_entity_spec
from humanika.enums import ActivityType, EntityKind
from humanika.errors import (
    AssetUploadError,
    NotFound,
    StorageNotConfigured,
    Unauthorized,
    ValidationError,
    WorkflowError,
)
from humanika.infrastructure.gdrive_store import ObjectStore
from humanika.logging_config import get_logger
from humanika.services.activity_service import Recorder, record_activity
from humanika.services.asset_ids import extract_file_id
from humanika.services.bulk import BulkItemResult

logger = get_logger(__name__)

DEGRADED_RENAME = "rename"
DEGRADED_PUBLIC_ACCESS = "public_access"


class AssetSlotState(str, Enum):
    ABSENT = "ABSENT"
    EXISTING = "EXISTING"
    REPLACING = "REPLACING"
    REMOVED = "REMOVED"


@dataclass
class AssetSlot:
    """Asset field of one entity while an asset operation runs on it."""

    value: Optional[str] = None
    state: AssetSlotState = AssetSlotState.ABSENT

    @classmethod
    def from_value(cls, value: Optional[str]) -> "AssetSlot":
        if value:
            return cls(value=value, state=AssetSlotState.EXISTING)
        return cls()


@dataclass
class UploadedFile:
    data: bytes
    filename: str
    content_type: Optional[str] = None


@dataclass
class AttachResult:
    """file_id is always usable; degraded lists the post-upload steps that failed."""

    file_id: str
    name: str
    degraded: List[str] = field(default_factory=list)


def _now_ms() -> int:
    return int(time.time() * 1000)


def slugify(value: str) -> str:
    slug = re.sub(r"\s+", "-", (value or "").strip().lower())
    slug = re.sub(r"[^a-z0-9_-]+", "", slug)
    return re.sub(r"-{2,}", "-", slug).strip("-") or "file"


def build_file_name(prefix: str, title: str, timestamp_ms: Optional[int] = None) -> str:
    """<prefix>-<slug>-<ms>, e.g. document-annual-report-1700000000000."""
    return f"{prefix}-{slugify(title)}-{timestamp_ms or _now_ms()}"


def _normalize_type_name(value: Optional[str]) -> str:
    return re.sub(r"[\s\-_]", "", (value or "").lower())


def folder_for(spec: EntitySpec, entity: Any, settings: Optional[Settings] = None) -> str:
    """Drive folder of an entity's asset. Proposals and accountability reports have their own folders."""
    settings = settings or get_settings()
    folder: Optional[str] = None
    if spec.kind == EntityKind.DOCUMENT:
        doc_type = _normalize_type_name(getattr(entity, "document_type", None))
        if doc_type == "proposal":
            folder = settings.gdrive_proposal_folder_id
        elif doc_type == "accountabilityreport":
            folder = settings.gdrive_accountability_report_folder_id
    if not folder and spec.folder_setting:
        folder = getattr(settings, spec.folder_setting, None)
    return folder or settings.gdrive_root_folder_id


def validate_upload(file: UploadedFile, settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    if not file.data:
        raise ValidationError("File is empty", extra={"filename": file.filename})
    max_bytes = settings.asset_max_mb * 1024 * 1024
    if len(file.data) > max_bytes:
        raise ValidationError(
            f"File size must be less than {settings.asset_max_mb}MB",
            extra={"filename": file.filename, "size_bytes": len(file.data)},
        )


class AssetManager:
    """Slot-level asset operations over an ObjectStore."""

    def __init__(self, store: ObjectStore, settings: Optional[Settings] = None) -> None:
        self.store = store
        self.settings = settings or get_settings()

    @staticmethod
    def _try(step: Any, *args: Any) -> bool:
        """Post-upload step: an exception counts as a failed step, never propagates."""
        try:
            return bool(step(*args))
        except Exception as e:
            logger.warning("asset.step_error", step=getattr(step, "__name__", str(step)), error=str(e))
            return False

    def attach(self, file: UploadedFile, target_name: str, folder_id: str) -> AttachResult:
        temp_name = f"{self.settings.asset_temp_prefix}{_now_ms()}"
        try:
            file_id = self.store.upload(file.data, temp_name, folder_id, file.content_type)
        except StorageNotConfigured:
            raise
        except Exception as e:
            logger.error("asset.upload_failed", name=target_name, folder_id=folder_id, error=str(e))
            raise AssetUploadError("Failed to upload file", extra={"filename": file.filename}) from e

        result = AttachResult(file_id=file_id, name=temp_name)
        if self._try(self.store.rename, file_id, target_name):
            result.name = target_name
        else:
            result.degraded.append(DEGRADED_RENAME)
            logger.warning("asset.rename_failed", file_id=file_id, temp_name=temp_name, target_name=target_name)
        if not self._try(self.store.set_public_access, file_id):
            result.degraded.append(DEGRADED_PUBLIC_ACCESS)
            logger.warning("asset.public_access_failed", file_id=file_id)

        logger.info("asset.attached", file_id=file_id, name=result.name, degraded=result.degraded)
        return result

    def attach_to_slot(
        self,
        slot: AssetSlot,
        file: UploadedFile,
        target_name: str,
        folder_id: str,
    ) -> Tuple[AttachResult, Optional[str]]:
        """
        Attach and swap into the slot. Returns (result, previous value).
        The previous value is not deleted here; on upload failure the slot is left untouched.
        """
        previous_state = slot.state
        previous = slot.value
        slot.state = AssetSlotState.REPLACING
        try:
            result = self.attach(file, target_name, folder_id)
        except WorkflowError:
            slot.state = previous_state
            raise
        slot.value = result.file_id
        slot.state = AssetSlotState.EXISTING
        return result, previous

    def discard(self, ref: Optional[str]) -> bool:
        """Best-effort delete of a file we own. Foreign URLs and empty values are left alone."""
        file_id = extract_file_id(ref)
        if not file_id:
            if ref:
                logger.info("asset.discard_skipped_foreign", ref=ref)
            return False
        try:
            deleted = self.store.delete(file_id)
        except Exception as e:
            logger.warning("asset.delete_failed", file_id=file_id, error=str(e))
            return False
        if not deleted:
            logger.warning("asset.delete_failed", file_id=file_id)
        return bool(deleted)

    def replace(self, slot: AssetSlot, file: UploadedFile, target_name: str, folder_id: str) -> AttachResult:
        """New file secured first; the old one is deleted only afterwards."""
        result, previous = self.attach_to_slot(slot, file, target_name, folder_id)
        if previous and previous != result.file_id:
            self.discard(previous)
        return result

    def clear(self, slot: AssetSlot) -> Optional[str]:
        """Empty the slot; returns the previous value for a later discard()."""
        previous = slot.value
        slot.value = None
        slot.state = AssetSlotState.REMOVED
        return previous

    def remove(self, slot: AssetSlot) -> bool:
        """Clear the slot, then delete best-effort. Returns whether the file was deleted."""
        return self.discard(self.clear(slot))


def _asset_spec(entity_type: Union[str, EntityKind]) -> EntitySpec:
    spec = get_entity_spec(entity_type)
    if not spec.asset_field:
        raise ValidationError(f"{spec.label} has no asset", extra={"entity_type": spec.kind.value})
    return spec


async def _load(db: AsyncSession, spec: EntitySpec, entity_id: str) -> Any:
    entity = await EntityRepository(db, spec.kind).find_unique(entity_id)
    if entity is None:
        raise NotFound(f"{spec.label} not found", extra={"entity_type": spec.kind.value, "entity_id": entity_id})
    return entity


async def replace_entity_asset(
    db: AsyncSession,
    manager: AssetManager,
    entity_type: Union[str, EntityKind],
    entity_id: str,
    file: UploadedFile,
    user_id: Optional[str],
    recorder: Optional[Recorder] = None,
) -> Tuple[Any, AttachResult]:
    """
    Upload a new asset for the entity. The entity row points at the new id (committed)
    before the old file is deleted.
    """
    if not user_id:
        raise Unauthorized("Caller is required")
    spec = _asset_spec(entity_type)
    validate_upload(file, manager.settings)
    entity = await _load(db, spec, entity_id)

    slot = AssetSlot.from_value(getattr(entity, spec.asset_field))
    target_name = build_file_name(spec.file_prefix or spec.kind.value.lower(), entity_title(spec, entity))
    # Drive client calls block; keep them off the event loop
    result, previous = await asyncio.to_thread(
        manager.attach_to_slot, slot, file, target_name, folder_for(spec, entity, manager.settings)
    )

    setattr(entity, spec.asset_field, slot.value)
    # committed before the old file goes away
    await db.commit()

    old_deleted = None
    if previous and previous != result.file_id:
        old_deleted = await asyncio.to_thread(manager.discard, previous)
    logger.info(
        "asset.replaced",
        entity_type=spec.kind.value,
        entity_id=entity_id,
        file_id=result.file_id,
        old_deleted=old_deleted,
    )
    await record_activity(
        recorder,
        user_id=user_id,
        activity_type=ActivityType.UPLOAD,
        entity_type=spec.label,
        entity_id=entity_id,
        description=f"Uploaded {spec.asset_field} for {spec.label.lower()}: {entity_title(spec, entity)}",
        metadata={
            "oldData": {spec.asset_field: previous},
            "newData": {spec.asset_field: result.file_id, "degraded": result.degraded},
        },
    )
    return entity, result


async def remove_entity_asset(
    db: AsyncSession,
    manager: AssetManager,
    entity_type: Union[str, EntityKind],
    entity_id: str,
    user_id: Optional[str],
    recorder: Optional[Recorder] = None,
) -> Tuple[Any, bool]:
    """Clear the entity's asset field (committed first), then delete the file best-effort."""
    if not user_id:
        raise Unauthorized("Caller is required")
    spec = _asset_spec(entity_type)
    entity = await _load(db, spec, entity_id)

    slot = AssetSlot.from_value(getattr(entity, spec.asset_field))
    previous = manager.clear(slot)
    setattr(entity, spec.asset_field, None)
    await db.commit()

    deleted = await asyncio.to_thread(manager.discard, previous)
    logger.info("asset.removed", entity_type=spec.kind.value, entity_id=entity_id, deleted=deleted)
    await record_activity(
        recorder,
        user_id=user_id,
        activity_type=ActivityType.UPDATE,
        entity_type=spec.label,
        entity_id=entity_id,
        description=f"Removed {spec.asset_field} from {spec.label.lower()}: {entity_title(spec, entity)}",
        metadata={"oldData": {spec.asset_field: previous}, "newData": {spec.asset_field: None}},
    )
    return entity, deleted


async def delete_entities_with_assets(
    session_factory: async_sessionmaker[AsyncSession],
    manager: AssetManager,
    entity_type: Union[str, EntityKind],
    entity_ids: Sequence[str],
    user_id: Optional[str],
    recorder: Optional[Recorder] = None,
) -> List[BulkItemResult]:
    """
    Delete entities (and their approval requests) one by one, each in its own transaction,
    then delete each one's asset best-effort. Per-item results; one failure never stops the loop.
    """
    if not user_id:
        raise Unauthorized("Caller is required")
    spec = get_entity_spec(entity_type)

    results: List[BulkItemResult] = []
    for entity_id in entity_ids:
        try:
            async with session_factory() as db:
                entity = await EntityRepository(db, spec.kind).delete(entity_id)
                if entity is None:
                    raise NotFound(f"{spec.label} not found", extra={"entity_id": entity_id})
                asset_ref = getattr(entity, spec.asset_field) if spec.asset_field else None
                title = entity_title(spec, entity)
                await db.commit()
        except WorkflowError as e:
            logger.warning("asset.bulk_item_failed", entity_type=spec.kind.value, entity_id=entity_id, error=e.code)
            results.append(BulkItemResult(id=entity_id, ok=False, error=e.code, detail=e.message))
            continue
        except Exception as e:
            logger.error("asset.bulk_item_failed", entity_type=spec.kind.value, entity_id=entity_id, error=str(e))
            results.append(BulkItemResult(id=entity_id, ok=False, error="internal_error", detail=str(e)))
            continue

        asset_deleted = await asyncio.to_thread(manager.discard, asset_ref) if asset_ref else None
        results.append(BulkItemResult(id=entity_id, ok=True, status="deleted", asset_deleted=asset_deleted))
        await record_activity(
            recorder,
            user_id=user_id,
            activity_type=ActivityType.DELETE,
            entity_type=spec.label,
            entity_id=entity_id,
            description=f"Deleted {spec.label.lower()}: {title}",
            metadata={"oldData": {"title": title, spec.asset_field or "asset": asset_ref}, "newData": None},
        )

    logger.info(
        "asset.bulk_deleted",
        entity_type=spec.kind.value,
        total=len(results),
        failed=sum(1 for r in results if not r.ok),
    )
    return results
