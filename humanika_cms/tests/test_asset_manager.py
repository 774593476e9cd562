"""
Asset lifecycle: temp upload -> rename -> public, replace ordering, best-effort removal.
The object store is the in-memory FakeObjectStore from conftest.
"""
import threading

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from humanika.entities import get_entity_spec
from humanika.enums import ActivityType
from humanika.errors import AssetUploadError, NotFound, Unauthorized, ValidationError
from humanika.models import ApprovalRequest, Document, Event, Letter, WorkProgram
from humanika.services.asset_service import (
    AssetSlot,
    AssetSlotState,
    UploadedFile,
    build_file_name,
    delete_entities_with_assets,
    folder_for,
    remove_entity_asset,
    replace_entity_asset,
    slugify,
)

PDF = UploadedFile(data=b"%PDF-1.4 test", filename="report.pdf", content_type="application/pdf")


def test_file_name_is_prefix_slug_timestamp() -> None:
    assert slugify("  Annual Report 2024!! ") == "annual-report-2024"
    assert build_file_name("document", "Annual Report", 1700000000000) == "document-annual-report-1700000000000"
    assert build_file_name("letter", "", 1) == "letter-file-1"


def test_document_folder_by_type(settings) -> None:
    spec = get_entity_spec("DOCUMENT")
    assert folder_for(spec, Document(name="p", document_type="Proposal"), settings) == "proposals-folder"
    assert folder_for(spec, Document(name="d", document_type="Minutes"), settings) == "documents-folder"
    # no accountability folder configured -> document folder
    assert folder_for(spec, Document(name="a", document_type="Accountability Report"), settings) == "documents-folder"
    assert folder_for(get_entity_spec("ARTICLE"), object(), settings) == "root-folder"


def test_attach_uploads_temp_then_renames(manager, store) -> None:
    result = manager.attach(PDF, "document-report-1", "documents-folder")

    assert result.degraded == []
    assert result.name == "document-report-1"
    upload_call = store.calls[0]
    assert upload_call[0] == "upload"
    assert upload_call[1].startswith("temp_")
    assert store.files[result.file_id]["name"] == "document-report-1"
    assert store.files[result.file_id]["public"] is True


def test_attach_survives_rename_failure(manager, store) -> None:
    store.fail_rename = True
    result = manager.attach(PDF, "document-report-1", "documents-folder")

    assert result.file_id in store.files
    assert result.name.startswith("temp_")
    assert store.files[result.file_id]["name"] == result.name
    assert result.degraded == ["rename"]


def test_attach_survives_public_access_error(manager, store) -> None:
    store.fail_public_access = True
    result = manager.attach(PDF, "x", "f")
    assert result.file_id in store.files
    assert result.degraded == ["public_access"]


def test_attach_upload_failure_raises_and_keeps_slot(manager, store) -> None:
    store.fail_upload = True
    slot = AssetSlot.from_value("old-file")
    with pytest.raises(AssetUploadError):
        manager.replace(slot, PDF, "x", "f")
    assert slot.value == "old-file"
    assert slot.state == AssetSlotState.EXISTING
    assert not any(c[0] == "delete" for c in store.calls)


def test_replace_deletes_old_only_after_new_is_attached(manager, store) -> None:
    old_id = store.put()
    slot = AssetSlot.from_value(old_id)

    result = manager.replace(slot, PDF, "letter-x-1", "letters-folder")

    assert slot.value == result.file_id
    assert slot.state == AssetSlotState.EXISTING
    ops = [c[0] for c in store.calls]
    assert ops.index("delete") > ops.index("set_public_access")
    assert old_id not in store.files


def test_remove_clears_slot_even_if_delete_fails(manager, store) -> None:
    old_id = store.put()
    store.fail_delete = True
    slot = AssetSlot.from_value(old_id)

    assert manager.remove(slot) is False
    assert slot.value is None
    assert slot.state == AssetSlotState.REMOVED


def test_discard_ignores_foreign_urls(manager, store) -> None:
    assert manager.discard("https://cdn.example.org/poster.png") is False
    assert manager.discard(None) is False
    assert store.calls == []


def test_discard_accepts_legacy_drive_url(manager, store) -> None:
    old_id = store.put()
    assert manager.discard(f"https://drive.google.com/file/d/{old_id}/view") is True
    assert ("delete", old_id) in store.calls


@pytest.mark.asyncio
async def test_replace_entity_asset_points_entity_at_new_file(db: AsyncSession, seed, manager, store, recorder) -> None:
    old_id = store.put()
    await seed(Document(id="D1", name="Annual Report", document_type="Proposal", document=old_id))

    entity, result = await replace_entity_asset(db, manager, "DOCUMENT", "D1", PDF, "U1", recorder=recorder)

    assert entity.document == result.file_id
    assert result.name.startswith("document-annual-report-")
    assert store.calls[0][2] == "proposals-folder"
    assert old_id not in store.files
    assert recorder.records[0]["activity_type"] == ActivityType.UPLOAD
    assert recorder.records[0]["metadata"]["oldData"] == {"document": old_id}


@pytest.mark.asyncio
async def test_replace_entity_asset_upload_failure_keeps_entity(db: AsyncSession, seed, manager, store) -> None:
    old_id = store.put()
    await seed(Event(id="E1", name="Seminar", thumbnail=old_id))
    store.fail_upload = True

    with pytest.raises(AssetUploadError):
        await replace_entity_asset(db, manager, "EVENT", "E1", PDF, "U1")

    event = await db.get(Event, "E1")
    assert event.thumbnail == old_id
    assert old_id in store.files


@pytest.mark.asyncio
async def test_replace_entity_asset_validation(db: AsyncSession, seed, manager, store) -> None:
    await seed(WorkProgram(id="W1", name="Plan"), Letter(id="L1", regarding="x"))

    with pytest.raises(Unauthorized):
        await replace_entity_asset(db, manager, "LETTER", "L1", PDF, None)
    with pytest.raises(ValidationError):
        await replace_entity_asset(db, manager, "WORK_PROGRAM", "W1", PDF, "U1")
    with pytest.raises(ValidationError):
        await replace_entity_asset(db, manager, "LETTER", "L1", UploadedFile(data=b"", filename="e.pdf"), "U1")
    too_big = UploadedFile(data=b"x" * (1024 * 1024 + 1), filename="big.pdf")
    with pytest.raises(ValidationError):
        await replace_entity_asset(db, manager, "LETTER", "L1", too_big, "U1")
    with pytest.raises(NotFound):
        await replace_entity_asset(db, manager, "LETTER", "nope", PDF, "U1")
    assert store.calls == []


@pytest.mark.asyncio
async def test_remove_entity_asset_is_best_effort(db: AsyncSession, seed, manager, store, recorder) -> None:
    old_id = store.put()
    await seed(Letter(id="L1", regarding="Invitation", letter=old_id))
    store.fail_delete = True

    entity, deleted = await remove_entity_asset(db, manager, "LETTER", "L1", "U1", recorder=recorder)

    assert deleted is False
    assert entity.letter is None
    assert recorder.records[0]["activity_type"] == ActivityType.UPDATE


@pytest.mark.asyncio
async def test_bulk_delete_entities_with_assets(session_factory, seed, manager, store, recorder) -> None:
    owned = store.put()
    await seed(
        Event(id="E1", name="Seminar", thumbnail=owned),
        Event(id="E2", name="Workshop", thumbnail="https://cdn.example.org/poster.png"),
        ApprovalRequest(id="R1", entity_type="EVENT", entity_id="E1", requested_by="U1"),
    )

    results = await delete_entities_with_assets(
        session_factory, manager, "EVENT", ["E1", "missing", "E2"], "U1", recorder=recorder
    )

    assert [r.ok for r in results] == [True, False, True]
    assert results[0].asset_deleted is True
    assert results[1].error == "not_found"
    assert results[2].asset_deleted is False
    assert owned not in store.files
    async with session_factory() as db:
        assert await db.get(Event, "E1") is None
        assert await db.get(Event, "E2") is None
        assert await db.get(ApprovalRequest, "R1") is None
    assert [r["activity_type"] for r in recorder.records] == [ActivityType.DELETE, ActivityType.DELETE]


@pytest.mark.asyncio
async def test_bulk_delete_continues_when_recorder_raises(session_factory, seed, manager, store, recorder) -> None:
    first, second = store.put(), store.put()
    await seed(Event(id="E1", name="a", thumbnail=first), Event(id="E2", name="b", thumbnail=second))
    recorder.fail = True

    results = await delete_entities_with_assets(session_factory, manager, "EVENT", ["E1", "E2"], "U1", recorder=recorder)

    assert [r.ok for r in results] == [True, True]
    assert first not in store.files
    assert second not in store.files
    async with session_factory() as db:
        assert await db.get(Event, "E2") is None


@pytest.mark.asyncio
async def test_replace_and_remove_succeed_when_recorder_raises(
    db: AsyncSession, seed, manager, store, recorder
) -> None:
    old_id = store.put()
    await seed(Letter(id="L1", regarding="Invitation", letter=old_id))
    recorder.fail = True

    entity, result = await replace_entity_asset(db, manager, "LETTER", "L1", PDF, "U1", recorder=recorder)
    assert entity.letter == result.file_id
    assert old_id not in store.files

    entity, deleted = await remove_entity_asset(db, manager, "LETTER", "L1", "U1", recorder=recorder)
    assert deleted is True
    assert entity.letter is None


@pytest.mark.asyncio
async def test_entity_level_drive_calls_run_off_the_event_loop(db: AsyncSession, seed, manager, store) -> None:
    old_id = store.put()
    await seed(Event(id="E1", name="Seminar", thumbnail=old_id))
    threads = []
    upload, delete = store.upload, store.delete

    def tracking_upload(*args, **kwargs):
        threads.append(threading.get_ident())
        return upload(*args, **kwargs)

    def tracking_delete(*args, **kwargs):
        threads.append(threading.get_ident())
        return delete(*args, **kwargs)

    store.upload, store.delete = tracking_upload, tracking_delete
    await replace_entity_asset(db, manager, "EVENT", "E1", PDF, "U1")

    assert len(threads) == 2
    assert threading.get_ident() not in threads
