"""
Tests for RecordService, the record lifecycle manager.

These call the service directly against a temporary database and upload
directory; ownership is exercised with plain owner ids.
"""
import sqlite3

import pytest

from core.exceptions import (
    FileTooLargeError,
    InvalidFileTypeError,
    RecordNotFoundError,
    StorageError,
    UnauthorizedError,
    ValidationError,
)
from models.record import RecordFields, Vitals
from models.upload import UploadedFile
from repositories import RecordRepository
from services import AttachmentStore, RecordService

OWNER = "owner-a"
INTRUDER = "owner-b"


def pdf(name="report.pdf", content=b"%PDF-1.4 lab values"):
    return UploadedFile(filename=name, content=content, content_type="application/pdf")


def png(name="scan.png"):
    return UploadedFile(filename=name, content=b"\x89PNG\r\n\x1a\n" + b"\x00" * 32, content_type="image/png")


class FailingDeleteStore(AttachmentStore):
    """Attachment store whose deletions always fail."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.delete_attempts = []

    def delete(self, reference):
        self.delete_attempts.append(reference)
        raise StorageError(operation="delete_attachment")


class FailOnSecondStore(AttachmentStore):
    """Attachment store that fails to write the second file it receives."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls = 0

    def store(self, category, file):
        self.calls += 1
        if self.calls == 2:
            raise StorageError(operation="store_attachment")
        return super().store(category, file)


# =============================================================================
# CREATE
# =============================================================================

def test_create_sets_owner_and_equal_timestamps(record_service):
    """A new record belongs to the caller and has createdAt == updatedAt."""
    record = record_service.create(OWNER, RecordFields(title="Checkup"))

    assert record.id
    assert record.owner_id == OWNER
    assert record.created_at == record.updated_at
    assert record.medical_history == ""
    assert record.doctor_notes == ""
    assert record.vitals == Vitals()
    assert record.files.lab_report == ""
    assert record.files.prescription == ""


def test_create_parses_vitals(record_service):
    record = record_service.create(
        OWNER,
        RecordFields(title="Checkup", vitals='{"bloodPressure": "120/80", "heartRate": 72}'),
    )
    assert record.vitals.blood_pressure == "120/80"
    assert record.vitals.heart_rate == "72"
    assert record.vitals.weight is None


@pytest.mark.parametrize("title", [None, "", "   "])
def test_create_requires_title(record_service, title):
    with pytest.raises(ValidationError):
        record_service.create(OWNER, RecordFields(title=title))


@pytest.mark.parametrize("vitals", ["not json", "[1, 2]", '"120/80"', '{"heartRate": {"x": 1}}'])
def test_create_rejects_malformed_vitals(record_service, vitals):
    with pytest.raises(ValidationError):
        record_service.create(OWNER, RecordFields(title="Checkup", vitals=vitals))


def test_create_with_attachments(record_service, attachment_store):
    record = record_service.create(
        OWNER,
        RecordFields(title="Labs"),
        {"labReport": pdf(), "prescription": png()},
    )

    assert record.files.lab_report.startswith("/uploads/records/")
    assert record.files.lab_report.endswith(".pdf")
    assert record.files.prescription.endswith(".png")
    assert attachment_store.exists(record.files.lab_report)
    assert attachment_store.exists(record.files.prescription)


def test_create_rejects_unknown_slot_before_writing(record_service, upload_dir):
    with pytest.raises(ValidationError):
        record_service.create(OWNER, RecordFields(title="Labs"), {"xray": png()})

    assert list((upload_dir / "records").iterdir()) == []


def test_create_rejects_bad_file_type(record_service, upload_dir):
    with pytest.raises(InvalidFileTypeError):
        record_service.create(
            OWNER, RecordFields(title="Labs"), {"labReport": pdf(name="payload.exe")}
        )
    assert list((upload_dir / "records").iterdir()) == []


def test_create_rejects_oversized_file(record_service):
    too_big = pdf(content=b"x" * (64 * 1024 + 1))
    with pytest.raises(FileTooLargeError):
        record_service.create(OWNER, RecordFields(title="Labs"), {"labReport": too_big})


def test_create_cleans_up_stored_files_when_a_later_write_fails(record_repo, upload_dir):
    store = FailOnSecondStore(upload_dir=str(upload_dir), max_size=1024)
    service = RecordService(record_repository=record_repo, attachment_store=store)

    with pytest.raises(StorageError):
        service.create(OWNER, RecordFields(title="Labs"), {"labReport": pdf(), "prescription": png()})

    assert list((upload_dir / "records").iterdir()) == []
    assert service.list(OWNER) == []


# =============================================================================
# LIST / GET
# =============================================================================

def test_list_empty_for_owner_without_records(record_service):
    assert record_service.list(OWNER) == []


def test_list_returns_only_callers_records_newest_first(record_service):
    first = record_service.create(OWNER, RecordFields(title="First"))
    second = record_service.create(OWNER, RecordFields(title="Second"))
    record_service.create(INTRUDER, RecordFields(title="Not mine"))

    records = record_service.list(OWNER)

    assert [r.id for r in records] == [second.id, first.id]


def test_get_own_record(record_service):
    created = record_service.create(OWNER, RecordFields(title="Checkup"))
    fetched = record_service.get(created.id, OWNER)
    assert fetched == created


def test_get_other_users_record_is_unauthorized(record_service):
    created = record_service.create(OWNER, RecordFields(title="Checkup"))
    with pytest.raises(UnauthorizedError):
        record_service.get(created.id, INTRUDER)


def test_get_missing_record(record_service):
    with pytest.raises(RecordNotFoundError):
        record_service.get("does-not-exist", OWNER)


# =============================================================================
# UPDATE
# =============================================================================

def test_update_omitted_fields_are_kept(record_service):
    created = record_service.create(
        OWNER, RecordFields(title="Checkup", medical_history="Asthma", doctor_notes="Rest")
    )

    updated = record_service.update(created.id, OWNER, RecordFields(doctor_notes="Inhaler"))

    assert updated.title == "Checkup"
    assert updated.medical_history == "Asthma"
    assert updated.doctor_notes == "Inhaler"
    assert updated.created_at == created.created_at
    assert updated.updated_at >= created.updated_at


def test_update_with_empty_string_clears_field(record_service):
    created = record_service.create(OWNER, RecordFields(title="Checkup", medical_history="Asthma"))

    updated = record_service.update(created.id, OWNER, RecordFields(title="", medical_history=""))

    assert updated.title == ""
    assert updated.medical_history == ""
    assert record_service.get(created.id, OWNER).title == ""


def test_update_replaces_vitals_wholesale(record_service):
    created = record_service.create(
        OWNER,
        RecordFields(title="Checkup", vitals='{"bloodPressure": "120/80", "heartRate": "70"}'),
    )

    updated = record_service.update(created.id, OWNER, RecordFields(vitals='{"heartRate": "75"}'))

    assert updated.vitals.heart_rate == "75"
    assert updated.vitals.blood_pressure is None


def test_update_blank_vitals_leaves_vitals_unchanged(record_service):
    created = record_service.create(
        OWNER, RecordFields(title="Checkup", vitals='{"weight": "70kg"}')
    )
    updated = record_service.update(created.id, OWNER, RecordFields(vitals=""))
    assert updated.vitals.weight == "70kg"


def test_update_by_non_owner_changes_nothing(record_service, attachment_store):
    created = record_service.create(OWNER, RecordFields(title="Checkup"), {"labReport": pdf()})

    with pytest.raises(UnauthorizedError):
        record_service.update(
            created.id, INTRUDER, RecordFields(title="Hijacked"), {"labReport": pdf()}
        )

    stored = record_service.get(created.id, OWNER)
    assert stored.title == "Checkup"
    assert stored.files.lab_report == created.files.lab_report
    assert attachment_store.exists(created.files.lab_report)


def test_update_missing_record(record_service):
    with pytest.raises(RecordNotFoundError):
        record_service.update("does-not-exist", OWNER, RecordFields(title="x"))


def test_update_replaces_attachment(record_service, attachment_store):
    created = record_service.create(OWNER, RecordFields(title="Labs"), {"labReport": pdf()})
    old_reference = created.files.lab_report

    updated = record_service.update(
        created.id, OWNER, RecordFields(), {"labReport": pdf(name="new.pdf")}
    )

    assert updated.files.lab_report != old_reference
    assert attachment_store.exists(updated.files.lab_report)
    assert not attachment_store.exists(old_reference)


def test_update_without_files_keeps_attachments(record_service):
    created = record_service.create(
        OWNER, RecordFields(title="Labs"), {"labReport": pdf(), "prescription": png()}
    )
    updated = record_service.update(created.id, OWNER, RecordFields(title="Renamed"))
    assert updated.files == created.files


def test_update_succeeds_when_old_attachment_cannot_be_deleted(record_repo, upload_dir):
    store = FailingDeleteStore(upload_dir=str(upload_dir), max_size=1024)
    service = RecordService(record_repository=record_repo, attachment_store=store)
    created = service.create(OWNER, RecordFields(title="Labs"), {"labReport": pdf()})

    updated = service.update(created.id, OWNER, RecordFields(), {"labReport": pdf(name="v2.pdf")})

    assert store.delete_attempts == [created.files.lab_report]
    assert updated.files.lab_report != created.files.lab_report
    assert store.exists(updated.files.lab_report)


def test_update_with_malformed_vitals_changes_nothing(record_service):
    created = record_service.create(OWNER, RecordFields(title="Checkup"))
    with pytest.raises(ValidationError):
        record_service.update(created.id, OWNER, RecordFields(title="New", vitals="{oops"))
    assert record_service.get(created.id, OWNER).title == "Checkup"


def test_rejected_replacement_keeps_old_attachment(record_service, attachment_store):
    created = record_service.create(OWNER, RecordFields(title="Labs"), {"labReport": pdf(name="a.pdf")})
    executable = UploadedFile(filename="evil.exe", content=b"MZ", content_type="application/octet-stream")

    with pytest.raises(InvalidFileTypeError):
        record_service.update(created.id, OWNER, RecordFields(), {"labReport": executable})

    assert attachment_store.exists(created.files.lab_report)
    assert record_service.get(created.id, OWNER).files.lab_report == created.files.lab_report


def test_update_checks_every_upload_before_replacing_any(record_service, attachment_store, upload_dir):
    created = record_service.create(OWNER, RecordFields(title="Labs"), {"labReport": pdf()})
    too_big = pdf(name="huge.pdf", content=b"x" * (attachment_store.max_size + 1))

    with pytest.raises(FileTooLargeError):
        record_service.update(
            created.id, OWNER, RecordFields(), {"labReport": pdf(name="v2.pdf"), "prescription": too_big}
        )

    assert attachment_store.exists(created.files.lab_report)
    assert len(list((upload_dir / "records").iterdir())) == 1


def test_update_cleans_up_stored_files_when_a_later_write_fails(record_repo, upload_dir):
    store = FailOnSecondStore(upload_dir=str(upload_dir), max_size=1024)
    service = RecordService(record_repository=record_repo, attachment_store=store)
    created = service.create(OWNER, RecordFields(title="Labs"))

    with pytest.raises(StorageError):
        service.update(created.id, OWNER, RecordFields(), {"labReport": pdf(), "prescription": png()})

    assert list((upload_dir / "records").iterdir()) == []
    assert service.get(created.id, OWNER).files.references() == []


def test_update_cleans_up_stored_files_when_save_fails(temp_db, record_repo, attachment_store, upload_dir):
    class FailingSaveRepository(RecordRepository):
        def save(self, record):
            raise sqlite3.OperationalError("database is locked")

    failing_repo = FailingSaveRepository(db=temp_db)
    created = RecordService(record_repo, attachment_store).create(OWNER, RecordFields(title="Labs"))
    service = RecordService(failing_repo, attachment_store)

    with pytest.raises(StorageError):
        service.update(created.id, OWNER, RecordFields(title="Renamed"), {"labReport": pdf()})

    assert list((upload_dir / "records").iterdir()) == []
    assert service.get(created.id, OWNER).title == "Labs"


# =============================================================================
# DELETE
# =============================================================================

def test_delete_removes_record_and_attachments(record_service, record_repo, attachment_store):
    created = record_service.create(
        OWNER, RecordFields(title="Labs"), {"labReport": pdf(), "prescription": png()}
    )

    record_service.delete(created.id, OWNER)

    assert record_repo.find_by_id(created.id) is None
    assert not attachment_store.exists(created.files.lab_report)
    assert not attachment_store.exists(created.files.prescription)


def test_delete_twice_is_not_found(record_service):
    created = record_service.create(OWNER, RecordFields(title="Checkup"))
    record_service.delete(created.id, OWNER)

    with pytest.raises(RecordNotFoundError):
        record_service.delete(created.id, OWNER)


def test_delete_by_non_owner_keeps_record(record_service, record_repo):
    created = record_service.create(OWNER, RecordFields(title="Checkup"))

    with pytest.raises(UnauthorizedError):
        record_service.delete(created.id, INTRUDER)

    assert record_repo.find_by_id(created.id) is not None


def test_delete_attempts_every_attachment_even_when_deletion_fails(record_repo, upload_dir):
    store = FailingDeleteStore(upload_dir=str(upload_dir), max_size=1024)
    service = RecordService(record_repository=record_repo, attachment_store=store)
    created = service.create(
        OWNER, RecordFields(title="Labs"), {"labReport": pdf(), "prescription": png()}
    )

    service.delete(created.id, OWNER)

    assert store.delete_attempts == [created.files.lab_report, created.files.prescription]
    assert record_repo.find_by_id(created.id) is None


def test_delete_all_for_owner(record_service, attachment_store):
    mine = record_service.create(OWNER, RecordFields(title="Labs"), {"labReport": pdf()})
    record_service.create(OWNER, RecordFields(title="Second"))
    theirs = record_service.create(INTRUDER, RecordFields(title="Theirs"))

    assert record_service.delete_all_for_owner(OWNER) == 2

    assert record_service.list(OWNER) == []
    assert not attachment_store.exists(mine.files.lab_report)
    assert record_service.get(theirs.id, INTRUDER).title == "Theirs"


# =============================================================================
# END TO END
# =============================================================================

def test_record_lifecycle(record_service, record_repo, attachment_store):
    """Create without files, attach a lab report, then delete."""
    created = record_service.create(
        OWNER, RecordFields(title="Checkup", vitals='{"bloodPressure": "120/80"}')
    )
    assert created.files.lab_report == ""

    updated = record_service.update(created.id, OWNER, RecordFields(), {"labReport": pdf()})
    reference = updated.files.lab_report
    assert reference
    assert attachment_store.exists(reference)
    assert updated.vitals.blood_pressure == "120/80"

    record_service.delete(created.id, OWNER)

    assert record_repo.find_by_id(created.id) is None
    assert not attachment_store.exists(reference)
