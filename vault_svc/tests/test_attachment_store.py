"""
Tests for the on-disk attachment store and upload validation.
"""
import re

import pytest

from core.exceptions import FileTooLargeError, InvalidFileTypeError, StorageError, ValidationError
from models.upload import UploadedFile
from services.attachment_store import generate_filename


def test_generate_filename_format():
    name = generate_filename(".pdf")
    assert re.fullmatch(r"\d{13}-[0-9a-f]{16}\.pdf", name)
    assert generate_filename(".pdf") != name


def test_store_writes_file_under_category(attachment_store, upload_dir):
    reference = attachment_store.store(
        "records", UploadedFile(filename="My Lab Report.PDF", content=b"%PDF data")
    )

    assert reference.startswith("/uploads/records/")
    assert reference.endswith(".pdf")
    # Client file names are never used
    assert "Lab" not in reference

    stored = upload_dir / "records" / reference.rsplit("/", 1)[1]
    assert stored.read_bytes() == b"%PDF data"
    assert attachment_store.resolve(reference) == stored.resolve()


def test_store_profile_accepts_images_only(attachment_store):
    reference = attachment_store.store("profile", UploadedFile(filename="me.jpg", content=b"\xff\xd8\xff"))
    assert reference.startswith("/uploads/profile/")

    with pytest.raises(InvalidFileTypeError):
        attachment_store.store("profile", UploadedFile(filename="cv.pdf", content=b"%PDF"))


def test_validate_checks_without_writing(attachment_store, upload_dir):
    assert attachment_store.validate("records", UploadedFile(filename="scan.PNG", content=b"\x89PNG")) == ".png"

    with pytest.raises(InvalidFileTypeError):
        attachment_store.validate("profile", UploadedFile(filename="cv.pdf", content=b"%PDF"))
    with pytest.raises(ValidationError):
        attachment_store.validate("records", UploadedFile(filename="empty.pdf", content=b""))

    assert list((upload_dir / "records").iterdir()) == []
    assert list((upload_dir / "profile").iterdir()) == []


def test_store_rejects_file_without_extension(attachment_store):
    with pytest.raises(InvalidFileTypeError):
        attachment_store.store("records", UploadedFile(filename="README", content=b"text"))


def test_store_rejects_empty_file(attachment_store):
    with pytest.raises(ValidationError):
        attachment_store.store("records", UploadedFile(filename="empty.pdf", content=b""))


def test_store_rejects_oversized_file(attachment_store):
    with pytest.raises(FileTooLargeError) as exc_info:
        attachment_store.store(
            "records", UploadedFile(filename="big.pdf", content=b"x" * (attachment_store.max_size + 1))
        )
    assert exc_info.value.status_code == 413


def test_store_unknown_category(attachment_store):
    with pytest.raises(ValueError):
        attachment_store.store("avatars", UploadedFile(filename="me.png", content=b"png"))


def test_store_write_failure_raises_storage_error(attachment_store, upload_dir):
    (upload_dir / "records").rmdir()
    with pytest.raises(StorageError):
        attachment_store.store("records", UploadedFile(filename="a.pdf", content=b"%PDF"))


def test_delete_removes_file(attachment_store):
    reference = attachment_store.store("records", UploadedFile(filename="a.pdf", content=b"%PDF"))

    assert attachment_store.delete(reference) is True
    assert not attachment_store.exists(reference)


def test_delete_missing_file_is_noop(attachment_store):
    assert attachment_store.delete("/uploads/records/1700000000000-0000000000000000.pdf") is False


@pytest.mark.parametrize("reference", [
    "",
    "records/a.pdf",
    "/uploads/a.pdf",
    "/uploads/secret/a.pdf",
    "/uploads/records/../../test.db",
    "/uploads/records/..",
    "/uploads/records/sub/a.pdf",
])
def test_invalid_references_are_never_resolved(attachment_store, reference):
    assert attachment_store.resolve(reference) is None
    assert attachment_store.exists(reference) is False
    assert attachment_store.delete(reference) is False


def test_delete_does_not_escape_upload_root(attachment_store, tmp_path):
    outside = tmp_path / "keep.txt"
    outside.write_text("keep")

    assert attachment_store.delete("/uploads/records/../../keep.txt") is False
    assert outside.exists()
