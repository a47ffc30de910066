"""
Multipart form parsing for record and profile requests.

Form(...) parameters cannot tell an absent field from an empty one, which
partial record updates depend on, so these dependencies read the form
directly:
    - absent text field → None
    - empty text field  → ""
    - an empty file part (no file chosen in a browser form) is ignored
"""
import logging
from typing import Dict, Optional, Tuple

from fastapi import Request
from starlette.datastructures import FormData, UploadFile

from core.exceptions import ValidationError
from models.record import RecordFields
from models.upload import UploadedFile

logger = logging.getLogger(__name__)

RECORD_TEXT_FIELDS = {
    "title": "title",
    "medicalHistory": "medical_history",
    "doctorNotes": "doctor_notes",
    "vitals": "vitals",
}
PROFILE_PICTURE_FIELD = "profile"


async def _to_uploaded_file(upload: UploadFile) -> Optional[UploadedFile]:
    content = await upload.read()
    if not upload.filename and not content:
        return None
    return UploadedFile(
        filename=upload.filename or "",
        content=content,
        content_type=upload.content_type,
    )


def _text_value(form: FormData, key: str) -> Optional[str]:
    values = form.getlist(key)
    if not values:
        return None
    if any(not isinstance(value, str) for value in values):
        raise ValidationError(f"Field '{key}' must be text, not a file", field=key)
    return values[-1]


async def _files(form: FormData, skip: Tuple[str, ...] = ()) -> Dict[str, UploadedFile]:
    files: Dict[str, UploadedFile] = {}
    for key in dict.fromkeys(form.keys()):
        if key in skip:
            continue
        uploads = [value for value in form.getlist(key) if isinstance(value, UploadFile)]
        received = [f for f in [await _to_uploaded_file(u) for u in uploads] if f is not None]
        if len(received) > 1:
            raise ValidationError(f"Only one file is allowed for '{key}'", field=key)
        if received:
            files[key] = received[0]
    return files


async def read_record_form(request: Request) -> Tuple[RecordFields, Dict[str, UploadedFile]]:
    """
    Read the text fields and attachment files of a record create/update.

    Returns:
        (RecordFields, {slot: UploadedFile}); unknown file fields are passed
        through so the service can reject them.
    """
    async with request.form() as form:
        fields = RecordFields(**{
            attr: _text_value(form, key) for key, attr in RECORD_TEXT_FIELDS.items()
        })
        files = await _files(form, skip=tuple(RECORD_TEXT_FIELDS))
    logger.debug("Record form received", extra={"file_fields": sorted(files)})
    return fields, files


async def read_profile_form(
    request: Request
) -> Tuple[Optional[str], Optional[str], Optional[UploadedFile]]:
    """Read name, email and an optional profile picture."""
    async with request.form() as form:
        name = _text_value(form, "name")
        email = _text_value(form, "email")
        files = await _files(form, skip=("name", "email"))

    unexpected = sorted(set(files) - {PROFILE_PICTURE_FIELD})
    if unexpected:
        raise ValidationError(f"Unexpected file field(s): {', '.join(unexpected)}")
    return name, email, files.get(PROFILE_PICTURE_FIELD)
