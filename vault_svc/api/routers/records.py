"""
Records router - medical record CRUD with attachment uploads.

All endpoints require a Bearer access token. Create and update accept
multipart/form-data with text fields (title, medicalHistory, doctorNotes,
vitals as JSON text) and up to one file each for labReport and prescription.

Architecture:
    HTTP Request → Router (this file) → RecordService → RecordRepository → Database
                                                      → AttachmentStore  → disk
"""
import logging
from typing import Dict, List, Tuple

from fastapi import APIRouter, Depends

from api.forms import read_record_form
from core.auth import get_current_user_id
from core.dependencies import get_record_service
from models.record import RecordFields
from models.upload import UploadedFile
from schemas import MessageResponse, RecordResponse
from services import RecordService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/records", tags=["Records"])

ERROR_RESPONSES = {
    401: {"description": "Missing, invalid or expired access token"},
    403: {"description": "Record belongs to another user"},
    404: {"description": "Record not found"},
}


@router.post(
    "",
    response_model=RecordResponse,
    response_model_by_alias=True,
    status_code=201,
    summary="Create a record",
    responses={
        400: {"description": "Missing title, malformed vitals or bad upload"},
        401: ERROR_RESPONSES[401],
        413: {"description": "Attachment too large"},
        415: {"description": "Attachment type not allowed"},
    },
)
async def create_record(
    user_id: str = Depends(get_current_user_id),
    form: Tuple[RecordFields, Dict[str, UploadedFile]] = Depends(read_record_form),
    record_service: RecordService = Depends(get_record_service),
) -> RecordResponse:
    """
    Create a medical record owned by the caller.

    - **title**: required, non-empty
    - **medicalHistory**, **doctorNotes**: optional free text
    - **vitals**: optional JSON object, e.g. `{"bloodPressure": "120/80"}`
    - **labReport**, **prescription**: optional files
    """
    fields, files = form
    record = record_service.create(user_id, fields, files)
    return RecordResponse.from_record(record)


@router.get(
    "",
    response_model=List[RecordResponse],
    response_model_by_alias=True,
    summary="List my records",
    responses={401: ERROR_RESPONSES[401]},
)
async def list_records(
    user_id: str = Depends(get_current_user_id),
    record_service: RecordService = Depends(get_record_service),
) -> List[RecordResponse]:
    """All of the caller's records, newest first."""
    return [RecordResponse.from_record(r) for r in record_service.list(user_id)]


@router.get(
    "/{record_id}",
    response_model=RecordResponse,
    response_model_by_alias=True,
    summary="Get a record",
    responses=ERROR_RESPONSES,
)
async def get_record(
    record_id: str,
    user_id: str = Depends(get_current_user_id),
    record_service: RecordService = Depends(get_record_service),
) -> RecordResponse:
    return RecordResponse.from_record(record_service.get(record_id, user_id))


@router.put(
    "/{record_id}",
    response_model=RecordResponse,
    response_model_by_alias=True,
    summary="Update a record",
    responses={**ERROR_RESPONSES, 400: {"description": "Malformed vitals or bad upload"}},
)
async def update_record(
    record_id: str,
    user_id: str = Depends(get_current_user_id),
    form: Tuple[RecordFields, Dict[str, UploadedFile]] = Depends(read_record_form),
    record_service: RecordService = Depends(get_record_service),
) -> RecordResponse:
    """
    Partially update a record.

    Only submitted fields change; an empty value clears a text field.
    A submitted vitals object replaces the stored one entirely. A new file
    replaces the existing attachment in that slot.
    """
    fields, files = form
    record = record_service.update(record_id, user_id, fields, files)
    return RecordResponse.from_record(record)


@router.delete(
    "/{record_id}",
    response_model=MessageResponse,
    summary="Delete a record",
    responses=ERROR_RESPONSES,
)
async def delete_record(
    record_id: str,
    user_id: str = Depends(get_current_user_id),
    record_service: RecordService = Depends(get_record_service),
) -> MessageResponse:
    """Delete a record and its attachments."""
    record_service.delete(record_id, user_id)
    return MessageResponse(message="Record deleted successfully")
