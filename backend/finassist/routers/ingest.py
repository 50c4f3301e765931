from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File, Form
from sqlalchemy.orm import Session
from typing import List
import logging
import os
import tempfile

from ..dependencies import get_db, get_current_user, get_registry, get_settings
from .. import models
from ..core.settings import Settings
from ..enums import InputKind
from ..schemas import TextIngestRequest, IngestResponse, OutcomeResponse
from ..services.ai.registry import BackendRegistry
from ..services.ingestion_service import (
    AudioPayload,
    ImagePayload,
    IngestionService,
    TextPayload,
    serialize_outcome,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ingest", tags=["ingest"])

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp", "image/heic"}
MAX_UPLOAD_BYTES = 16 * 1024 * 1024


def _response(input_kind: InputKind, outcomes: List) -> IngestResponse:
    serialized = [OutcomeResponse(**serialize_outcome(o)) for o in outcomes]
    return IngestResponse(
        input_kind=input_kind,
        saved_count=sum(1 for o in serialized if o.kind == "saved"),
        outcomes=serialized,
    )


async def _read_upload(upload: UploadFile) -> bytes:
    data = await upload.read()
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")
    if len(data) > MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size: {MAX_UPLOAD_BYTES // (1024 * 1024)}MB"
        )
    return data


@router.post("/text", response_model=IngestResponse)
async def ingest_text(
    request: TextIngestRequest,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    registry: BackendRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings)
):
    """Extract and save transactions described in a text message"""
    service = IngestionService(db, registry, settings)
    outcomes = await service.process_input(
        current_user.tenant_id, current_user.id, InputKind.TEXT, TextPayload(request.text, request.hint)
    )
    return _response(InputKind.TEXT, outcomes)


@router.post("/image", response_model=IngestResponse)
async def ingest_image(
    file: UploadFile = File(...),
    hint: str = Form(""),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    registry: BackendRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings)
):
    """Extract and save the transaction on a receipt or bill photo"""
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported image type: {file.content_type}"
        )
    data = await _read_upload(file)

    service = IngestionService(db, registry, settings)
    outcomes = await service.process_input(
        current_user.tenant_id, current_user.id, InputKind.IMAGE, ImagePayload(data, file.content_type, hint)
    )
    return _response(InputKind.IMAGE, outcomes)


@router.post("/audio", response_model=IngestResponse)
async def ingest_audio(
    file: UploadFile = File(...),
    hint: str = Form(""),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
    registry: BackendRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings)
):
    """Transcribe a voice note, then extract and save the transactions it describes"""
    data = await _read_upload(file)
    suffix = os.path.splitext(file.filename or "")[1] or ".ogg"

    fd, path = tempfile.mkstemp(suffix=suffix)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        service = IngestionService(db, registry, settings)
        outcomes = await service.process_input(
            current_user.tenant_id, current_user.id, InputKind.AUDIO, AudioPayload(path, hint)
        )
    finally:
        if os.path.exists(path):
            os.remove(path)

    return _response(InputKind.AUDIO, outcomes)
