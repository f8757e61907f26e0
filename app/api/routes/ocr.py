"""Reservation document upload and ingestion API endpoints."""

from typing import Annotated, List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from app.config import settings
from app.dependencies import get_batch_orchestrator, get_save_orchestrator
from app.models.request.ocr import SaveReservationsRequest
from app.models.response.ocr import (
    ErrorResponse,
    MultipleFilesResponse,
    ProcessFileResponse,
    SaveReservationsResponse,
    StatusResponse,
)
from app.services.ingestion.batch_orchestrator import BatchOrchestrator
from app.services.ingestion.models import RawDocument
from app.utils.exceptions import InvalidDocumentError
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()

ERROR_RESPONSES = {
    400: {"description": "Invalid or unsupported document", "model": ErrorResponse},
    413: {"description": "File too large", "model": ErrorResponse},
    503: {"description": "Gemini API key not configured", "model": ErrorResponse},
}


def _max_file_size_label() -> str:
    return f"{settings.max_upload_size_bytes // (1024 * 1024)}MB"


async def read_upload(file: UploadFile) -> RawDocument:
    """Read and check an uploaded file.

    Raises:
        InvalidDocumentError: If the media type is not accepted (400) or the
            file exceeds the size limit (413)
    """
    filename = file.filename or "upload"
    media_type = (file.content_type or "").lower()
    if media_type not in settings.allowed_media_types:
        raise InvalidDocumentError(
            f"Unsupported file type '{file.content_type}' for {filename}. "
            f"Accepted types: PDF, JPEG, PNG, WebP"
        )

    data = await file.read(settings.max_upload_size_bytes + 1)
    if len(data) > settings.max_upload_size_bytes:
        raise InvalidDocumentError(
            f"File {filename} exceeds the {_max_file_size_label()} limit",
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        )
    return RawDocument(content=data, media_type=media_type, filename=filename)


def _rejection(e: InvalidDocumentError) -> HTTPException:
    return HTTPException(
        status_code=e.status_code,
        detail={
            "error": "InvalidDocumentError",
            "message": "Invalid or unsupported document",
            "detail": str(e),
        },
    )


@router.post(
    "/process",
    response_model=ProcessFileResponse,
    status_code=status.HTTP_200_OK,
    responses=ERROR_RESPONSES,
    summary="Extract reservations from one document",
    description="Extract text from a PDF or image, classify it and return candidate reservations. Nothing is saved.",
    operation_id="process_reservation_document",
)
async def process_file(
    orchestrator: Annotated[BatchOrchestrator, Depends(get_batch_orchestrator)],
    file: UploadFile = File(..., description="PDF or image (JPEG/PNG/WebP), up to 10MB"),
) -> ProcessFileResponse:
    """Process a single uploaded document.

    Extraction failures are reported with ``success=false``; only rejected
    uploads produce an HTTP error.
    """
    try:
        document = await read_upload(file)
    except InvalidDocumentError as e:
        LOGGER.warning("Upload rejected", extra={"file_name": file.filename, "error": str(e)})
        raise _rejection(e) from e

    LOGGER.info(
        "Received document",
        extra={"file_name": document.filename, "media_type": document.media_type},
    )
    result = await orchestrator.process_file(document)

    return ProcessFileResponse(
        success=result.success,
        type=result.type.value,
        reservations=[candidate.to_dict() for candidate in result.reservations],
        extracted_text=result.extracted_text,
        error=result.error,
    )


@router.post(
    "/process-multiple",
    response_model=MultipleFilesResponse,
    status_code=status.HTTP_200_OK,
    responses=ERROR_RESPONSES,
    summary="Extract and auto-save reservations from many documents",
    description="Process up to 10 documents, then resolve, validate, deduplicate and save the reservations found.",
    operation_id="process_multiple_reservation_documents",
)
async def process_multiple_files(
    orchestrator: Annotated[BatchOrchestrator, Depends(get_batch_orchestrator)],
    files: List[UploadFile] = File(..., description="Up to 10 PDF or image files"),
) -> MultipleFilesResponse:
    """Process a batch of uploaded documents.

    Every upload is checked before any processing starts.
    """
    try:
        if len(files) > settings.max_upload_files:
            raise InvalidDocumentError(
                f"Too many files: {len(files)} (maximum {settings.max_upload_files})"
            )
        documents = [await read_upload(file) for file in files]
    except InvalidDocumentError as e:
        LOGGER.warning("Batch upload rejected", extra={"error": str(e)})
        raise _rejection(e) from e

    LOGGER.info("Received document batch", extra={"files": len(documents)})
    result = await orchestrator.process_batch(documents)

    return MultipleFilesResponse(
        success=result.success,
        reservations=[candidate.to_dict() for candidate in result.reservations],
        total_reservations=result.total_reservations,
        file_results=[file_result.to_dict() for file_result in result.file_results],
        auto_saved=result.saved_count > 0,
        saved_count=result.saved_count,
        save_errors=result.save_errors,
        summary=result.summary.to_dict(),
        outcomes=[outcome.to_dict() for outcome in result.outcomes],
        message=result.message,
    )


@router.get(
    "/status",
    response_model=StatusResponse,
    summary="Ingestion service status",
    description="Report whether the Gemini API key is configured and which uploads are accepted.",
    operation_id="get_reservation_ingestion_status",
)
async def get_status() -> StatusResponse:
    return StatusResponse(
        success=True,
        status="ready" if settings.gemini_configured else "not_configured",
        gemini_configured=settings.gemini_configured,
        supported_formats=list(settings.allowed_media_types),
        max_file_size=_max_file_size_label(),
        max_files=settings.max_upload_files,
    )


@router.post(
    "/save-reservations",
    response_model=SaveReservationsResponse,
    status_code=status.HTTP_200_OK,
    summary="Save reviewed reservations",
    description="Resolve, validate, deduplicate and save reservations returned earlier by the processing endpoints.",
    operation_id="save_reviewed_reservations",
)
async def save_reservations(
    request: SaveReservationsRequest,
    orchestrator: Annotated[BatchOrchestrator, Depends(get_save_orchestrator)],
) -> SaveReservationsResponse:
    """Save operator-reviewed reservations; per-item failures are reported, not raised."""
    outcomes, saved_count, errors = await orchestrator.save_reviewed(request.reservations)

    LOGGER.info(
        "Reviewed reservations saved",
        extra={
            "received": len(request.reservations),
            "saved": saved_count,
            "errors": len(errors),
        },
    )
    return SaveReservationsResponse(
        success=saved_count > 0,
        saved_count=saved_count,
        total_reservations=len(request.reservations),
        errors=errors,
        outcomes=[outcome.to_dict() for outcome in outcomes],
    )
