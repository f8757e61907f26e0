"""Pydantic response models for reservation ingestion endpoints.

Field names are snake_case in Python and camelCase on the wire.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProcessFileResponse(CamelModel):
    """Response model for single-file processing.

    Attributes:
        success: Whether text and reservations could be extracted
        type: Detected document type
        reservations: Extracted candidate reservations
        extracted_text: Raw text of the document
        error: Error message when processing failed
    """

    success: bool = Field(..., description="Whether processing succeeded")
    type: str = Field(
        ...,
        description="Detected document type",
        examples=["check-in", "check-out", "control-file", "unknown"],
    )
    reservations: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Candidate reservations extracted from the document",
    )
    extracted_text: Optional[str] = Field(default=None, description="Raw extracted text")
    error: Optional[str] = Field(default=None, description="Error message on failure")


class MultipleFilesResponse(CamelModel):
    """Response model for batch processing of many files."""

    success: bool = Field(..., description="False when no file yielded a reservation")
    type: str = Field(default="multiple-files", description="Response type tag")
    reservations: List[Dict[str, Any]] = Field(default_factory=list)
    total_reservations: int = Field(default=0, description="Candidates across all files")
    file_results: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Per-file filename, type, reservation count, success and error",
    )
    auto_saved: bool = Field(default=False, description="Whether any reservation was saved")
    saved_count: int = Field(default=0, description="Reservations saved automatically")
    save_errors: List[str] = Field(default_factory=list, description="Per-item save errors")
    summary: Dict[str, int] = Field(
        default_factory=dict,
        description="Counts of valid, duplicate, invalid, review, saved and failed items",
    )
    outcomes: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Terminal outcome of every candidate",
    )
    message: str = Field(default="", description="Human-readable batch summary")


class StatusResponse(CamelModel):
    """Response model for the ingestion status endpoint."""

    success: bool = Field(default=True)
    status: str = Field(..., examples=["ready", "not_configured"])
    gemini_configured: bool = Field(..., description="Whether a model API key is set")
    supported_formats: List[str] = Field(..., description="Accepted media types")
    max_file_size: str = Field(..., description="Per-file upload limit", examples=["10MB"])
    max_files: int = Field(..., description="Maximum files per batch upload")


class SaveReservationsResponse(CamelModel):
    """Response model for saving reviewed reservations."""

    success: bool = Field(..., description="Whether at least one reservation was saved")
    saved_count: int = Field(default=0)
    total_reservations: int = Field(default=0)
    errors: List[str] = Field(default_factory=list)
    outcomes: List[Dict[str, Any]] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Error response model.

    Attributes:
        error: Error type
        message: Human-readable error message
        detail: Optional detailed error information
    """

    error: str = Field(..., description="Error type", examples=["InvalidDocumentError"])
    message: str = Field(..., description="Human-readable error message")
    detail: Optional[str] = Field(default=None, description="Detailed error information")
