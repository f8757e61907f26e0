"""Text extraction from uploaded booking documents.

PDFs are expected to carry a text layer and are parsed locally with
pdfplumber. Images are transcribed by the vision-capable Gemini model.
"""

import asyncio
from io import BytesIO
from typing import List, Optional

import pdfplumber

from app.core.gemini_client import GeminiClient
from app.prompts.reservation_prompts import IMAGE_TRANSCRIPTION_PROMPT
from app.services.ingestion.models import ExtractedText, RawDocument
from app.utils.exceptions import APIClientError, ExtractionError
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
IMAGE_MEDIA_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "image/webp"})


class TextExtractor:
    """Produces raw text from a PDF or image document.

    Attributes:
        llm_client: Gemini client used for image transcription
    """

    def __init__(self, llm_client: Optional[GeminiClient] = None):
        """Initialize text extractor.

        Args:
            llm_client: Shared Gemini client; required only for images
        """
        self.llm_client = llm_client

    async def extract(self, document: RawDocument) -> ExtractedText:
        """Extract text from a document.

        Args:
            document: Uploaded document with bytes or a temporary path

        Returns:
            ExtractedText with the full text and page count

        Raises:
            ExtractionError: If no content is available, the media type is
                unsupported, or the underlying library/model call fails
        """
        data = await self._read_content(document)
        media_type = (document.media_type or "").lower()

        if media_type == PDF_MEDIA_TYPE:
            try:
                pages = await asyncio.to_thread(self._parse_pdf, data)
            except Exception as e:
                LOGGER.error(
                    "PDF text extraction failed",
                    extra={"file_name": document.filename, "error": str(e)},
                )
                raise ExtractionError(f"Failed to read PDF {document.filename}: {e}") from e
            return ExtractedText(text="\n".join(pages), source_page=len(pages), pages=pages)

        if media_type in IMAGE_MEDIA_TYPES:
            text = await self._transcribe_image(document, data, media_type)
            return ExtractedText(text=text, source_page=1, pages=[text])

        raise ExtractionError(f"Unsupported media type: {document.media_type}")

    async def _read_content(self, document: RawDocument) -> bytes:
        """Return the in-memory buffer, falling back to the temporary file."""
        if document.content:
            return document.content

        if document.path is not None and document.path.exists():
            try:
                return await asyncio.to_thread(document.path.read_bytes)
            except OSError as e:
                raise ExtractionError(f"Could not read {document.path}: {e}") from e

        LOGGER.warning(
            "Document has neither a buffer nor a readable path",
            extra={"file_name": document.filename, "media_type": document.media_type},
        )
        raise ExtractionError(
            f"File not found for {document.filename}: no buffer or path available"
        )

    @staticmethod
    def _parse_pdf(data: bytes) -> List[str]:
        """Extract the text layer of every page."""
        with pdfplumber.open(BytesIO(data)) as pdf:
            return [page.extract_text() or "" for page in pdf.pages]

    async def _transcribe_image(self, document: RawDocument, data: bytes, media_type: str) -> str:
        if self.llm_client is None:
            raise ExtractionError("Image transcription requires a configured Gemini client")

        # Gemini only knows the canonical JPEG media type
        mime_type = "image/jpeg" if media_type == "image/jpg" else media_type
        try:
            return await self.llm_client.transcribe_image(
                data=data,
                mime_type=mime_type,
                instruction=IMAGE_TRANSCRIPTION_PROMPT,
            )
        except APIClientError as e:
            LOGGER.error(
                "Image transcription failed",
                extra={"file_name": document.filename, "error": str(e)},
            )
            raise ExtractionError(f"Failed to transcribe {document.filename}: {e}") from e
