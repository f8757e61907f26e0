"""Unit tests for PDF and image text extraction."""

import pytest

from app.prompts.reservation_prompts import IMAGE_TRANSCRIPTION_PROMPT
from app.services.ingestion.models import RawDocument
from app.services.ingestion.text_extractor import TextExtractor
from app.utils.exceptions import APIClientError, ExtractionError


class TestPdfExtraction:
    """Tests for the local PDF text-layer path."""

    @pytest.mark.asyncio
    async def test_extracts_pdf_text(self, make_pdf):
        """Test that the text layer of a generated PDF is returned."""
        data = make_pdf(["Check-in: 10/06/2025", "Check-out: 15/06/2025", "Guest: Maria Santos"])
        extractor = TextExtractor()

        result = await extractor.extract(
            RawDocument(content=data, media_type="application/pdf", filename="booking.pdf")
        )

        assert "Check-in: 10/06/2025" in result.text
        assert "Maria Santos" in result.text
        assert result.source_page == 1
        assert len(result.pages) == 1

    @pytest.mark.asyncio
    async def test_reads_temporary_path_when_buffer_missing(self, make_pdf, tmp_path):
        """Test that the temporary file is read when no buffer is held."""
        path = tmp_path / "upload.pdf"
        path.write_bytes(make_pdf(["Casa dos Barcos"]))
        extractor = TextExtractor()

        result = await extractor.extract(
            RawDocument(content=None, media_type="application/pdf", filename="upload.pdf", path=path)
        )

        assert "Casa dos Barcos" in result.text

    @pytest.mark.asyncio
    async def test_unreadable_pdf_raises_extraction_error(self):
        """Test that garbage bytes surface as ExtractionError."""
        extractor = TextExtractor()

        with pytest.raises(ExtractionError):
            await extractor.extract(
                RawDocument(
                    content=b"this is not a pdf",
                    media_type="application/pdf",
                    filename="broken.pdf",
                )
            )

    @pytest.mark.asyncio
    async def test_missing_buffer_and_path_raises(self, tmp_path):
        """Test that a document with neither buffer nor readable path fails."""
        extractor = TextExtractor()

        with pytest.raises(ExtractionError, match="no buffer or path"):
            await extractor.extract(
                RawDocument(
                    content=None,
                    media_type="application/pdf",
                    filename="gone.pdf",
                    path=tmp_path / "gone.pdf",
                )
            )

    @pytest.mark.asyncio
    async def test_unsupported_media_type_raises(self):
        """Test that non PDF/image media types are refused."""
        extractor = TextExtractor()

        with pytest.raises(ExtractionError, match="Unsupported media type"):
            await extractor.extract(
                RawDocument(content=b"a,b,c", media_type="text/csv", filename="data.csv")
            )


class TestImageExtraction:
    """Tests for the vision-model transcription path."""

    @pytest.mark.asyncio
    async def test_image_is_transcribed_by_model(self, mock_llm_client):
        """Test that images are sent to the model with the transcription instruction."""
        mock_llm_client.transcribe_image.return_value = "Check-in 10/06/2025 Maria Santos"
        extractor = TextExtractor(llm_client=mock_llm_client)

        result = await extractor.extract(
            RawDocument(content=b"\xff\xd8\xff", media_type="image/jpg", filename="photo.jpg")
        )

        assert result.text == "Check-in 10/06/2025 Maria Santos"
        mock_llm_client.transcribe_image.assert_awaited_once_with(
            data=b"\xff\xd8\xff",
            mime_type="image/jpeg",
            instruction=IMAGE_TRANSCRIPTION_PROMPT,
        )

    @pytest.mark.asyncio
    async def test_model_failure_raises_extraction_error(self, mock_llm_client):
        """Test that model errors are converted to ExtractionError."""
        mock_llm_client.transcribe_image.side_effect = APIClientError("quota exceeded")
        extractor = TextExtractor(llm_client=mock_llm_client)

        with pytest.raises(ExtractionError, match="quota exceeded"):
            await extractor.extract(
                RawDocument(content=b"\x89PNG", media_type="image/png", filename="scan.png")
            )

    @pytest.mark.asyncio
    async def test_image_without_client_raises(self):
        """Test that images cannot be processed without a model client."""
        extractor = TextExtractor()

        with pytest.raises(ExtractionError):
            await extractor.extract(
                RawDocument(content=b"RIFF", media_type="image/webp", filename="scan.webp")
            )
