"""Pytest configuration and shared fixtures."""

from decimal import Decimal
from typing import Callable, List
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient
from fpdf import FPDF

from app.core.gemini_client import GeminiClient
from app.main import app
from app.services.ingestion.models import PropertyRecord


@pytest.fixture
def test_client() -> TestClient:
    """Create FastAPI test client.

    Returns:
        TestClient: FastAPI test client instance
    """
    return TestClient(app)


@pytest.fixture(autouse=True)
def clear_dependency_overrides():
    """Ensure FastAPI dependency overrides are reset between tests."""
    app.dependency_overrides = {}
    yield
    app.dependency_overrides = {}


@pytest.fixture
def mock_llm_client() -> Mock:
    """Create mock Gemini client.

    Returns:
        Mock: Gemini client whose calls are AsyncMocks
    """
    client = Mock(spec=GeminiClient)
    client.generate_content = AsyncMock(return_value="[]\nEND_OF_JSON")
    client.transcribe_image = AsyncMock(return_value="")
    return client


@pytest.fixture
def make_pdf() -> Callable[[List[str]], bytes]:
    """Build a real PDF with a text layer, one line per entry."""

    def _make(lines: List[str]) -> bytes:
        pdf = FPDF()
        pdf.add_page()
        pdf.set_font("Helvetica", size=12)
        for line in lines:
            pdf.cell(0, 10, line, new_x="LMARGIN", new_y="NEXT")
        return bytes(pdf.output())

    return _make


@pytest.fixture
def property_catalog() -> List[PropertyRecord]:
    """Sample property catalog with a numbered variant family.

    Returns:
        List[PropertyRecord]: Catalog entries
    """
    return [
        PropertyRecord(
            id=1,
            name="Aroeira I",
            cleaning_cost=Decimal("45.00"),
            check_in_fee=Decimal("15.00"),
            commission=Decimal("20"),
            team_payment=Decimal("30.00"),
        ),
        PropertyRecord(id=2, name="Aroeira II", cleaning_cost=Decimal("45.00")),
        PropertyRecord(id=3, name="Aroeira III", cleaning_cost=Decimal("50.00")),
        PropertyRecord(id=4, name="Casa dos Barcos", cleaning_cost=Decimal("60.00")),
        PropertyRecord(id=5, name="Nazaré T2", cleaning_cost=Decimal("35.00")),
        PropertyRecord(id=6, name="Check-in Lisboa", cleaning_cost=Decimal("0")),
    ]
