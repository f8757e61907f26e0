"""Keyword-based booking document classifier."""

from typing import List, Tuple

from app.services.ingestion.models import DocumentType

# Ordered: the first rule with a matching keyword wins.
KEYWORD_RULES: List[Tuple[DocumentType, Tuple[str, ...]]] = [
    (DocumentType.CHECK_IN, ("check-in", "entrada")),
    (DocumentType.CHECK_OUT, ("check-out", "saída")),
    (DocumentType.CONTROL_FILE, ("controlo", "control")),
]


def classify_document(text: str) -> DocumentType:
    """Label a document by case-insensitive keyword signals.

    Args:
        text: Full extracted text

    Returns:
        DocumentType of the first matching rule, else UNKNOWN
    """
    lower_text = (text or "").lower()
    for document_type, keywords in KEYWORD_RULES:
        if any(keyword in lower_text for keyword in keywords):
            return document_type
    return DocumentType.UNKNOWN
