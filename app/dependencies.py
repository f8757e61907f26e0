"""Centralized dependency injection for FastAPI application.

The Gemini client is created once in the application lifespan and stored on
``app.state``; every request-scoped service receives it from here.
"""

from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.gemini_client import GeminiClient
from app.database.base import get_async_session
from app.repositories.property_repository import PropertyRepository
from app.repositories.reservation_repository import ReservationRepository
from app.services.ingestion.batch_orchestrator import BatchOrchestrator
from app.services.ingestion.reservation_extractor import ReservationExtractor
from app.services.ingestion.text_extractor import TextExtractor


def get_llm_client(request: Request) -> Optional[GeminiClient]:
    """Get the shared Gemini client, if one is configured."""
    return getattr(request.app.state, "llm_client", None)


def get_text_extractor(
    llm_client: Annotated[Optional[GeminiClient], Depends(get_llm_client)],
) -> TextExtractor:
    return TextExtractor(llm_client=llm_client)


def get_reservation_extractor(
    llm_client: Annotated[Optional[GeminiClient], Depends(get_llm_client)],
) -> ReservationExtractor:
    """Get the structured extractor.

    Raises:
        HTTPException: 503 when no Gemini API key is configured
    """
    if llm_client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "error": "ConfigurationError",
                "message": "Gemini API key not configured",
                "detail": "Set GEMINI_API_KEY to enable reservation extraction",
            },
        )
    return ReservationExtractor(llm_client=llm_client)


async def get_property_repository(
    db_session: Annotated[AsyncSession, Depends(get_async_session)],
) -> PropertyRepository:
    return PropertyRepository(db_session)


async def get_reservation_repository(
    db_session: Annotated[AsyncSession, Depends(get_async_session)],
) -> ReservationRepository:
    return ReservationRepository(db_session)


async def get_batch_orchestrator(
    text_extractor: Annotated[TextExtractor, Depends(get_text_extractor)],
    reservation_extractor: Annotated[ReservationExtractor, Depends(get_reservation_extractor)],
    property_repository: Annotated[PropertyRepository, Depends(get_property_repository)],
    reservation_repository: Annotated[ReservationRepository, Depends(get_reservation_repository)],
) -> BatchOrchestrator:
    """Get the batch orchestrator wired to request-scoped repositories.

    Both repositories share the request's session.
    """
    return BatchOrchestrator(
        text_extractor=text_extractor,
        reservation_extractor=reservation_extractor,
        property_repository=property_repository,
        reservation_repository=reservation_repository,
    )


async def get_save_orchestrator(
    property_repository: Annotated[PropertyRepository, Depends(get_property_repository)],
    reservation_repository: Annotated[ReservationRepository, Depends(get_reservation_repository)],
) -> BatchOrchestrator:
    """Get an orchestrator for persisting reviewed reservations; needs no model."""
    return BatchOrchestrator(
        text_extractor=TextExtractor(),
        reservation_extractor=None,
        property_repository=property_repository,
        reservation_repository=reservation_repository,
    )
