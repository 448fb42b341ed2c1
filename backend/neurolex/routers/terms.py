"""
Terms API Router

Endpoints for managing the vocabulary library.

Endpoints:
- POST /api/terms - Add a term (due immediately)
- GET /api/terms - List terms with optional search
- GET /api/terms/export - Export all terms with progress
- GET /api/terms/{id} - Get a term with its progress
- DELETE /api/terms/{id} - Delete a term and its history
"""

from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from neurolex.db.base import get_db
from neurolex.middleware.error_handling import ServiceError
from neurolex.models.learning import LearningItem, LibraryExport, TermCreate
from neurolex.services.learning import SpacedRepService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/terms", tags=["terms"])


# ===========================================
# Dependency Injection
# ===========================================


async def get_spaced_rep_service(
    db: AsyncSession = Depends(get_db),
) -> SpacedRepService:
    """Get spaced repetition service."""
    return SpacedRepService(db)


# ===========================================
# Endpoints
# ===========================================


@router.post("", response_model=LearningItem, status_code=201)
async def create_term(
    term_data: TermCreate,
    service: SpacedRepService = Depends(get_spaced_rep_service),
) -> LearningItem:
    """
    Add a vocabulary term.

    The term starts with interval 0, repetition 0, efactor 2.5 and is due
    immediately.
    """
    return await service.add_term(term_data)


@router.get("", response_model=list[LearningItem])
async def list_terms(
    search: Optional[str] = Query(None, description="Filter by content or definition"),
    limit: int = Query(100, ge=1, le=500, description="Maximum terms to return"),
    offset: int = Query(0, ge=0, description="Pagination offset"),
    service: SpacedRepService = Depends(get_spaced_rep_service),
) -> list[LearningItem]:
    """List terms, newest first."""
    try:
        return await service.list_items(search=search, limit=limit, offset=offset)
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Failed to list terms: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/export", response_model=LibraryExport)
async def export_terms(
    service: SpacedRepService = Depends(get_spaced_rep_service),
) -> LibraryExport:
    """Export the whole library with progress and review history."""
    return await service.export_library()


@router.get("/{term_id}", response_model=LearningItem)
async def get_term(
    term_id: str,
    service: SpacedRepService = Depends(get_spaced_rep_service),
) -> LearningItem:
    """Get a term by ID."""
    return await service.get_item(term_id)


@router.delete("/{term_id}", status_code=204)
async def delete_term(
    term_id: str,
    service: SpacedRepService = Depends(get_spaced_rep_service),
) -> None:
    """Delete a term together with its progress and review history."""
    await service.delete_term(term_id)
