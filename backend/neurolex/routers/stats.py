"""
Stats & Profile API Router

Endpoints:
- GET /api/stats - Dashboard counters (total, due, learned, mastered, XP, level)
- GET /api/profile - Learner profile and AI preferences
- PATCH /api/profile - Update AI preferences
"""

import logging

from fastapi import APIRouter, Depends

from neurolex.models.learning import DashboardStats, ProfileResponse, ProfileUpdate
from neurolex.routers.terms import get_spaced_rep_service
from neurolex.services.learning import SpacedRepService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["stats"])


@router.get("/stats", response_model=DashboardStats)
async def get_stats(
    service: SpacedRepService = Depends(get_spaced_rep_service),
) -> DashboardStats:
    """
    Get dashboard statistics.

    - learned: terms with at least one successful review in a row
    - mastered: repetition > 5 or interval > 21 days
    - level: 1 + xp // 100
    """
    return await service.get_stats()


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    service: SpacedRepService = Depends(get_spaced_rep_service),
) -> ProfileResponse:
    """Get the learner profile (defaults when none exists yet)."""
    return await service.get_settings()


@router.patch("/profile", response_model=ProfileResponse)
async def update_profile(
    update: ProfileUpdate,
    service: SpacedRepService = Depends(get_spaced_rep_service),
) -> ProfileResponse:
    """Update AI preferences. XP is only changed by reviews."""
    profile = await service.update_profile(update)
    logger.info(f"Profile updated: {update.model_dump(exclude_unset=True)}")
    return profile
