"""
Spaced Repetition Service

Service layer that integrates SM-2 scheduling with the database.
Handles term CRUD (Create, Read, Update, Delete) operations, review
persistence, the learner profile and dashboard statistics.

Usage:
    from neurolex.services.learning import SpacedRepService

    service = SpacedRepService(db_session)

    # Get due items
    items = await service.get_due_items(limit=20)

    # Persist a review (scheduler + history + XP in one transaction)
    outcome = await service.record_review(term_id, grade=4, xp=18)
"""

import logging
import time
from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from neurolex.config.settings import settings
from neurolex.db.models import PROFILE_ID, Profile, Progress, ReviewHistory, Term
from neurolex.middleware.error_handling import (
    NotFoundError,
    StorageError,
    ValidationError,
)
from neurolex.models.learning import (
    DashboardStats,
    LearningItem,
    LibraryExport,
    ProfileResponse,
    ProfileUpdate,
    ReviewOutcome,
    TermCreate,
)
from neurolex.services.learning.rewards import level_for_xp
from neurolex.services.learning.sm2 import compute_next_review

logger = logging.getLogger(__name__)


def _to_ms(now: Optional[datetime]) -> int:
    if now is None:
        return int(time.time() * 1000)
    return int(now.timestamp() * 1000)


class SpacedRepService:
    """
    Service for managing vocabulary terms and their SM-2 progress.

    Provides:
    - Term CRUD operations
    - Due item queries (ascending by due time)
    - Atomic review persistence
    - Profile (XP and AI preferences) management
    - Dashboard statistics and library export
    """

    def __init__(self, db: AsyncSession):
        """
        Initialize the spaced repetition service.

        Args:
            db: Async database session
        """
        self.db = db

    # =========================================================================
    # Terms
    # =========================================================================

    async def add_term(
        self, term_data: TermCreate, now: Optional[datetime] = None
    ) -> LearningItem:
        """
        Create a term together with its initial scheduling state.

        The new item is due immediately with interval 0, repetition 0 and
        the initial easiness factor.

        Args:
            term_data: Term creation data
            now: Creation time (defaults to the wall clock)

        Returns:
            The created learning item
        """
        now_ms = _to_ms(now)
        term = Term(
            content=term_data.content,
            definition=term_data.definition,
            context=term_data.context,
            created_at=now_ms,
        )
        term.progress = Progress(
            next_review_at=now_ms,
            interval=0,
            repetition=0,
            efactor=settings.SM2_INITIAL_EFACTOR,
            history=[],
        )

        self.db.add(term)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to add term '{term_data.content}': {e}")
            raise StorageError(f"Failed to add term: {e}") from e

        logger.info(f"Added term {term.id} ('{term.content}')")
        return await self.get_item(term.id)

    async def get_item(self, term_id: str) -> LearningItem:
        """
        Get a term with its progress.

        Raises:
            NotFoundError: If the term does not exist
        """
        progress = await self._load_progress(term_id)
        if progress is None:
            raise NotFoundError(f"Term {term_id} not found")
        return LearningItem.from_db_record(progress)

    async def list_items(
        self,
        search: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[LearningItem]:
        """
        List terms, newest first.

        Args:
            search: Optional case-insensitive filter on content or definition
            limit: Maximum number of items
            offset: Number of items to skip
        """
        query = select(Progress).join(Term, Progress.term_id == Term.id)

        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(Term.content.ilike(pattern), Term.definition.ilike(pattern))
            )

        query = query.order_by(Term.created_at.desc()).limit(limit).offset(offset)
        result = await self.db.execute(query)
        return [LearningItem.from_db_record(p) for p in result.scalars().all()]

    async def delete_term(self, term_id: str) -> None:
        """
        Delete a term with its progress and review history.

        Raises:
            NotFoundError: If the term does not exist
        """
        term = await self.db.get(Term, term_id)
        if term is None:
            raise NotFoundError(f"Term {term_id} not found")

        await self.db.delete(term)
        await self._commit(f"delete term {term_id}")
        logger.info(f"Deleted term {term_id}")

    # =========================================================================
    # Scheduling
    # =========================================================================

    async def get_due_items(
        self, limit: Optional[int] = None, now: Optional[datetime] = None
    ) -> list[LearningItem]:
        """
        Get items due for review, soonest first.

        Args:
            limit: Maximum number of items (defaults to STUDY_BATCH_SIZE)
            now: Reference time (defaults to the wall clock)

        Returns:
            Items with next_review_at <= now, ascending by next_review_at
        """
        limit = limit or settings.STUDY_BATCH_SIZE
        query = (
            select(Progress)
            .where(Progress.next_review_at <= _to_ms(now))
            .order_by(Progress.next_review_at.asc())
            .limit(limit)
        )
        result = await self.db.execute(query)
        items = [LearningItem.from_db_record(p) for p in result.scalars().all()]
        logger.debug(f"Found {len(items)} due items")
        return items

    async def put_progress(self, item: LearningItem) -> LearningItem:
        """
        Overwrite an item's scheduling state.

        History is append-only: the stored history must be a prefix of the
        item's history, and only the new entries are written.

        Raises:
            NotFoundError: If the term does not exist
            ValidationError: If the item's history rewrites stored entries
        """
        progress = await self._load_progress(item.id)
        if progress is None:
            raise NotFoundError(f"Term {item.id} not found")

        stored = [(h.timestamp, h.grade) for h in progress.history]
        incoming = [(h.timestamp, h.grade) for h in item.history]
        if incoming[: len(stored)] != stored:
            raise ValidationError(
                f"History for term {item.id} can only be appended to",
                user_message="Review history cannot be modified.",
            )

        progress.interval = item.interval
        progress.repetition = item.repetition
        progress.efactor = item.efactor
        progress.next_review_at = item.next_review_at
        for timestamp, grade in incoming[len(stored):]:
            progress.history.append(ReviewHistory(timestamp=timestamp, grade=grade))

        await self._commit(f"save progress for term {item.id}")
        return LearningItem.from_db_record(progress)

    async def record_review(
        self,
        term_id: str,
        grade: int,
        xp: int,
        now: Optional[datetime] = None,
    ) -> ReviewOutcome:
        """
        Persist one graded review atomically.

        In a single transaction:
        1. Re-read the item's progress (never trust in-memory copies)
        2. Run the SM-2 scheduler on the stored values
        3. Update progress and append a history entry
        4. Add XP to the profile, creating it if missing

        Any failure rolls back all of it.

        Args:
            term_id: Term being reviewed
            grade: Recall grade 0-5
            xp: XP to award for this review
            now: Review time (defaults to the wall clock)

        Raises:
            NotFoundError: If the term was deleted meanwhile
            StorageError: If the database write fails
        """
        now = now or datetime.now()
        now_ms = _to_ms(now)

        try:
            progress = await self._load_progress(term_id)
            if progress is None:
                raise NotFoundError(f"Progress for term {term_id} not found")

            result = compute_next_review(
                grade,
                previous_repetition=progress.repetition,
                previous_efactor=progress.efactor,
                previous_interval=progress.interval,
                now=now,
            )

            progress.interval = result.interval
            progress.repetition = result.repetition
            progress.efactor = result.efactor
            progress.next_review_at = result.next_review_at
            progress.history.append(ReviewHistory(timestamp=now_ms, grade=int(grade)))

            profile = await self._get_or_create_profile()
            profile.xp = (profile.xp or 0) + xp

            await self.db.commit()

        except NotFoundError:
            await self.db.rollback()
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to record review for term {term_id}: {e}")
            raise StorageError(f"Failed to record review: {e}") from e

        logger.info(
            f"Recorded review for term {term_id}: grade={grade}, "
            f"interval={result.interval}d, xp=+{xp}"
        )

        return ReviewOutcome(
            term_id=term_id,
            grade=int(grade),
            xp_awarded=xp,
            total_xp=profile.xp,
            interval=result.interval,
            repetition=result.repetition,
            efactor=result.efactor,
            next_review_at=result.next_review_at,
        )

    # =========================================================================
    # Profile
    # =========================================================================

    async def get_settings(self) -> ProfileResponse:
        """Get the learner profile, or defaults when none exists yet."""
        profile = await self.db.get(Profile, PROFILE_ID)
        if profile is None:
            return ProfileResponse(language=settings.DEFAULT_LANGUAGE)
        return ProfileResponse.from_db_record(profile)

    async def update_xp(self, delta: int) -> int:
        """
        Add XP to the profile, creating it when missing.

        Returns:
            New XP total
        """
        profile = await self._get_or_create_profile()
        profile.xp = (profile.xp or 0) + delta
        await self._commit("update XP")
        return profile.xp

    async def update_profile(self, update: ProfileUpdate) -> ProfileResponse:
        """Apply a partial profile update."""
        profile = await self._get_or_create_profile()

        for field, value in update.model_dump(exclude_unset=True).items():
            if field == "preferred_quiz_type" and value is not None:
                value = value.value
            setattr(profile, field, value)

        await self._commit("update profile")
        return ProfileResponse.from_db_record(profile)

    # =========================================================================
    # Statistics
    # =========================================================================

    async def get_stats(self, now: Optional[datetime] = None) -> DashboardStats:
        """
        Compute dashboard statistics.

        - learned: repetition > 0
        - mastered: repetition > MASTERED_MIN_REPETITION or
          interval > MASTERED_MIN_INTERVAL
        """
        now_ms = _to_ms(now)

        total = await self._count()
        due = await self._count(Progress.next_review_at <= now_ms)
        learned = await self._count(Progress.repetition > 0)
        mastered = await self._count(
            or_(
                Progress.repetition > settings.MASTERED_MIN_REPETITION,
                Progress.interval > settings.MASTERED_MIN_INTERVAL,
            )
        )

        profile = await self.db.get(Profile, PROFILE_ID)
        xp = profile.xp if profile and profile.xp else 0

        return DashboardStats(
            total=total,
            due=due,
            learned=learned,
            mastered=mastered,
            xp=xp,
            level=level_for_xp(xp),
        )

    async def export_library(self, now: Optional[datetime] = None) -> LibraryExport:
        """Export every term with its progress and history."""
        result = await self.db.execute(
            select(Progress).join(Term, Progress.term_id == Term.id).order_by(Term.created_at)
        )
        items = [LearningItem.from_db_record(p) for p in result.scalars().all()]
        return LibraryExport(items=items, exported_at=_to_ms(now))

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _load_progress(self, term_id: str) -> Optional[Progress]:
        """Fetch a progress row fresh from the database."""
        result = await self.db.execute(
            select(Progress)
            .where(Progress.term_id == term_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _commit(self, action: str) -> None:
        """Commit, or roll back and raise StorageError."""
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise StorageError(f"Failed to {action}: {e}") from e

    async def _get_or_create_profile(self) -> Profile:
        profile = await self.db.get(Profile, PROFILE_ID)
        if profile is None:
            profile = Profile(
                id=PROFILE_ID,
                xp=0,
                ai_enabled=True,
                language=settings.DEFAULT_LANGUAGE,
                preferred_quiz_type="auto",
            )
            self.db.add(profile)
            logger.info("Created learner profile")
        return profile

    async def _count(self, *conditions) -> int:
        query = select(func.count()).select_from(Progress)
        if conditions:
            query = query.where(*conditions)
        result = await self.db.execute(query)
        return result.scalar() or 0
