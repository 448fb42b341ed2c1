"""
Learning System Models (Pydantic)

Schemas for vocabulary terms, SM-2 learning items, AI quizzes and study
sessions.

ARCHITECTURE NOTE:
    This file contains PYDANTIC models for validation and transport.
    There is a corresponding SQLAlchemy file: neurolex/db/models.py

    Data flows: API Request → Pydantic → Service → SQLAlchemy → Database
"""

from __future__ import annotations

from typing import Optional, TYPE_CHECKING

from pydantic import BaseModel, Field

from neurolex.enums.learning import QuizType, SessionMode, SessionType
from neurolex.models.base import StrictRequest, StrictResponse

if TYPE_CHECKING:
    from neurolex.db.models import Progress, Profile


# ===========================================
# Terms & Learning Items
# ===========================================


class TermCreate(StrictRequest):
    """Request to add a new vocabulary term."""

    content: str = Field(..., min_length=1, max_length=255, description="Word or phrase")
    definition: str = Field("", description="Meaning of the term")
    context: Optional[str] = Field(None, description="Example sentence or notes")


class ReviewHistoryEntry(StrictResponse):
    """One graded review (timestamp in epoch ms)."""

    timestamp: int
    grade: int


class LearningItem(StrictResponse):
    """
    A term joined with its SM-2 scheduling state.

    `next_review_at` is epoch milliseconds; `history` is ordered oldest
    first and only ever grows.
    """

    id: str
    content: str
    definition: str = ""
    context: Optional[str] = None
    created_at: Optional[int] = None

    interval: int = 0
    repetition: int = 0
    efactor: float = 2.5
    next_review_at: int
    history: list[ReviewHistoryEntry] = Field(default_factory=list)

    @classmethod
    def from_db_record(cls, record: Progress) -> LearningItem:
        """
        Create a LearningItem from a Progress row (with its term loaded).

        Args:
            record: SQLAlchemy Progress record

        Returns:
            LearningItem instance
        """
        term = record.term
        return cls(
            id=term.id,
            content=term.content,
            definition=term.definition or "",
            context=term.context,
            created_at=term.created_at,
            interval=record.interval or 0,
            repetition=record.repetition or 0,
            efactor=record.efactor or 2.5,
            next_review_at=record.next_review_at,
            history=[
                ReviewHistoryEntry(timestamp=h.timestamp, grade=h.grade)
                for h in record.history
            ],
        )


class ReviewOutcome(StrictResponse):
    """Result of one persisted review."""

    term_id: str
    grade: int
    xp_awarded: int
    total_xp: int
    interval: int
    repetition: int
    efactor: float
    next_review_at: int


# ===========================================
# Profile & Stats
# ===========================================


class ProfileResponse(StrictResponse):
    """Singleton learner profile."""

    xp: int = 0
    ai_enabled: bool = True
    model: Optional[str] = None
    language: str = "en-US"
    preferred_quiz_type: QuizType = QuizType.AUTO

    @classmethod
    def from_db_record(cls, record: Profile) -> ProfileResponse:
        return cls(
            xp=record.xp or 0,
            ai_enabled=bool(record.ai_enabled),
            model=record.model,
            language=record.language or "en-US",
            preferred_quiz_type=QuizType(record.preferred_quiz_type or QuizType.AUTO.value),
        )


class ProfileUpdate(StrictRequest):
    """Partial profile update (XP is not writable here)."""

    ai_enabled: Optional[bool] = None
    model: Optional[str] = None
    language: Optional[str] = None
    preferred_quiz_type: Optional[QuizType] = None


class DashboardStats(BaseModel):
    """
    Dashboard counters.

    - learned: at least one successful review in the current streak
    - mastered: long streak or long interval
    - level: 1 + xp // XP_PER_LEVEL
    """

    total: int = 0
    due: int = 0
    learned: int = 0
    mastered: int = 0
    xp: int = 0
    level: int = 1


class LibraryExport(BaseModel):
    """Full export of terms with their progress."""

    items: list[LearningItem]
    exported_at: int
    version: int = 1


# ===========================================
# AI Quiz Models
# ===========================================


class QuizGeneration(BaseModel):
    """An AI-generated quiz question for one term."""

    question: str
    type: QuizType
    options: Optional[list[str]] = None


class QuizEvaluation(BaseModel):
    """AI evaluation of a learner's answer."""

    grade: int = Field(..., ge=0, le=5)
    feedback: str = ""
    ideal_answer: str = ""


class GradeOption(BaseModel):
    """A manual grade button offered to the learner."""

    label: str
    grade: int = Field(..., ge=0, le=5)


# ===========================================
# Study Session API Models
# ===========================================


class StartSessionRequest(StrictRequest):
    """Start a study session from the selection screen."""

    session_type: SessionType = SessionType.STANDARD
    preferred_quiz_type: QuizType = QuizType.AUTO


class AnswerRequest(StrictRequest):
    """Submit an answer to the current question."""

    answer: str = ""


class GradeRequest(StrictRequest):
    """Manually grade the current item."""

    grade: int = Field(..., ge=0, le=5)


class SessionStateResponse(StrictResponse):
    """Serializable snapshot of a study session."""

    session_id: str
    mode: SessionMode
    session_type: SessionType
    preferred_quiz_type: QuizType
    current_item: Optional[LearningItem] = None
    queue_remaining: int = 0
    pending_quiz: Optional[QuizGeneration] = None
    user_answer: Optional[str] = None
    evaluation: Optional[QuizEvaluation] = None
    last_grade: Optional[int] = None
    last_xp_awarded: Optional[int] = None
    awaiting_grade: bool = False
    notice: Optional[str] = None
    error_message: Optional[str] = None
    reviews_completed: int = 0
    session_xp: int = 0
    grade_options: list[GradeOption] = Field(default_factory=list)
