"""Pydantic models package."""

from neurolex.models.base import StrictRequest, StrictResponse
from neurolex.models.learning import (
    AnswerRequest,
    DashboardStats,
    GradeOption,
    GradeRequest,
    LearningItem,
    LibraryExport,
    ProfileResponse,
    ProfileUpdate,
    QuizEvaluation,
    QuizGeneration,
    ReviewHistoryEntry,
    ReviewOutcome,
    SessionStateResponse,
    StartSessionRequest,
    TermCreate,
)

__all__ = [
    "StrictRequest",
    "StrictResponse",
    "AnswerRequest",
    "DashboardStats",
    "GradeOption",
    "GradeRequest",
    "LearningItem",
    "LibraryExport",
    "ProfileResponse",
    "ProfileUpdate",
    "QuizEvaluation",
    "QuizGeneration",
    "ReviewHistoryEntry",
    "ReviewOutcome",
    "SessionStateResponse",
    "StartSessionRequest",
    "TermCreate",
]
