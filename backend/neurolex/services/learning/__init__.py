"""
Learning System Services

Services for the SM-2 spaced repetition system and AI study sessions.

Modules:
- sm2: SM-2 scheduling recurrence (pure)
- rewards: XP awards and levels
- spaced_rep_service: Term storage and atomic review persistence
- quiz_generator: LLM-powered quiz question generation
- answer_evaluator: LLM-powered answer grading
- session_state: Study session state and reducer (pure)
- session_controller: Async study session orchestration

Usage:
    from neurolex.services.learning import (
        SpacedRepService,
        StudySessionController,
        compute_next_review,
    )
"""

from neurolex.services.learning.sm2 import ReviewResult, compute_next_review
from neurolex.services.learning.rewards import level_for_xp, review_xp
from neurolex.services.learning.spaced_rep_service import SpacedRepService
from neurolex.services.learning.quiz_generator import QuizGenerator
from neurolex.services.learning.answer_evaluator import AnswerEvaluator
from neurolex.services.learning.session_state import SessionState, reduce
from neurolex.services.learning.session_controller import (
    SessionRegistry,
    StudySessionController,
)

__all__ = [
    # SM-2
    "ReviewResult",
    "compute_next_review",
    # XP
    "level_for_xp",
    "review_xp",
    # Services
    "SpacedRepService",
    "QuizGenerator",
    "AnswerEvaluator",
    # Sessions
    "SessionState",
    "reduce",
    "SessionRegistry",
    "StudySessionController",
]
