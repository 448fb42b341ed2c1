"""
Study Session Controller

Drives one study session end to end on top of the pure reducer in
session_state.py: loads the due queue, requests AI quizzes, collects answers
and grades, persists reviews and awards XP.

Every collaborator failure is caught here and turned into a short message
on the session state; nothing propagates to the caller.

Failure handling:
- Due-item fetch failure → error state
- AI session without credentials or with AI disabled → error state
- Quiz generation failure → item degrades to a flashcard with a notice
- AI grading failure → feedback awaiting a manual grade
- Review write failure → feedback with a notice, nothing written

Usage:
    controller = StudySessionController()
    await controller.start(SessionType.AI)
    await controller.submit_answer("lasting a very short time")
    await controller.next_item()
"""

import logging
import uuid
from collections import OrderedDict
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from neurolex.config.settings import settings
from neurolex.db.base import async_session_maker
from neurolex.enums.learning import QuizType, SessionMode, SessionType
from neurolex.middleware.error_handling import ConfigurationError, ServiceError
from neurolex.models.learning import ProfileResponse, SessionStateResponse
from neurolex.services.learning.answer_evaluator import AnswerEvaluator
from neurolex.services.learning.quiz_generator import QuizGenerator
from neurolex.services.learning.rewards import review_xp
from neurolex.services.learning.session_state import (
    AnswerSubmitted,
    ChangeMode,
    Continue,
    EvaluationFailed,
    EvaluationReady,
    ItemsLoaded,
    ManualGradeSubmitted,
    QuizReady,
    QuizUnavailable,
    Restart,
    Retry,
    ReviewFailed,
    ReviewRecorded,
    SessionFailed,
    SessionStarted,
    SessionState,
    clamp_grade,
    load_grade_options,
    reduce,
)
from neurolex.services.learning.spaced_rep_service import SpacedRepService

logger = logging.getLogger(__name__)

QUEUE_LOAD_FAILED = "Failed to synchronize study queue."
AI_DISABLED = "AI features are turned off. Enable AI in settings or start a standard session."
QUIZ_UNAVAILABLE = "Could not generate an AI question for this term. Showing it as a flashcard."
GRADING_UNAVAILABLE = "AI grading unavailable. Please rate your recall manually."
REVIEW_SAVE_FAILED = "Failed to save your review. Please try again."


class StudySessionController:
    """
    Async orchestrator for a single study session.

    Holds the current SessionState and replaces it by dispatching events.
    While an I/O step is in flight the session sits in `loading` or
    `evaluating`, so repeated user events are ignored by the reducer.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession] = None,
        quiz_generator: Optional[QuizGenerator] = None,
        answer_evaluator: Optional[AnswerEvaluator] = None,
        batch_size: Optional[int] = None,
        clock: Callable[[], datetime] = datetime.now,
        session_id: Optional[str] = None,
    ):
        """
        Initialize the controller.

        Args:
            session_maker: Factory for database sessions (one per I/O step)
            quiz_generator: Quiz oracle (created lazily for AI sessions)
            answer_evaluator: Grading oracle (created lazily for AI sessions)
            batch_size: Maximum queue size (defaults to STUDY_BATCH_SIZE)
            clock: Wall clock used for due queries and review timestamps
            session_id: Identifier used by the session registry
        """
        self.session_maker = session_maker or async_session_maker
        self._quiz_generator = quiz_generator
        self._answer_evaluator = answer_evaluator
        self.batch_size = batch_size or settings.STUDY_BATCH_SIZE
        self.clock = clock
        self.session_id = session_id or str(uuid.uuid4())

        self.state = SessionState()
        self.profile = ProfileResponse(language=settings.DEFAULT_LANGUAGE)
        self.grade_options = load_grade_options()

    @property
    def quiz_generator(self) -> QuizGenerator:
        if self._quiz_generator is None:
            self._quiz_generator = QuizGenerator()
        return self._quiz_generator

    @property
    def answer_evaluator(self) -> AnswerEvaluator:
        if self._answer_evaluator is None:
            self._answer_evaluator = AnswerEvaluator()
        return self._answer_evaluator

    def dispatch(self, event) -> bool:
        """Apply an event. Returns False when the reducer ignored it."""
        previous = self.state
        self.state = reduce(previous, event)
        if self.state is previous:
            logger.debug(f"[{self.session_id}] Ignored {type(event).__name__} in {previous.mode.value}")
            return False
        if self.state.mode != previous.mode:
            logger.info(
                f"[{self.session_id}] {previous.mode.value} → {self.state.mode.value} "
                f"({type(event).__name__})"
            )
        return True

    @asynccontextmanager
    async def _storage(self) -> AsyncIterator[SpacedRepService]:
        async with self.session_maker() as db:
            yield SpacedRepService(db)

    # =========================================================================
    # User actions
    # =========================================================================

    async def start(
        self,
        session_type: SessionType = SessionType.STANDARD,
        preferred_quiz_type: QuizType = QuizType.AUTO,
    ) -> SessionState:
        """Leave selection and load the due queue."""
        if self.dispatch(SessionStarted(session_type, preferred_quiz_type)):
            await self._load_queue()
        return self.state

    async def submit_answer(self, answer: str) -> SessionState:
        """
        Submit an answer to the current question.

        With an AI quiz the answer is graded by the evaluator; otherwise the
        definition is revealed and a manual grade is awaited.
        """
        if self.dispatch(AnswerSubmitted(answer or "")):
            if self.state.mode == SessionMode.EVALUATING:
                await self._evaluate_answer()
        return self.state

    async def grade(self, grade: int) -> SessionState:
        """Self-grade the current item (clamped to 0-5) and persist it."""
        grade = clamp_grade(grade)
        if self.dispatch(ManualGradeSubmitted(grade)):
            await self._record_review(grade, review_xp(grade))
        return self.state

    async def next_item(self) -> SessionState:
        """Move on from feedback to the next item, or finish."""
        if self.dispatch(Continue()):
            await self._prepare_current_item()
        return self.state

    async def retry(self) -> SessionState:
        """Reload the queue after an error, keeping the session type."""
        if self.dispatch(Retry()):
            await self._load_queue()
        return self.state

    async def change_mode(self) -> SessionState:
        """Return to session type selection."""
        self.dispatch(ChangeMode())
        return self.state

    async def restart(self) -> SessionState:
        """Return to selection after finishing."""
        self.dispatch(Restart())
        return self.state

    # =========================================================================
    # I/O steps
    # =========================================================================

    async def _load_queue(self) -> None:
        try:
            async with self._storage() as storage:
                self.profile = await storage.get_settings()
                items = await storage.get_due_items(limit=self.batch_size, now=self.clock())
        except Exception as e:
            logger.error(f"[{self.session_id}] Failed to load due items: {e}")
            self.dispatch(SessionFailed(QUEUE_LOAD_FAILED))
            return

        logger.info(f"[{self.session_id}] Loaded {len(items)} due items")
        self.dispatch(ItemsLoaded(tuple(items)))
        await self._prepare_current_item()

    async def _prepare_current_item(self) -> None:
        """Request an AI quiz when the current item is waiting for one."""
        state = self.state
        if state.mode != SessionMode.LOADING or state.current_item is None:
            return

        if not self.profile.ai_enabled:
            self.dispatch(SessionFailed(AI_DISABLED))
            return

        try:
            quiz = await self.quiz_generator.generate_quiz(
                state.current_item,
                language=self.profile.language,
                preferred_type=state.preferred_quiz_type,
                model=self.profile.model,
            )
        except ConfigurationError as e:
            logger.warning(f"[{self.session_id}] AI not configured: {e.message}")
            self.dispatch(SessionFailed(e.user_message))
            return
        except Exception as e:
            logger.warning(
                f"[{self.session_id}] Quiz generation failed for "
                f"'{state.current_item.content}', falling back to flashcard: {e}"
            )
            self.dispatch(QuizUnavailable(QUIZ_UNAVAILABLE))
            return

        self.dispatch(QuizReady(quiz))

    async def _evaluate_answer(self) -> None:
        state = self.state
        try:
            evaluation = await self.answer_evaluator.evaluate(
                state.current_item,
                question=state.pending_quiz.question,
                user_answer=state.user_answer,
                language=self.profile.language,
                model=self.profile.model,
            )
        except Exception as e:
            logger.warning(f"[{self.session_id}] AI grading failed: {e}")
            self.dispatch(EvaluationFailed(GRADING_UNAVAILABLE))
            return

        self.dispatch(EvaluationReady(evaluation))
        await self._record_review(evaluation.grade, review_xp(evaluation.grade))

    async def _record_review(self, grade: int, xp: int) -> None:
        item = self.state.current_item
        try:
            async with self._storage() as storage:
                outcome = await storage.record_review(item.id, grade, xp, now=self.clock())
        except Exception as e:
            logger.error(f"[{self.session_id}] Failed to record review for {item.id}: {e}")
            notice = e.user_message if isinstance(e, ServiceError) else REVIEW_SAVE_FAILED
            self.dispatch(ReviewFailed(notice))
            return

        self.profile = self.profile.model_copy(update={"xp": outcome.total_xp})
        self.dispatch(ReviewRecorded(grade=outcome.grade, xp_awarded=outcome.xp_awarded))

    # =========================================================================
    # Presentation
    # =========================================================================

    def snapshot(self) -> SessionStateResponse:
        """Serializable view of the current state."""
        state = self.state
        return SessionStateResponse(
            session_id=self.session_id,
            mode=state.mode,
            session_type=state.session_type,
            preferred_quiz_type=state.preferred_quiz_type,
            current_item=state.current_item,
            queue_remaining=len(state.queue),
            pending_quiz=state.pending_quiz,
            user_answer=state.user_answer,
            evaluation=state.evaluation,
            last_grade=state.last_grade,
            last_xp_awarded=state.last_xp_awarded,
            awaiting_grade=state.awaiting_grade,
            notice=state.notice,
            error_message=state.error_message,
            reviews_completed=state.reviews_completed,
            session_xp=state.session_xp,
            grade_options=list(self.grade_options),
        )


class SessionRegistry:
    """
    In-process registry of active study sessions.

    Oldest sessions are evicted once `max_sessions` is reached.
    """

    def __init__(self, max_sessions: int = 100):
        self.max_sessions = max_sessions
        self._sessions: OrderedDict[str, StudySessionController] = OrderedDict()

    def create(self, **kwargs) -> StudySessionController:
        controller = StudySessionController(**kwargs)
        self._sessions[controller.session_id] = controller
        while len(self._sessions) > self.max_sessions:
            evicted, _ = self._sessions.popitem(last=False)
            logger.info(f"Evicted study session {evicted}")
        return controller

    def get(self, session_id: str) -> Optional[StudySessionController]:
        return self._sessions.get(session_id)

    def remove(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._sessions)
