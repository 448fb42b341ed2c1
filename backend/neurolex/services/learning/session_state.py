"""
Study Session State Machine

Immutable session state plus a pure reducer. The async controller
(session_controller.py) dispatches events and performs I/O between them;
all transition rules live here.

States:
    selection → loading → question → evaluating → feedback → loading | finished
    error is reachable from loading, question and evaluating.

Events that are not valid in the current state return the state object
unchanged. Callers detect an ignored event with `new_state is old_state`,
which makes double submission harmless.

Usage:
    state = SessionState()
    state = reduce(state, SessionStarted(SessionType.STANDARD))
    state = reduce(state, ItemsLoaded(tuple(items)))
"""

from dataclasses import dataclass, replace
from functools import singledispatch
from typing import Optional

from neurolex.config.settings import yaml_config
from neurolex.enums.learning import Grade, QuizType, SessionMode, SessionType
from neurolex.models.learning import (
    GradeOption,
    LearningItem,
    QuizEvaluation,
    QuizGeneration,
)

DEFAULT_GRADE_OPTIONS = (
    GradeOption(label="Blackout", grade=Grade.BLACKOUT.value),
    GradeOption(label="Difficult", grade=Grade.DIFFICULT.value),
    GradeOption(label="Correct", grade=Grade.CORRECT.value),
    GradeOption(label="Perfect", grade=Grade.PERFECT.value),
)

# Modes with an I/O step in flight; user events are ignored here
IN_FLIGHT_MODES = (SessionMode.LOADING, SessionMode.EVALUATING)


def load_grade_options(config: Optional[dict] = None) -> tuple[GradeOption, ...]:
    """Manual grade buttons from `study.grade_options`, or the defaults."""
    config = yaml_config if config is None else config
    raw = (config.get("study") or {}).get("grade_options")
    if not raw:
        return DEFAULT_GRADE_OPTIONS
    return tuple(GradeOption(**option) for option in raw)


def clamp_grade(grade) -> int:
    """Clamp a manual grade into 0-5."""
    try:
        value = int(grade)
    except (TypeError, ValueError):
        return 0
    return min(max(value, 0), 5)


@dataclass(frozen=True)
class SessionState:
    """Snapshot of one study session."""

    session_type: SessionType = SessionType.STANDARD
    preferred_quiz_type: QuizType = QuizType.AUTO
    mode: SessionMode = SessionMode.SELECTION

    queue: tuple[LearningItem, ...] = ()
    current_item: Optional[LearningItem] = None

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


# =============================================================================
# Events
# =============================================================================


@dataclass(frozen=True)
class SessionStarted:
    session_type: SessionType = SessionType.STANDARD
    preferred_quiz_type: QuizType = QuizType.AUTO


@dataclass(frozen=True)
class ItemsLoaded:
    items: tuple[LearningItem, ...]


@dataclass(frozen=True)
class QuizReady:
    quiz: QuizGeneration


@dataclass(frozen=True)
class QuizUnavailable:
    """Quiz generation failed; the item falls back to the flashcard flow."""

    notice: str


@dataclass(frozen=True)
class SessionFailed:
    """Unrecoverable for this session (fetch failure, AI not configured)."""

    message: str


@dataclass(frozen=True)
class AnswerSubmitted:
    answer: str


@dataclass(frozen=True)
class EvaluationReady:
    evaluation: QuizEvaluation


@dataclass(frozen=True)
class EvaluationFailed:
    notice: str


@dataclass(frozen=True)
class ManualGradeSubmitted:
    grade: int


@dataclass(frozen=True)
class ReviewRecorded:
    grade: int
    xp_awarded: int


@dataclass(frozen=True)
class ReviewFailed:
    notice: str


@dataclass(frozen=True)
class Continue:
    pass


@dataclass(frozen=True)
class Retry:
    pass


@dataclass(frozen=True)
class ChangeMode:
    pass


@dataclass(frozen=True)
class Restart:
    pass


# =============================================================================
# Reducer
# =============================================================================


def _present(state: SessionState, item: LearningItem, queue: tuple) -> SessionState:
    """Make `item` current and clear everything from the previous item."""
    mode = SessionMode.LOADING if state.session_type == SessionType.AI else SessionMode.QUESTION
    return replace(
        state,
        mode=mode,
        queue=queue,
        current_item=item,
        pending_quiz=None,
        user_answer=None,
        evaluation=None,
        last_grade=None,
        last_xp_awarded=None,
        awaiting_grade=False,
        notice=None,
        error_message=None,
    )


def _finish(state: SessionState) -> SessionState:
    return replace(
        state,
        mode=SessionMode.FINISHED,
        queue=(),
        current_item=None,
        pending_quiz=None,
        user_answer=None,
        evaluation=None,
        awaiting_grade=False,
        notice=None,
    )


@singledispatch
def _transition(event, state: SessionState) -> SessionState:
    """Unknown events are ignored."""
    return state


def reduce(state: SessionState, event) -> SessionState:
    """Apply one event to a state. Returns `state` itself when ignored."""
    return _transition(event, state)


@_transition.register
def _(event: SessionStarted, state: SessionState) -> SessionState:
    if state.mode != SessionMode.SELECTION:
        return state
    return SessionState(
        session_type=SessionType(event.session_type),
        preferred_quiz_type=QuizType(event.preferred_quiz_type),
        mode=SessionMode.LOADING,
    )


@_transition.register
def _(event: ItemsLoaded, state: SessionState) -> SessionState:
    if state.mode != SessionMode.LOADING or state.current_item is not None:
        return state
    items = tuple(event.items)
    if not items:
        return _finish(state)
    return _present(state, items[0], items[1:])


@_transition.register
def _(event: QuizReady, state: SessionState) -> SessionState:
    if state.mode != SessionMode.LOADING or state.current_item is None:
        return state
    return replace(state, mode=SessionMode.QUESTION, pending_quiz=event.quiz)


@_transition.register
def _(event: QuizUnavailable, state: SessionState) -> SessionState:
    if state.mode != SessionMode.LOADING or state.current_item is None:
        return state
    return replace(state, mode=SessionMode.QUESTION, pending_quiz=None, notice=event.notice)


@_transition.register
def _(event: SessionFailed, state: SessionState) -> SessionState:
    if state.mode not in (SessionMode.LOADING, SessionMode.QUESTION, SessionMode.EVALUATING):
        return state
    return replace(
        state,
        mode=SessionMode.ERROR,
        queue=(),
        current_item=None,
        pending_quiz=None,
        awaiting_grade=False,
        error_message=event.message,
    )


@_transition.register
def _(event: AnswerSubmitted, state: SessionState) -> SessionState:
    if state.mode != SessionMode.QUESTION:
        return state
    if state.session_type == SessionType.AI and state.pending_quiz is not None:
        return replace(state, mode=SessionMode.EVALUATING, user_answer=event.answer)
    # Flashcard flow: reveal the definition and wait for a self-assessed grade
    return replace(
        state,
        mode=SessionMode.FEEDBACK,
        user_answer=event.answer,
        awaiting_grade=True,
    )


@_transition.register
def _(event: EvaluationReady, state: SessionState) -> SessionState:
    if state.mode != SessionMode.EVALUATING or state.evaluation is not None:
        return state
    return replace(state, evaluation=event.evaluation)


@_transition.register
def _(event: EvaluationFailed, state: SessionState) -> SessionState:
    if state.mode != SessionMode.EVALUATING:
        return state
    return replace(
        state,
        mode=SessionMode.FEEDBACK,
        evaluation=None,
        awaiting_grade=True,
        notice=event.notice,
    )


@_transition.register
def _(event: ManualGradeSubmitted, state: SessionState) -> SessionState:
    can_grade = state.mode == SessionMode.QUESTION or (
        state.mode == SessionMode.FEEDBACK and state.awaiting_grade
    )
    if not can_grade or state.current_item is None:
        return state
    return replace(
        state,
        mode=SessionMode.EVALUATING,
        last_grade=clamp_grade(event.grade),
        awaiting_grade=False,
    )


@_transition.register
def _(event: ReviewRecorded, state: SessionState) -> SessionState:
    if state.mode != SessionMode.EVALUATING:
        return state
    return replace(
        state,
        mode=SessionMode.FEEDBACK,
        last_grade=event.grade,
        last_xp_awarded=event.xp_awarded,
        awaiting_grade=False,
        notice=None,
        reviews_completed=state.reviews_completed + 1,
        session_xp=state.session_xp + event.xp_awarded,
    )


@_transition.register
def _(event: ReviewFailed, state: SessionState) -> SessionState:
    if state.mode != SessionMode.EVALUATING:
        return state
    return replace(
        state,
        mode=SessionMode.FEEDBACK,
        last_grade=None,
        last_xp_awarded=None,
        awaiting_grade=True,
        notice=event.notice,
    )


@_transition.register
def _(event: Continue, state: SessionState) -> SessionState:
    if state.mode != SessionMode.FEEDBACK:
        return state
    if not state.queue:
        return _finish(state)
    return _present(state, state.queue[0], state.queue[1:])


@_transition.register
def _(event: Retry, state: SessionState) -> SessionState:
    if state.mode != SessionMode.ERROR:
        return state
    return SessionState(
        session_type=state.session_type,
        preferred_quiz_type=state.preferred_quiz_type,
        mode=SessionMode.LOADING,
        reviews_completed=state.reviews_completed,
        session_xp=state.session_xp,
    )


@_transition.register
def _(event: ChangeMode, state: SessionState) -> SessionState:
    if state.mode in IN_FLIGHT_MODES or state.mode == SessionMode.SELECTION:
        return state
    return SessionState(preferred_quiz_type=state.preferred_quiz_type)


@_transition.register
def _(event: Restart, state: SessionState) -> SessionState:
    if state.mode != SessionMode.FINISHED:
        return state
    return SessionState(
        session_type=state.session_type,
        preferred_quiz_type=state.preferred_quiz_type,
    )
