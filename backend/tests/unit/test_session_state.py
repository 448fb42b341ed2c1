"""
Unit tests for the study session reducer.

Covers every transition of the state machine and checks that events which
are invalid in the current state leave the state object untouched.
"""

import pytest

from neurolex.enums.learning import QuizType, SessionMode, SessionType
from neurolex.models.learning import GradeOption, QuizEvaluation, QuizGeneration
from neurolex.services.learning.session_state import (
    DEFAULT_GRADE_OPTIONS,
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

QUIZ = QuizGeneration(question="Use 'ephemeral' in a sentence.", type=QuizType.CONTEXT)


def run(state, *events):
    for event in events:
        state = reduce(state, event)
    return state


@pytest.fixture
def items(item_factory):
    return tuple(item_factory(term_id=f"t{i}", content=f"term{i}") for i in range(3))


@pytest.fixture
def standard_question(items):
    """Standard session showing the first of three items."""
    return run(SessionState(), SessionStarted(SessionType.STANDARD), ItemsLoaded(items))


@pytest.fixture
def ai_loading(items):
    """AI session waiting for a quiz for the first item."""
    return run(SessionState(), SessionStarted(SessionType.AI), ItemsLoaded(items))


class TestStart:
    """Tests for selection → loading → question."""

    def test_initial_state(self):
        state = SessionState()
        assert state.mode == SessionMode.SELECTION
        assert state.current_item is None
        assert state.queue == ()

    def test_start_moves_to_loading(self):
        state = reduce(SessionState(), SessionStarted(SessionType.AI, QuizType.CLOZE))
        assert state.mode == SessionMode.LOADING
        assert state.session_type == SessionType.AI
        assert state.preferred_quiz_type == QuizType.CLOZE

    def test_standard_items_loaded(self, standard_question, items):
        """The first item is popped; the queue holds the rest."""
        assert standard_question.mode == SessionMode.QUESTION
        assert standard_question.current_item == items[0]
        assert standard_question.queue == items[1:]

    def test_queue_excludes_current_item(self, standard_question):
        assert standard_question.current_item not in standard_question.queue

    def test_empty_queue_finishes(self):
        state = run(SessionState(), SessionStarted(), ItemsLoaded(()))
        assert state.mode == SessionMode.FINISHED
        assert state.current_item is None

    def test_ai_session_waits_for_quiz(self, ai_loading, items):
        assert ai_loading.mode == SessionMode.LOADING
        assert ai_loading.current_item == items[0]

    def test_quiz_ready(self, ai_loading):
        state = reduce(ai_loading, QuizReady(QUIZ))
        assert state.mode == SessionMode.QUESTION
        assert state.pending_quiz == QUIZ

    def test_quiz_unavailable_degrades_to_flashcard(self, ai_loading):
        state = reduce(ai_loading, QuizUnavailable("No quiz"))
        assert state.mode == SessionMode.QUESTION
        assert state.pending_quiz is None
        assert state.notice == "No quiz"

    def test_fetch_failure(self):
        state = run(SessionState(), SessionStarted(), SessionFailed("Failed to synchronize study queue."))
        assert state.mode == SessionMode.ERROR
        assert state.error_message == "Failed to synchronize study queue."


class TestAnswering:
    """Tests for question → evaluating / feedback."""

    def test_flashcard_answer_reveals(self, standard_question):
        """Without a quiz the answer leads to feedback awaiting a grade."""
        state = reduce(standard_question, AnswerSubmitted("short-lived"))
        assert state.mode == SessionMode.FEEDBACK
        assert state.awaiting_grade is True
        assert state.user_answer == "short-lived"

    def test_quiz_answer_evaluates(self, ai_loading):
        state = run(ai_loading, QuizReady(QUIZ), AnswerSubmitted("It fades fast."))
        assert state.mode == SessionMode.EVALUATING
        assert state.user_answer == "It fades fast."

    def test_degraded_ai_item_uses_flashcard_flow(self, ai_loading):
        state = run(ai_loading, QuizUnavailable("No quiz"), AnswerSubmitted("x"))
        assert state.mode == SessionMode.FEEDBACK
        assert state.awaiting_grade is True

    def test_evaluation_then_review(self, ai_loading):
        evaluation = QuizEvaluation(grade=4, feedback="Good", ideal_answer="Short-lived")
        state = run(
            ai_loading,
            QuizReady(QUIZ),
            AnswerSubmitted("It fades fast."),
            EvaluationReady(evaluation),
        )
        assert state.mode == SessionMode.EVALUATING
        assert state.evaluation == evaluation

        state = reduce(state, ReviewRecorded(grade=4, xp_awarded=18))
        assert state.mode == SessionMode.FEEDBACK
        assert state.last_grade == 4
        assert state.last_xp_awarded == 18
        assert state.reviews_completed == 1
        assert state.session_xp == 18

    def test_evaluation_failure_awaits_manual_grade(self, ai_loading):
        state = run(ai_loading, QuizReady(QUIZ), AnswerSubmitted("x"), EvaluationFailed("AI grading unavailable."))
        assert state.mode == SessionMode.FEEDBACK
        assert state.awaiting_grade is True
        assert state.notice == "AI grading unavailable."


class TestManualGrading:
    """Tests for the manual grading path."""

    def test_grade_from_question(self, standard_question):
        state = reduce(standard_question, ManualGradeSubmitted(4))
        assert state.mode == SessionMode.EVALUATING
        assert state.last_grade == 4

    def test_grade_from_feedback(self, standard_question):
        state = run(standard_question, AnswerSubmitted(""), ManualGradeSubmitted(3))
        assert state.mode == SessionMode.EVALUATING
        assert state.awaiting_grade is False

    def test_grade_is_clamped(self, standard_question):
        assert reduce(standard_question, ManualGradeSubmitted(9)).last_grade == 5
        assert reduce(standard_question, ManualGradeSubmitted(-2)).last_grade == 0

    def test_review_failure_keeps_item(self, standard_question, items):
        state = run(standard_question, ManualGradeSubmitted(4), ReviewFailed("Failed to save."))
        assert state.mode == SessionMode.FEEDBACK
        assert state.awaiting_grade is True
        assert state.notice == "Failed to save."
        assert state.reviews_completed == 0
        assert state.current_item == items[0]


class TestInertEvents:
    """Events invalid in the current state return the same object."""

    def test_double_answer(self, standard_question):
        once = reduce(standard_question, AnswerSubmitted("a"))
        assert reduce(once, AnswerSubmitted("a")) is once

    def test_double_grade(self, standard_question):
        graded = reduce(standard_question, ManualGradeSubmitted(4))
        assert reduce(graded, ManualGradeSubmitted(4)) is graded

        recorded = reduce(graded, ReviewRecorded(grade=4, xp_awarded=18))
        assert reduce(recorded, ManualGradeSubmitted(5)) is recorded

    def test_double_review_recorded(self, standard_question):
        recorded = run(standard_question, ManualGradeSubmitted(4), ReviewRecorded(4, 18))
        assert reduce(recorded, ReviewRecorded(4, 18)) is recorded
        assert recorded.reviews_completed == 1

    @pytest.mark.parametrize(
        "event",
        [AnswerSubmitted("x"), ManualGradeSubmitted(4), Continue(), Retry(), Restart(), ChangeMode()],
    )
    def test_user_events_while_loading(self, ai_loading, event):
        """While an I/O step is in flight nothing but its result applies."""
        assert reduce(ai_loading, event) is ai_loading

    def test_continue_before_feedback(self, standard_question):
        assert reduce(standard_question, Continue()) is standard_question

    def test_start_twice(self):
        loading = reduce(SessionState(), SessionStarted())
        assert reduce(loading, SessionStarted(SessionType.AI)) is loading

    def test_unknown_event(self, standard_question):
        assert reduce(standard_question, object()) is standard_question


class TestProgression:
    """Tests for feedback → next item / finished."""

    def _review(self, state, grade=4):
        return run(state, ManualGradeSubmitted(grade), ReviewRecorded(grade, 10 + 2 * grade))

    def test_continue_pops_next(self, standard_question, items):
        state = reduce(self._review(standard_question), Continue())
        assert state.mode == SessionMode.QUESTION
        assert state.current_item == items[1]
        assert state.queue == items[2:]
        assert state.last_grade is None
        assert state.last_xp_awarded is None

    def test_queue_exhausts_after_n_cycles(self, standard_question, items):
        """N reviews with continue finish the session with totals."""
        state = standard_question
        for _ in items:
            state = reduce(self._review(state, grade=5), Continue())

        assert state.mode == SessionMode.FINISHED
        assert state.current_item is None
        assert state.reviews_completed == len(items)
        assert state.session_xp == 20 * len(items)

    def test_continue_without_grade(self, standard_question, items):
        """Skipping a reveal without grading moves on."""
        state = run(standard_question, AnswerSubmitted(""), Continue())
        assert state.current_item == items[1]
        assert state.reviews_completed == 0

    def test_ai_continue_waits_for_next_quiz(self, ai_loading):
        state = run(ai_loading, QuizReady(QUIZ), ManualGradeSubmitted(3), ReviewRecorded(3, 16), Continue())
        assert state.mode == SessionMode.LOADING
        assert state.pending_quiz is None


class TestRecovery:
    """Tests for retry, change mode and restart."""

    def test_retry_keeps_session_type(self):
        failed = run(SessionState(), SessionStarted(SessionType.AI, QuizType.SCENARIO), SessionFailed("boom"))
        state = reduce(failed, Retry())
        assert state.mode == SessionMode.LOADING
        assert state.session_type == SessionType.AI
        assert state.preferred_quiz_type == QuizType.SCENARIO
        assert state.error_message is None

    def test_change_mode_from_error(self):
        failed = run(SessionState(), SessionStarted(SessionType.AI), SessionFailed("boom"))
        state = reduce(failed, ChangeMode())
        assert state.mode == SessionMode.SELECTION

    def test_change_mode_mid_session(self, standard_question):
        state = reduce(standard_question, ChangeMode())
        assert state.mode == SessionMode.SELECTION
        assert state.queue == ()

    def test_restart_after_finish(self):
        finished = run(SessionState(), SessionStarted(), ItemsLoaded(()))
        state = reduce(finished, Restart())
        assert state.mode == SessionMode.SELECTION


class TestGradeOptions:
    """Tests for configurable grade buttons."""

    def test_defaults(self):
        assert load_grade_options({}) == DEFAULT_GRADE_OPTIONS
        assert [o.grade for o in DEFAULT_GRADE_OPTIONS] == [0, 3, 4, 5]

    def test_from_config(self, sample_yaml_config):
        options = load_grade_options(sample_yaml_config)
        assert options == (GradeOption(label="Again", grade=1), GradeOption(label="Good", grade=4))

    @pytest.mark.parametrize("raw,expected", [(3, 3), (7, 5), (-1, 0), ("4", 4), (None, 0)])
    def test_clamp_grade(self, raw, expected):
        assert clamp_grade(raw) == expected
