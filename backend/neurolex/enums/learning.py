"""
Learning System Enums

Defines enums for SM-2 grading, study session types and the study
session state machine.
"""

from enum import Enum


class Grade(int, Enum):
    """
    SM-2 recall quality grades (0-5).

    Self-assessed by the learner or assigned by the AI grading oracle.
    Grades >= 3 count as a successful recall.
    """

    BLACKOUT = 0  # Complete blackout
    WRONG_REMEMBERED = 1  # Incorrect, but the answer was remembered on reveal
    WRONG_EASY = 2  # Incorrect, but the answer seemed easy to recall
    DIFFICULT = 3  # Correct with serious difficulty
    CORRECT = 4  # Correct after hesitation
    PERFECT = 5  # Perfect response


class SessionType(str, Enum):
    """
    Types of study sessions.
    """

    STANDARD = "standard"  # Self-graded flashcards
    AI = "ai"  # LLM-generated quiz + LLM-graded answer


class SessionMode(str, Enum):
    """
    Study session state machine states.

    State transitions:
    - SELECTION → LOADING (start)
    - LOADING → QUESTION | FINISHED | ERROR
    - QUESTION → EVALUATING (grading in flight) | FEEDBACK (self-graded reveal)
    - EVALUATING → FEEDBACK
    - FEEDBACK → LOADING (next item) | FINISHED (queue empty)
    - FINISHED → SELECTION (restart)
    - ERROR → LOADING (retry) | SELECTION (change mode)
    """

    SELECTION = "selection"
    LOADING = "loading"
    QUESTION = "question"
    EVALUATING = "evaluating"
    FEEDBACK = "feedback"
    FINISHED = "finished"
    ERROR = "error"


class QuizType(str, Enum):
    """
    Quiz question types the AI quiz generator can produce.

    AUTO is only a preference hint; generated quizzes always carry a
    concrete type.
    """

    AUTO = "auto"
    DEFINITION = "definition"
    CONTEXT = "context"
    SCENARIO = "scenario"
    MULTIPLE_CHOICE = "multiple_choice"
    CLOZE = "cloze"
