"""Enums package."""

from neurolex.enums.learning import Grade, QuizType, SessionMode, SessionType
from neurolex.enums.llm import LLMOperation

__all__ = [
    "Grade",
    "QuizType",
    "SessionMode",
    "SessionType",
    "LLMOperation",
]
