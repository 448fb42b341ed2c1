"""
LLM Operation Enums

Operation types used for model selection in the LLM client.
"""

from enum import Enum


class LLMOperation(str, Enum):
    """Operations that call a language model."""

    QUIZ_GENERATION = "quiz_generation"
    ANSWER_EVALUATION = "answer_evaluation"
