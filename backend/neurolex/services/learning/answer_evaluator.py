"""
Answer Evaluation Service

LLM-powered grading of learner answers to AI quiz questions.
Converts a free-text answer into an SM-2 grade (0-5) with feedback.

Grade scale (SuperMemo):
- 5: Perfect response
- 4: Correct after hesitation, or a minor flaw
- 3: Correct but recalled with serious difficulty
- 2: Incorrect, but the correct answer seemed easy once seen
- 1: Incorrect, the correct answer was remembered / partial truth
- 0: Complete blackout or wrong
"""

import logging
from typing import Optional

from neurolex.config.settings import settings
from neurolex.enums.llm import LLMOperation
from neurolex.middleware.error_handling import ConfigurationError, LLMError
from neurolex.models.learning import LearningItem, QuizEvaluation
from neurolex.services.learning.sm2 import round_half_up
from neurolex.services.llm.client import LLMClient, build_messages, get_llm_client

logger = logging.getLogger(__name__)


DEFAULT_FEEDBACK = [
    "Keep studying - this one needs more work.",
    "Not quite - review this term again.",
    "Getting there, but needs more practice.",
    "Good effort! Review to strengthen.",
    "Very good - almost perfect!",
    "Excellent! Perfect response!",
]

BLANK_ANSWER_FEEDBACK = "No answer given. Review this term and try again next time."


ANSWER_EVALUATION_PROMPT = """You are a strict but fair teacher grading a vocabulary quiz.
Term: "{term}".
Definition: "{definition}".
Question asked: "{question}".
Give all feedback in this language: "{language}".

Grade the learner's answer from 0 to 5 on the SuperMemo scale:
5 - perfect response
4 - correct after hesitation, or with a minor flaw
3 - correct but recalled with serious difficulty
2 - incorrect, although the correct answer seemed easy to recall
1 - incorrect, but the correct answer was remembered or partly right
0 - complete blackout or wrong

Respond with a single JSON object:
{{
    "grade": <0-5>,
    "feedback": "short constructive feedback in {language}",
    "ideal_answer": "the ideal answer"
}}
"""


def default_feedback(grade: int) -> str:
    """Fallback feedback text for a grade."""
    return DEFAULT_FEEDBACK[min(max(grade, 0), 5)]


class AnswerEvaluator:
    """
    LLM-powered evaluation of quiz answers.

    Blank answers are graded 0 without calling the model.
    """

    def __init__(self, llm_client: Optional[LLMClient] = None):
        self.llm = llm_client or get_llm_client()

    async def evaluate(
        self,
        term: LearningItem,
        question: str,
        user_answer: str,
        language: str,
        model: Optional[str] = None,
    ) -> QuizEvaluation:
        """
        Grade a learner's answer.

        Args:
            term: Item being reviewed
            question: The quiz question that was asked
            user_answer: What the learner typed
            language: Feedback language (BCP 47 tag)
            model: Optional model override from the learner profile

        Returns:
            QuizEvaluation with grade 0-5, feedback and ideal answer

        Raises:
            ConfigurationError: No LLM credentials configured
            LLMError: The call failed or returned an invalid grade
        """
        if not user_answer or not user_answer.strip():
            return QuizEvaluation(
                grade=0,
                feedback=BLANK_ANSWER_FEEDBACK,
                ideal_answer=term.definition,
            )

        if not self.llm.has_credentials():
            raise ConfigurationError("No LLM credentials configured for answer evaluation")

        prompt = ANSWER_EVALUATION_PROMPT.format(
            term=term.content,
            definition=term.definition,
            question=question,
            language=language,
        )
        messages = build_messages(
            prompt=f'The learner answered: "{user_answer}". Grade this answer.',
            system_prompt=prompt,
        )

        try:
            result = await self.llm.complete(
                operation=LLMOperation.ANSWER_EVALUATION,
                messages=messages,
                temperature=settings.EVALUATION_TEMPERATURE,
                json_mode=True,
                model=model,
            )
        except Exception as e:
            logger.error(f"Answer evaluation failed for '{term.content}': {e}")
            raise LLMError(f"Answer evaluation failed: {e}") from e

        if not isinstance(result, dict):
            raise LLMError("Invalid evaluation format: expected a JSON object")

        grade = result.get("grade")
        if isinstance(grade, bool) or not isinstance(grade, (int, float)) or not 0 <= grade <= 5:
            raise LLMError(f"Invalid grade: {grade}. Must be 0-5.")
        grade = round_half_up(grade)

        ideal_answer = result.get("ideal_answer") or result.get("correct_answer") or result.get("correctAnswer")

        return QuizEvaluation(
            grade=grade,
            feedback=result.get("feedback") or default_feedback(grade),
            ideal_answer=ideal_answer or term.definition,
        )
