"""
Quiz Generation Service

LLM-powered generation of a single quiz question for a vocabulary term.

Question types:
- definition: precise meaning, nuances, differences from synonyms
- context: apply the term in a sentence or explain its role in a phrase
- scenario: a short realistic situation where the term must be used
- multiple_choice: four distinct options, exactly one correct
- cloze: a sentence with the term replaced by "____"

With the "auto" preference the model picks whichever type suits the term.
"""

import logging
from typing import Optional

from neurolex.enums.learning import QuizType
from neurolex.enums.llm import LLMOperation
from neurolex.middleware.error_handling import ConfigurationError, LLMError
from neurolex.models.learning import LearningItem, QuizGeneration
from neurolex.services.llm.client import LLMClient, build_messages, get_llm_client
from neurolex.config.settings import settings

logger = logging.getLogger(__name__)

MULTIPLE_CHOICE_OPTIONS = 4


QUIZ_GENERATION_PROMPT = """You are an experienced language tutor. The learner is studying the term "{term}".
Definition: "{definition}".
Learner's notes or example: "{context}".
Write everything in this language: "{language}".

{type_instruction}

Question types:
- "definition": probe the exact meaning, a nuance, or how it differs from a near-synonym.
- "context": have the learner use the term in a sentence or explain its role in a given phrase.
- "scenario": describe a short, realistic situation in which the learner must use or recognise the term.
- "multiple_choice": ask a question and give exactly 4 distinct options, one of them correct.
- "cloze": give a sentence with "{term}" (or an inflected form) replaced by "____".

When context is available, prefer application over plain recall of the definition.

Respond with a single JSON object:
{{
    "question": "question text or cloze sentence, in {language}",
    "type": "definition" | "context" | "scenario" | "multiple_choice" | "cloze",
    "options": ["...", "...", "...", "..."]
}}
Include "options" only for multiple_choice.
"""

AUTO_TYPE_INSTRUCTION = "Write one short, challenging question that tests real understanding of the term."
FIXED_TYPE_INSTRUCTION = 'The learner asked for a "{quiz_type}" question. The question MUST be of type "{quiz_type}".'


class QuizGenerator:
    """
    Generates AI quiz questions for learning items.

    Raises ConfigurationError when no LLM credentials are configured, so
    callers can tell a missing setup apart from a transient failure
    (LLMError).
    """

    def __init__(self, llm_client: Optional[LLMClient] = None):
        self.llm = llm_client or get_llm_client()

    async def generate_quiz(
        self,
        term: LearningItem,
        language: str,
        preferred_type: QuizType = QuizType.AUTO,
        model: Optional[str] = None,
    ) -> QuizGeneration:
        """
        Generate a quiz question for a term.

        Args:
            term: Item to quiz (content, definition, optional context)
            language: Output language (BCP 47 tag)
            preferred_type: Requested question type, or AUTO
            model: Optional model override from the learner profile

        Returns:
            Validated QuizGeneration

        Raises:
            ConfigurationError: No LLM credentials configured
            LLMError: The call failed or returned an unusable quiz
        """
        if not self.llm.has_credentials():
            raise ConfigurationError("No LLM credentials configured for quiz generation")

        preferred_type = QuizType(preferred_type)
        if preferred_type == QuizType.AUTO:
            type_instruction = AUTO_TYPE_INSTRUCTION
        else:
            type_instruction = FIXED_TYPE_INSTRUCTION.format(quiz_type=preferred_type.value)

        prompt = QUIZ_GENERATION_PROMPT.format(
            term=term.content,
            definition=term.definition,
            context=term.context or "None",
            language=language,
            type_instruction=type_instruction,
        )
        messages = build_messages(
            prompt="Generate the question now.",
            system_prompt=prompt,
        )

        try:
            result = await self.llm.complete(
                operation=LLMOperation.QUIZ_GENERATION,
                messages=messages,
                temperature=settings.QUIZ_TEMPERATURE,
                json_mode=True,
                model=model,
            )
        except Exception as e:
            logger.error(f"Quiz generation failed for '{term.content}': {e}")
            raise LLMError(f"Quiz generation failed: {e}") from e

        quiz = self._validate(result)
        logger.debug(f"Generated {quiz.type.value} quiz for '{term.content}'")
        return quiz

    def _validate(self, result) -> QuizGeneration:
        """Check the model output and build a QuizGeneration."""
        if not isinstance(result, dict):
            raise LLMError("Invalid quiz format: expected a JSON object")

        question = result.get("question")
        quiz_type = result.get("type")
        if not question or not quiz_type:
            raise LLMError("Invalid quiz format: missing required fields")

        try:
            quiz_type = QuizType(quiz_type)
        except ValueError:
            raise LLMError(f"Invalid quiz type: {quiz_type}")
        if quiz_type == QuizType.AUTO:
            raise LLMError("Invalid quiz type: auto")

        options = None
        if quiz_type == QuizType.MULTIPLE_CHOICE:
            options = result.get("options")
            if not isinstance(options, list) or len(options) != MULTIPLE_CHOICE_OPTIONS:
                raise LLMError("Multiple choice quizzes must have exactly 4 options")
            options = [str(o) for o in options]

        return QuizGeneration(question=str(question), type=quiz_type, options=options)
