"""
Unit tests for QuizGenerator.

The LLM client is mocked; these tests cover prompt construction and
validation of the model output.
"""

import json

import pytest

from neurolex.enums.learning import QuizType
from neurolex.enums.llm import LLMOperation
from neurolex.middleware.error_handling import ConfigurationError, LLMError
from neurolex.services.learning.quiz_generator import QuizGenerator


@pytest.fixture
def generator(mock_llm_client):
    return QuizGenerator(llm_client=mock_llm_client)


class TestGenerateQuiz:
    """Tests for successful generation."""

    @pytest.mark.asyncio
    async def test_open_question(self, generator, mock_llm_client, sample_item):
        mock_llm_client.complete.return_value = {
            "question": "How would you describe an ephemeral friendship?",
            "type": "scenario",
        }

        quiz = await generator.generate_quiz(sample_item, language="en-US")

        assert quiz.type == QuizType.SCENARIO
        assert quiz.question.startswith("How would")
        assert quiz.options is None

        _, kwargs = mock_llm_client.complete.call_args
        assert kwargs["operation"] == LLMOperation.QUIZ_GENERATION
        assert kwargs["json_mode"] is True

    @pytest.mark.asyncio
    async def test_multiple_choice(self, generator, mock_llm_client, sample_item):
        mock_llm_client.complete.return_value = {
            "question": "Which word means short-lived?",
            "type": "multiple_choice",
            "options": ["ephemeral", "eternal", "robust", "lucid"],
        }

        quiz = await generator.generate_quiz(sample_item, language="en-US")

        assert quiz.type == QuizType.MULTIPLE_CHOICE
        assert quiz.options == ["ephemeral", "eternal", "robust", "lucid"]

    @pytest.mark.asyncio
    async def test_prompt_includes_term_language_and_type(
        self, generator, mock_llm_client, item_factory
    ):
        """The term, its context, the language and a fixed type reach the prompt."""
        item = item_factory(content="Fernweh", definition="longing for far places", context="Ich habe Fernweh")
        mock_llm_client.complete.return_value = {"question": "Fernweh ist ____.", "type": "cloze"}

        await generator.generate_quiz(item, language="de-DE", preferred_type=QuizType.CLOZE)

        _, kwargs = mock_llm_client.complete.call_args
        system_prompt = kwargs["messages"][0]["content"]
        assert '"Fernweh"' in system_prompt
        assert "Ich habe Fernweh" in system_prompt
        assert "de-DE" in system_prompt
        assert 'MUST be of type "cloze"' in system_prompt

    @pytest.mark.asyncio
    async def test_model_override(self, generator, mock_llm_client, sample_item):
        mock_llm_client.complete.return_value = {"question": "Define it.", "type": "definition"}

        await generator.generate_quiz(sample_item, language="en-US", model="anthropic/claude-3-haiku")

        _, kwargs = mock_llm_client.complete.call_args
        assert kwargs["model"] == "anthropic/claude-3-haiku"


class TestGenerateQuizFailures:
    """Tests for configuration errors and unusable output."""

    @pytest.mark.asyncio
    async def test_no_credentials(self, generator, mock_llm_client, sample_item):
        mock_llm_client.has_credentials.return_value = False

        with pytest.raises(ConfigurationError):
            await generator.generate_quiz(sample_item, language="en-US")

        mock_llm_client.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_call_failure_becomes_llm_error(self, generator, mock_llm_client, sample_item):
        mock_llm_client.complete.side_effect = json.JSONDecodeError("Expecting value", "", 0)

        with pytest.raises(LLMError):
            await generator.generate_quiz(sample_item, language="en-US")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            "just text",
            {"type": "definition"},
            {"question": "What?"},
            {"question": "What?", "type": "essay"},
            {"question": "What?", "type": "auto"},
            {"question": "Pick one", "type": "multiple_choice", "options": ["a", "b"]},
            {"question": "Pick one", "type": "multiple_choice"},
        ],
    )
    async def test_invalid_output(self, generator, mock_llm_client, sample_item, payload):
        mock_llm_client.complete.return_value = payload

        with pytest.raises(LLMError):
            await generator.generate_quiz(sample_item, language="en-US")
