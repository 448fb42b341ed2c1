"""
Unified LLM Client supporting multiple providers via LiteLLM.

LiteLLM provides a unified interface to 100+ LLM providers using
the format "provider/model-name". Key features:
- Operation-based model selection via LLMOperation enum
- Automatic retries with exponential backoff
- Tolerant JSON parsing (markdown code fences, surrounding prose)
- Native async support

See: https://docs.litellm.ai/

Usage:
    from neurolex.enums import LLMOperation
    from neurolex.services.llm import get_llm_client, build_messages

    client = get_llm_client()

    result = await client.complete(
        operation=LLMOperation.QUIZ_GENERATION,
        messages=build_messages("Create a quiz...", system_prompt="..."),
        json_mode=True,
    )
"""

import json
import logging
import os
import re
from typing import Any, Optional, Union

import litellm
from litellm import acompletion
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from neurolex.config.settings import settings
from neurolex.enums.llm import LLMOperation

logger = logging.getLogger(__name__)

# Configure LiteLLM
litellm.drop_params = True  # Drop unsupported params instead of erroring
if settings.DEBUG:
    os.environ["LITELLM_LOG"] = "DEBUG"

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)

# Failures worth another attempt; auth and bad-request errors are not
TRANSIENT_ERRORS = (
    json.JSONDecodeError,
    litellm.RateLimitError,
    litellm.APIConnectionError,
    litellm.Timeout,
    litellm.ServiceUnavailableError,
    litellm.InternalServerError,
)


def build_messages(
    prompt: str,
    system_prompt: Optional[str] = None,
) -> list[dict[str, str]]:
    """
    Build messages list from prompt and optional system prompt.

    Args:
        prompt: User prompt text
        system_prompt: Optional system prompt

    Returns:
        List of message dicts for LLM API
    """
    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": prompt})
    return messages


def parse_json_response(content: str) -> Any:
    """
    Parse a model response as JSON.

    Models often wrap JSON in markdown code fences or add a sentence before
    it, so fences are stripped first and the outermost {...} block is tried
    as a fallback.

    Raises:
        json.JSONDecodeError: If no JSON object can be recovered
    """
    text = _CODE_FENCE.sub("", (content or "").strip()).strip()
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        match = _JSON_OBJECT.search(text)
        if not match:
            raise
        return json.loads(match.group(0))


class LLMClient:
    """
    Unified LLM client with operation-based model selection.

    Operations are defined in LLMOperation:
    - QUIZ_GENERATION: creative question writing (QUIZ_MODEL)
    - ANSWER_EVALUATION: grading a learner's answer (EVALUATION_MODEL)

    Operations without a dedicated model use TEXT_MODEL.
    """

    def __init__(self):
        """Initialize the LLM client and check API keys."""
        self.providers = self._validate_api_keys()

    def _validate_api_keys(self) -> list[str]:
        """
        Detect which providers have credentials.

        Logs a warning instead of failing; AI features then report a
        configuration error when used.
        """
        available_keys = []

        if os.getenv("OPENAI_API_KEY") or settings.OPENAI_API_KEY:
            available_keys.append("OpenAI")
        if os.getenv("ANTHROPIC_API_KEY") or settings.ANTHROPIC_API_KEY:
            available_keys.append("Anthropic")
        if os.getenv("GEMINI_API_KEY") or settings.GEMINI_API_KEY:
            available_keys.append("Google/Gemini")
        if os.getenv("MISTRAL_API_KEY") or settings.MISTRAL_API_KEY:
            available_keys.append("Mistral")
        if settings.LLM_API_BASE:
            available_keys.append("Custom endpoint")

        if not available_keys:
            logger.warning(
                "No LLM API keys configured. Set at least one of: "
                "OPENAI_API_KEY, ANTHROPIC_API_KEY, GEMINI_API_KEY, MISTRAL_API_KEY"
            )
        else:
            logger.info(f"LLM client initialized with providers: {available_keys}")

        return available_keys

    def has_credentials(self) -> bool:
        """Whether any provider (or a custom endpoint) is configured."""
        return bool(self.providers)

    def get_model_for_operation(self, operation: Union[LLMOperation, str]) -> str:
        """
        Get the configured model for a specific operation.

        Args:
            operation: LLMOperation enum value

        Returns:
            Model identifier in LiteLLM format (provider/model-name)
        """
        if isinstance(operation, str):
            try:
                operation = LLMOperation(operation)
            except ValueError:
                logger.warning(
                    f"Unknown operation type: {operation}, using default model"
                )
                return settings.TEXT_MODEL

        models = {
            LLMOperation.QUIZ_GENERATION: settings.QUIZ_MODEL,
            LLMOperation.ANSWER_EVALUATION: settings.EVALUATION_MODEL,
        }
        return models.get(operation) or settings.TEXT_MODEL

    @retry(
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        stop=stop_after_attempt(settings.LLM_MAX_RETRIES),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        reraise=True,
    )
    async def complete(
        self,
        operation: Union[LLMOperation, str],
        messages: list[dict],
        temperature: float = 0.7,
        max_tokens: int = 1024,
        json_mode: bool = False,
        model: Optional[str] = None,
    ) -> Union[str, Any]:
        """
        Generate a completion using the appropriate model for the operation.

        Args:
            operation: LLMOperation enum specifying the operation type
            messages: Chat messages in OpenAI format
                [{"role": "user", "content": "..."}, ...]
            temperature: Sampling temperature
            max_tokens: Maximum tokens in response
            json_mode: Request structured JSON output and parse the response.
                JSONDecodeError triggers retry, as do TRANSIENT_ERRORS.
            model: Optional model override (bypasses operation-based selection)

        Returns:
            Response text, or parsed JSON if json_mode

        Raises:
            json.JSONDecodeError: If json_mode=True and no JSON could be
                parsed after all retries
            Exception: Non-transient failures immediately, transient ones
                after retries
        """
        model = model or self.get_model_for_operation(operation)

        kwargs = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "timeout": settings.LLM_TIMEOUT_SECONDS,
        }

        if settings.LLM_API_BASE:
            kwargs["api_base"] = settings.LLM_API_BASE

        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await acompletion(**kwargs)
            content = response.choices[0].message.content

            if json_mode:
                # JSONDecodeError will trigger @retry
                content = parse_json_response(content)

            return content

        except json.JSONDecodeError:
            # Let @retry handle JSON parse failures
            logger.warning(f"JSON decode error, will retry (model={model})")
            raise
        except Exception as e:
            logger.error(f"LLM completion failed: {e} (model={model})")
            raise


# Singleton instance
_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """
    Get or create singleton LLM client.

    Returns:
        Shared LLMClient instance
    """
    global _client
    if _client is None:
        _client = LLMClient()
    return _client


def reset_llm_client():
    """Reset the singleton client (useful for testing)."""
    global _client
    _client = None
