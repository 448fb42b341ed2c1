"""
LLM Service Module

Provides a unified interface to multiple LLM providers via LiteLLM.

Key Components:
- client.py: LLMClient with operation-based model selection and JSON parsing

Usage:
    from neurolex.enums import LLMOperation
    from neurolex.services.llm import get_llm_client, build_messages

    client = get_llm_client()
    quiz = await client.complete(
        operation=LLMOperation.QUIZ_GENERATION,
        messages=build_messages("Create a quiz for..."),
        json_mode=True,
    )
"""

from neurolex.services.llm.client import (
    LLMClient,
    build_messages,
    get_llm_client,
    parse_json_response,
    reset_llm_client,
)

__all__ = [
    "LLMClient",
    "build_messages",
    "get_llm_client",
    "parse_json_response",
    "reset_llm_client",
]
