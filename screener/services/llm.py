# =============================================================================
# Multi-Provider LLM Abstraction — Scoring Model Backend
# =============================================================================
#
# Provides a common interface for LLM completions, with concrete
# implementations for OpenAI-compatible APIs (OpenAI, DeepSeek, Qwen, ...)
# and Anthropic (Claude).
#
# DESIGN DECISION: Protocol (structural typing) over ABC.
# Matches the EmbeddingProvider contract in embedder.py. Any class with
# the right `complete()` method works, including test fakes.
#
# DESIGN DECISION: Native SDKs over LangChain wrappers.
# One prompt in, one text out. The SDKs give direct control over request
# parameters and typed exceptions for the retry policy.
#
# DESIGN DECISION: Async only. The review engine runs inside request
# handlers; a scoring call can take seconds.
#
# ARCHITECTURE:
#   LLMProvider (Protocol)
#   ├── OpenAICompatibleProvider — system prompt as message role
#   ├── AnthropicProvider        — system prompt as top-level kwarg
#   └── create_llm_provider()    — builds the configured provider
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from screener.config import settings
from screener.errors import InvalidParameterError
from screener.services.embedder import OPENAI_FATAL_ERRORS, OPENAI_TRANSIENT_ERRORS
from screener.services.retry import RetryPolicy, call_with_retries

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class LLMResponse:
    """
    Standardised response from any LLM provider.

    Normalises the Anthropic and OpenAI response formats into a single
    structure that the review engine consumes.
    """

    content: str           # The generated text
    model: str             # Model identifier
    input_tokens: int      # Tokens consumed by the prompt
    output_tokens: int     # Tokens generated in the response


# ---------------------------------------------------------------------------
# Protocol Definition
# ---------------------------------------------------------------------------


class LLMProvider(Protocol):
    """Protocol defining the LLM provider interface."""

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
    ) -> LLMResponse:
        """
        Generate a completion from the LLM.

        Args:
            messages: Conversation messages as dicts with "role" and "content".
            system: Optional system prompt (the task framing).

        Sampling temperature and the output token cap come from settings.

        Raises:
            ProviderError: If the call fails after the retry budget.
        """
        ...


# ---------------------------------------------------------------------------
# Implementation 1: OpenAI-Compatible
# ---------------------------------------------------------------------------


class OpenAICompatibleProvider:
    """
    Provider for any API that follows the OpenAI chat completions spec.

    Switching vendors is a config change:
        LLM_PROVIDER=openai_compatible
        LLM_BASE_URL=https://api.deepseek.com/v1
        LLM_API_KEY=your-key
        LLM_MODEL=deepseek-chat
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        policy: RetryPolicy | None = None,
    ) -> None:
        from openai import AsyncOpenAI

        resolved_key = api_key or settings.llm_api_key or settings.openai_api_key
        if not resolved_key:
            raise InvalidParameterError(
                "No API key configured for OpenAI-compatible provider. "
                "Set LLM_API_KEY or OPENAI_API_KEY in .env"
            )

        client_kwargs: dict = {"api_key": resolved_key, "max_retries": 0}
        resolved_base_url = base_url or settings.llm_base_url
        if resolved_base_url:
            client_kwargs["base_url"] = resolved_base_url

        self._client = AsyncOpenAI(**client_kwargs)
        self._model = model or settings.llm_model
        self._temperature = settings.llm_temperature
        self._max_tokens = settings.llm_max_tokens
        self._policy = policy or RetryPolicy.from_settings()

        logger.info(
            "Initialized OpenAICompatibleProvider (model=%s, base_url=%s)",
            self._model,
            resolved_base_url or "https://api.openai.com/v1",
        )

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
    ) -> LLMResponse:
        """Generate a completion using an OpenAI-compatible API."""
        all_messages: list[dict[str, str]] = []
        if system:
            all_messages.append({"role": "system", "content": system})
        all_messages.extend(messages)

        response = await call_with_retries(
            lambda: self._client.chat.completions.create(
                model=self._model,
                messages=all_messages,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
            ),
            provider="openai-chat",
            description=f"completion (model={self._model})",
            policy=self._policy,
            transient=OPENAI_TRANSIENT_ERRORS,
            fatal=OPENAI_FATAL_ERRORS,
        )

        content = response.choices[0].message.content or ""

        usage = response.usage
        return LLMResponse(
            content=content,
            model=response.model or self._model,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
        )


# ---------------------------------------------------------------------------
# Implementation 2: Anthropic (Claude)
# ---------------------------------------------------------------------------


class AnthropicProvider:
    """
    Anthropic Claude provider using the native SDK.

    KEY API DIFFERENCE: Anthropic takes system prompts as a top-level
    `system=` kwarg, NOT as a message with role "system".
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        policy: RetryPolicy | None = None,
    ) -> None:
        import anthropic
        from anthropic import AsyncAnthropic

        resolved_key = api_key or settings.llm_api_key or settings.anthropic_api_key
        if not resolved_key:
            raise InvalidParameterError(
                "No Anthropic API key configured. Set LLM_API_KEY or "
                "ANTHROPIC_API_KEY in .env"
            )

        self._client = AsyncAnthropic(api_key=resolved_key, max_retries=0)
        self._transient = (
            anthropic.APIConnectionError,
            anthropic.RateLimitError,
            anthropic.InternalServerError,
        )
        self._fatal = (anthropic.AnthropicError,)
        self._model = model or settings.llm_model
        self._temperature = settings.llm_temperature
        self._max_tokens = settings.llm_max_tokens
        self._policy = policy or RetryPolicy.from_settings()

        logger.info("Initialized AnthropicProvider (model=%s)", self._model)

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
    ) -> LLMResponse:
        """Generate a completion using Claude."""
        kwargs: dict = {
            "model": self._model,
            "messages": messages,
            "max_tokens": self._max_tokens,
            "temperature": self._temperature,
        }
        if system:
            kwargs["system"] = system

        response = await call_with_retries(
            lambda: self._client.messages.create(**kwargs),
            provider="anthropic",
            description=f"completion (model={self._model})",
            policy=self._policy,
            transient=self._transient,
            fatal=self._fatal,
        )

        # Extract text from the first text block
        content = ""
        for block in response.content:
            if block.type == "text":
                content = block.text
                break

        return LLMResponse(
            content=content,
            model=response.model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------


def create_llm_provider() -> AnthropicProvider | OpenAICompatibleProvider:
    """
    Build the configured LLM provider.

    Reads `llm_provider` from settings:
    - "openai_compatible" → OpenAICompatibleProvider (default)
    - "anthropic" → AnthropicProvider

    The service container calls this once and shares the instance; SDK
    clients manage their own connection pools.
    """
    if settings.llm_provider == "anthropic":
        return AnthropicProvider()
    return OpenAICompatibleProvider()
