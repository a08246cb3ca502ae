# =============================================================================
# Embedding Service — Batch Vector Generation (Provider-Agnostic)
# =============================================================================
#
# Generates vector embeddings using any OpenAI-compatible embedding API.
#
# DESIGN DECISION: Protocol (structural typing) for the provider contract.
# The vector store only needs `embed(texts) -> vectors`. Tests substitute a
# deterministic fake without inheriting from anything.
#
# DESIGN DECISION: Async client. Embedding calls take seconds and run
# inside request handlers; AsyncOpenAI keeps them from blocking unrelated
# requests on the event loop.
#
# DESIGN DECISION: SDK retries disabled (max_retries=0). Each batch goes
# through call_with_retries, which owns the timeout and backoff budget.
#
# TOKEN LIMITS:
# - Each text: max 8,191 tokens for text-embedding-3-*
# - Batched at settings.embedding_batch_size texts per API call
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

import openai
from openai import AsyncOpenAI

from screener.config import settings
from screener.errors import InvalidParameterError
from screener.services.retry import RetryPolicy, call_with_retries

logger = logging.getLogger(__name__)

# Retried: timeouts, connection drops, 429 and 5xx responses
OPENAI_TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    openai.APIConnectionError,
    openai.RateLimitError,
    openai.InternalServerError,
)
# Everything else the SDK raises fails the call immediately
OPENAI_FATAL_ERRORS: tuple[type[BaseException], ...] = (openai.OpenAIError,)


# ---------------------------------------------------------------------------
# Protocol Definition
# ---------------------------------------------------------------------------


class EmbeddingProvider(Protocol):
    """Maps texts to fixed-dimension vectors, preserving input order."""

    async def embed(self, texts: Sequence[str]) -> list[list[float]]:
        ...


# ---------------------------------------------------------------------------
# Implementation: OpenAI-compatible embeddings
# ---------------------------------------------------------------------------


class OpenAIEmbeddingProvider:
    """
    Embedding provider backed by the OpenAI embeddings endpoint.

    API key resolution order:
      1. explicit `api_key` argument
      2. OPENAI_API_KEY
      3. LLM_API_KEY (one shared key for LLM + embeddings)
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        dimensions: int | None = None,
        batch_size: int | None = None,
        policy: RetryPolicy | None = None,
    ) -> None:
        resolved_key = api_key or settings.openai_api_key or settings.llm_api_key
        if not resolved_key:
            raise InvalidParameterError(
                "No API key configured for embeddings. "
                "Set OPENAI_API_KEY or LLM_API_KEY in .env"
            )

        client_kwargs: dict = {"api_key": resolved_key, "max_retries": 0}
        resolved_base_url = base_url or settings.embedding_base_url
        if resolved_base_url:
            client_kwargs["base_url"] = resolved_base_url

        self._client = AsyncOpenAI(**client_kwargs)
        self._model = model or settings.embedding_model
        self._dimensions = dimensions or settings.embedding_dimensions
        self._batch_size = batch_size or settings.embedding_batch_size
        self._policy = policy or RetryPolicy.from_settings()

        logger.info(
            "Initialized embedding client (model=%s, base_url=%s)",
            self._model,
            resolved_base_url or "https://api.openai.com/v1",
        )

    async def embed(self, texts: Sequence[str]) -> list[list[float]]:
        """
        Generate embeddings for texts, in sub-batches.

        Returns embeddings in the SAME ORDER as the input texts.

        Raises:
            ProviderError: If a batch fails after the retry budget.
        """
        if not texts:
            return []

        all_embeddings: list[list[float]] = [[] for _ in texts]

        for i in range(0, len(texts), self._batch_size):
            batch = list(texts[i : i + self._batch_size])
            create_kwargs: dict = {"model": self._model, "input": batch}
            if self._dimensions:
                create_kwargs["dimensions"] = self._dimensions

            response = await call_with_retries(
                lambda: self._client.embeddings.create(**create_kwargs),
                provider="openai-embeddings",
                description=f"embed texts {i + 1}-{i + len(batch)} of {len(texts)}",
                policy=self._policy,
                transient=OPENAI_TRANSIENT_ERRORS,
                fatal=OPENAI_FATAL_ERRORS,
            )

            # Sort by index so output order always matches input order
            for item in sorted(response.data, key=lambda x: x.index):
                all_embeddings[i + item.index] = item.embedding

            logger.debug(
                "Batch complete: %d embeddings, %d prompt tokens",
                len(batch),
                response.usage.prompt_tokens if response.usage else 0,
            )

        logger.info("Generated %d embeddings (model=%s)", len(texts), self._model)
        return all_embeddings
