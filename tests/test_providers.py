# =============================================================================
# Unit Tests — Embedding and LLM Providers (mocked SDK clients)
# =============================================================================
#
# The real SDK clients are constructed with a dummy key, then their network
# methods are replaced with AsyncMock. No API calls are made.
# =============================================================================

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from screener.config import settings
from screener.errors import InvalidParameterError, ProviderError
from screener.services.embedder import OpenAIEmbeddingProvider
from screener.services.llm import (
    AnthropicProvider,
    OpenAICompatibleProvider,
    create_llm_provider,
)
from screener.services.retry import RetryPolicy

FAST_POLICY = RetryPolicy(
    timeout_seconds=5.0,
    max_retries=2,
    backoff_base_seconds=0.0,
    backoff_max_seconds=0.0,
)


def _run(coro):
    return asyncio.run(coro)


def _embedding_response(vectors_by_index: dict[int, list[float]]):
    # Returned out of order on purpose
    data = [
        SimpleNamespace(index=i, embedding=v)
        for i, v in sorted(vectors_by_index.items(), reverse=True)
    ]
    return SimpleNamespace(data=data, usage=SimpleNamespace(prompt_tokens=7))


def _connection_error():
    return openai.APIConnectionError(
        request=httpx.Request("POST", "https://api.openai.com/v1/embeddings"),
    )


class TestOpenAIEmbeddingProvider:
    """Tests for OpenAIEmbeddingProvider.embed()."""

    def _provider(self, **kwargs) -> OpenAIEmbeddingProvider:
        provider = OpenAIEmbeddingProvider(api_key="sk-test", policy=FAST_POLICY, **kwargs)
        provider._client = MagicMock()
        return provider

    def test_batches_and_preserves_order(self):
        provider = self._provider(batch_size=2)
        provider._client.embeddings.create = AsyncMock(side_effect=[
            _embedding_response({0: [0.0], 1: [1.0]}),
            _embedding_response({0: [2.0]}),
        ])

        vectors = _run(provider.embed(["a", "b", "c"]))

        assert vectors == [[0.0], [1.0], [2.0]]
        assert provider._client.embeddings.create.await_count == 2
        second_call = provider._client.embeddings.create.await_args_list[1]
        assert second_call.kwargs["input"] == ["c"]

    def test_dimensions_forwarded(self):
        provider = self._provider(dimensions=256)
        provider._client.embeddings.create = AsyncMock(
            return_value=_embedding_response({0: [0.5]}),
        )
        _run(provider.embed(["a"]))
        assert provider._client.embeddings.create.await_args.kwargs["dimensions"] == 256

    def test_empty_input_makes_no_call(self):
        provider = self._provider()
        provider._client.embeddings.create = AsyncMock()
        assert _run(provider.embed([])) == []
        provider._client.embeddings.create.assert_not_awaited()

    def test_connection_errors_are_retried(self):
        provider = self._provider()
        provider._client.embeddings.create = AsyncMock(side_effect=[
            _connection_error(),
            _embedding_response({0: [0.5]}),
        ])
        assert _run(provider.embed(["a"])) == [[0.5]]

    def test_persistent_failure_raises_provider_error(self):
        provider = self._provider()
        provider._client.embeddings.create = AsyncMock(side_effect=_connection_error())
        with pytest.raises(ProviderError) as exc_info:
            _run(provider.embed(["a"]))
        assert exc_info.value.attempts == 3

    def test_missing_key_raises(self, monkeypatch):
        monkeypatch.setattr(settings, "openai_api_key", "")
        monkeypatch.setattr(settings, "llm_api_key", None)
        with pytest.raises(InvalidParameterError, match="API key"):
            OpenAIEmbeddingProvider()


class TestOpenAICompatibleProvider:
    def test_complete_maps_response(self):
        provider = OpenAICompatibleProvider(api_key="sk-test", model="gpt-test", policy=FAST_POLICY)
        provider._client = MagicMock()
        provider._client.chat.completions.create = AsyncMock(return_value=SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="Score: 77"))],
            model="gpt-test-2024",
            usage=SimpleNamespace(prompt_tokens=50, completion_tokens=5),
        ))

        response = _run(provider.complete(
            [{"role": "user", "content": "evaluate"}], system="be strict",
        ))

        assert response.content == "Score: 77"
        assert response.model == "gpt-test-2024"
        assert (response.input_tokens, response.output_tokens) == (50, 5)
        sent = provider._client.chat.completions.create.await_args.kwargs["messages"]
        assert sent[0] == {"role": "system", "content": "be strict"}
        assert sent[1]["content"] == "evaluate"


class TestAnthropicProvider:
    def test_complete_returns_first_text_block(self):
        provider = AnthropicProvider(api_key="sk-ant-test", model="claude-test", policy=FAST_POLICY)
        provider._client = MagicMock()
        provider._client.messages.create = AsyncMock(return_value=SimpleNamespace(
            content=[
                SimpleNamespace(type="thinking", thinking="..."),
                SimpleNamespace(type="text", text="Good fit.\nScore: 90"),
            ],
            model="claude-test",
            usage=SimpleNamespace(input_tokens=40, output_tokens=8),
        ))

        response = _run(provider.complete([{"role": "user", "content": "evaluate"}], system="sys"))

        assert response.content == "Good fit.\nScore: 90"
        assert response.input_tokens == 40
        assert provider._client.messages.create.await_args.kwargs["system"] == "sys"


class TestCreateLLMProvider:
    def test_anthropic_selected_by_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "llm_provider", "anthropic")
        monkeypatch.setattr(settings, "llm_api_key", "sk-test")
        assert isinstance(create_llm_provider(), AnthropicProvider)

    def test_openai_compatible_is_default(self, monkeypatch):
        monkeypatch.setattr(settings, "llm_provider", "openai_compatible")
        monkeypatch.setattr(settings, "llm_api_key", "sk-test")
        assert isinstance(create_llm_provider(), OpenAICompatibleProvider)
