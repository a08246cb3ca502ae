# =============================================================================
# Shared Test Fixtures — Fake Providers and Temporary Index
# =============================================================================
#
# No API keys or network calls: embeddings come from a deterministic
# bag-of-words hash, completions from a canned-response fake.
# =============================================================================

from __future__ import annotations

import re
import zlib
from collections.abc import Sequence

import pytest

from screener.services.container import ScreeningServices, build_services
from screener.services.llm import LLMResponse


def bag_of_words(text: str, dim: int = 32) -> list[float]:
    """Deterministic embedding: word counts hashed into `dim` buckets."""
    vector = [0.0] * dim
    for word in re.findall(r"[a-z0-9]+", text.lower()):
        vector[zlib.crc32(word.encode()) % dim] += 1.0
    return vector


class FakeEmbedder:
    """EmbeddingProvider double that records every batch it embeds."""

    def __init__(self, dim: int = 32) -> None:
        self.dim = dim
        self.calls: list[list[str]] = []

    async def embed(self, texts: Sequence[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [bag_of_words(t, self.dim) for t in texts]


class FakeLLM:
    """LLMProvider double returning a canned answer and recording prompts."""

    def __init__(self, content: str = "Solid backend background.\nScore: 80") -> None:
        self.content = content
        self.prompts: list[str] = []
        self.systems: list[str | None] = []

    async def complete(
        self,
        messages: list[dict[str, str]],
        system: str | None = None,
    ) -> LLMResponse:
        self.prompts.append(messages[-1]["content"])
        self.systems.append(system)
        return LLMResponse(
            content=self.content,
            model="fake-model",
            input_tokens=120,
            output_tokens=30,
        )


@pytest.fixture
def index_path(tmp_path):
    return tmp_path / "index" / "screening_index.json"


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def services(embedder, llm, index_path) -> ScreeningServices:
    return build_services(embedder=embedder, llm=llm, index_path=str(index_path))
