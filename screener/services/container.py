# =============================================================================
# Service Container — Process-Wide Wiring
# =============================================================================
#
# Builds the object graph once:
#
#   IndexStore(index_path) ─┐
#   EmbeddingProvider ──────┴─▶ VectorStore ─┬─▶ IngestionPipeline
#                                             └─▶ ReviewEngine ◀── LLMProvider
#
# The VectorStore (and its lock) is shared by ingestion and review. It is
# injected, never imported as ambient state.
#
# DESIGN DECISION: Lazy singleton. Provider clients are created on first
# use so the app can start (and serve /health) without API keys. Tests
# build their own container with fake providers via build_services().
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass

from screener.config import settings
from screener.services.embedder import EmbeddingProvider, OpenAIEmbeddingProvider
from screener.services.ingestion import IngestionPipeline
from screener.services.llm import LLMProvider, create_llm_provider
from screener.services.persistence import IndexStore
from screener.services.review import ReviewEngine
from screener.services.vectorstore import VectorStore

logger = logging.getLogger(__name__)


@dataclass
class ScreeningServices:
    """The long-lived service objects of one process."""

    vector_store: VectorStore
    ingestion: IngestionPipeline
    review: ReviewEngine


def build_services(
    embedder: EmbeddingProvider | None = None,
    llm: LLMProvider | None = None,
    index_path: str | None = None,
) -> ScreeningServices:
    """Wire up the services, defaulting every collaborator from settings."""
    store = IndexStore(index_path or settings.index_path)
    vector_store = VectorStore(store, embedder or OpenAIEmbeddingProvider())
    ingestion = IngestionPipeline(vector_store)
    review = ReviewEngine(vector_store, llm or create_llm_provider(), ingestion)

    logger.info(
        "Screening services ready (index=%s, chunk_size=%d, overlap=%d, unit=%s, "
        "k=%d, threshold=%d, writeback=%s)",
        store.path, ingestion.chunk_size, ingestion.chunk_overlap,
        ingestion.chunk_unit, review.top_k, review.hire_threshold,
        review.writeback_policy,
    )
    return ScreeningServices(vector_store=vector_store, ingestion=ingestion, review=review)


_services: ScreeningServices | None = None


def get_services() -> ScreeningServices:
    """Return the process-wide services, building them on first use."""
    global _services
    if _services is None:
        _services = build_services()
    return _services


def peek_services() -> ScreeningServices | None:
    """Return the services if they were already built, without building them."""
    return _services
