# =============================================================================
# Vector Store — Index Owner, Lock, and Search/Append Operations
# =============================================================================
#
# The single long-lived piece of process state. One VectorStore is built by
# the service container and injected into the ingestion pipeline and the
# review engine; nothing references the index as a module global.
#
# LOCKING DISCIPLINE:
#   - Mutation (append → persist → publish) runs under `self._lock`, so two
#     ingestions, or an ingestion racing a review write-back, serialise.
#   - Searches read the current immutable snapshot without the lock. A new
#     snapshot is published only after it is on disk, so a reader sees the
#     whole pre-add index or the whole post-add index.
#   - Embedding calls happen BEFORE the lock is taken; only the in-memory
#     append and the file write are serialised.
#   - Disk I/O runs in a worker thread (asyncio.to_thread) so a large save
#     does not stall the event loop.
#
# CANCELLATION:
#   A caller cancelled while waiting for the lock abandons its commit; the
#   commit notices when it gets the lock and writes nothing. Once persist
#   has started it is shielded and runs to completion, so memory and disk
#   never diverge.
#
# ROLLBACK:
#   If the save fails, the new snapshot is simply not published; the
#   in-memory index stays equal to what is on disk.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Sequence

from screener.errors import ProviderError
from screener.services.embedder import EmbeddingProvider
from screener.services.index import Chunk, ChunkDraft, ScoredChunk, VectorIndex
from screener.services.persistence import IndexStore

logger = logging.getLogger(__name__)


class VectorStore:
    """Owns the in-memory VectorIndex, its on-disk mirror, and the write lock."""

    def __init__(self, store: IndexStore, embedder: EmbeddingProvider) -> None:
        self._store = store
        self._embedder = embedder
        self._index: VectorIndex | None = None
        self._lock = asyncio.Lock()

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def snapshot(self) -> VectorIndex | None:
        """The currently published index, or None before the first load."""
        return self._index

    def __len__(self) -> int:
        return len(self._index) if self._index is not None else 0

    async def load(self) -> VectorIndex:
        """
        (Re)load the index from disk and publish it.

        Raises:
            NoCorpusError: If nothing has been persisted.
            PersistenceError: If the artifact is unreadable.
        """
        async with self._lock:
            index = await asyncio.to_thread(self._store.get_or_fail)
            self._index = index
        return index

    async def ensure_loaded(self) -> VectorIndex:
        """Return the published index, loading it from disk on first use."""
        if self._index is not None:
            return self._index

        async with self._lock:
            # Another caller may have loaded it while we waited
            if self._index is None:
                self._index = await asyncio.to_thread(self._store.get_or_fail)
            return self._index

    async def save(self) -> None:
        """Persist the published index (no-op before anything is loaded)."""
        async with self._lock:
            if self._index is not None:
                await asyncio.to_thread(self._store.save, self._index)

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

    async def embed_query(self, text: str) -> list[float]:
        """Embed a single query text."""
        vectors = await self._embedder.embed([text])
        if len(vectors) != 1:
            raise ProviderError(
                f"Embedding provider returned {len(vectors)} vectors for 1 text",
                provider="embeddings",
            )
        return vectors[0]

    async def search_by_vector(self, query_embedding: Sequence[float], k: int) -> list[ScoredChunk]:
        """
        Rank the published index against an already-embedded query.

        Raises:
            NoCorpusError: If no index exists in memory or on disk.
            EmptyIndexError: If the index has no entries.
        """
        index = await self.ensure_loaded()
        hits = index.search(query_embedding, k)
        logger.debug(
            "Vector search returned %d/%d chunks (k=%d)", len(hits), len(index), k,
        )
        return hits

    async def similarity_search(self, query_text: str, k: int) -> list[Chunk]:
        """
        Return up to `k` chunks most similar to `query_text`, best first.

        Ties keep insertion order. `k` larger than the index returns all
        chunks.
        """
        await self.ensure_loaded()
        query_embedding = await self.embed_query(query_text)
        return [hit.chunk for hit in await self.search_by_vector(query_embedding, k)]

    # -------------------------------------------------------------------------
    # Append
    # -------------------------------------------------------------------------

    async def add(
        self,
        drafts: Sequence[ChunkDraft],
        embeddings: Sequence[Sequence[float]] | None = None,
    ) -> list[Chunk]:
        """
        Embed drafts, assign fresh ids, append them, and persist.

        Creates the index on first use, with the dimension of the first
        embedding. `embeddings` may be supplied to skip the provider call.

        Returns:
            The stored chunks, in draft order.

        Raises:
            ProviderError: If embedding fails.
            InvalidParameterError: If an embedding dimension does not match.
            PersistenceError: If the save fails (nothing is published).
        """
        if not drafts:
            return []

        if embeddings is None:
            embeddings = await self._embedder.embed([d.text for d in drafts])
        if len(embeddings) != len(drafts):
            raise ProviderError(
                f"Embedding provider returned {len(embeddings)} vectors "
                f"for {len(drafts)} texts",
                provider="embeddings",
            )

        chunks = [
            Chunk(
                id=uuid.uuid4().hex,
                text=draft.text,
                source_document_id=draft.source_document_id,
                ordinal=draft.ordinal,
                embedding=list(vector),
                metadata=draft.metadata,
            )
            for draft, vector in zip(drafts, embeddings, strict=True)
        ]

        abandoned = asyncio.Event()
        commit = asyncio.ensure_future(self._commit(chunks, abandoned))
        try:
            return await asyncio.shield(commit)
        except asyncio.CancelledError:
            abandoned.set()
            commit.add_done_callback(_log_orphaned_commit)
            raise

    async def _commit(self, chunks: list[Chunk], abandoned: asyncio.Event) -> list[Chunk]:
        async with self._lock:
            if abandoned.is_set():
                logger.info(
                    "Skipping commit of %d chunks: request was cancelled", len(chunks),
                )
                return []

            base = self._index
            if base is None:
                base = await asyncio.to_thread(self._store.get_or_create)

            updated = base.appended(chunks)
            await asyncio.to_thread(self._store.save, updated)
            self._index = updated

        logger.info(
            "Appended %d chunks for document %s (index size %d)",
            len(chunks), chunks[0].source_document_id, len(updated),
        )
        return chunks


def _log_orphaned_commit(task: asyncio.Future) -> None:
    """Retrieve the result of a commit whose caller was cancelled."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Commit failed after its request was cancelled: %s", exc)
