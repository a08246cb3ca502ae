# =============================================================================
# Vector Index — Chunk Records and Immutable Snapshots
# =============================================================================
#
# Defines what the screening corpus stores and how it is ranked:
#   - ChunkMetadata: structured outcome record (status label, role, reason)
#   - Chunk: one embedded segment of a document, frozen once created
#   - VectorIndex: an immutable, ordered snapshot of chunks
#
# DESIGN DECISION: Copy-on-write snapshots.
# `appended()` returns a NEW VectorIndex and leaves the old one untouched.
# The vector store publishes a new snapshot only after it has been
# persisted, so readers holding the previous snapshot never observe a
# partially applied add, and a failed save needs no undo.
#
# RANKING:
#   cosine similarity of L2-normalised vectors, highest first; a stable
#   sort keeps insertion order among equal scores (earlier chunk wins).
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

from screener.errors import EmptyIndexError, InvalidParameterError
from screener.services.scoring import StatusLabel

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


class ChunkMetadata(BaseModel):
    """
    Outcome metadata attached identically to every chunk of a document.

    All fields are optional. Blank `role` / `reason` strings are stored as
    None. `origin` separates curated corpus entries ("ingest") from
    reviewed candidates written back by the review engine ("review").
    """

    status_label: StatusLabel | None = None
    role: str | None = None
    reason: str | None = None
    origin: Literal["ingest", "review"] = "ingest"

    model_config = ConfigDict(frozen=True)

    @field_validator("role", "reason", mode="before")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value


class Chunk(BaseModel):
    """A bounded segment of a document, stored with its embedding."""

    id: str
    text: str
    source_document_id: str
    ordinal: int = Field(ge=0)
    embedding: list[float]
    metadata: ChunkMetadata = Field(default_factory=ChunkMetadata)

    model_config = ConfigDict(frozen=True)


@dataclass(frozen=True)
class ChunkDraft:
    """A chunk waiting to be embedded and assigned an id."""

    text: str
    source_document_id: str
    ordinal: int
    metadata: ChunkMetadata = field(default_factory=ChunkMetadata)


@dataclass(frozen=True)
class ScoredChunk:
    """A search hit: the chunk plus its cosine similarity to the query."""

    chunk: Chunk
    similarity: float


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


class VectorIndex:
    """
    Immutable ordered collection of chunks with a fixed embedding dimension.

    `dimension` is None until the first chunk is stored.
    """

    def __init__(self, chunks: Sequence[Chunk] = (), dimension: int | None = None) -> None:
        self._chunks: tuple[Chunk, ...] = tuple(chunks)
        if dimension is None and self._chunks:
            dimension = len(self._chunks[0].embedding)
        self._dimension = dimension

        for chunk in self._chunks:
            self._check_dimension(chunk.embedding)

        # Normalised matrix built once per snapshot, reused by every search
        self._matrix: np.ndarray | None = (
            _normalise(np.array([c.embedding for c in self._chunks], dtype=np.float64))
            if self._chunks
            else None
        )

    @classmethod
    def empty(cls) -> VectorIndex:
        return cls()

    @property
    def dimension(self) -> int | None:
        return self._dimension

    @property
    def chunks(self) -> tuple[Chunk, ...]:
        return self._chunks

    def __len__(self) -> int:
        return len(self._chunks)

    def appended(self, new_chunks: Sequence[Chunk]) -> VectorIndex:
        """
        Return a new snapshot with `new_chunks` after the existing ones.

        Raises:
            InvalidParameterError: If any embedding's dimension differs from
                the index dimension (or from the first new embedding when
                the index is still empty).
        """
        if not new_chunks:
            return self
        return VectorIndex(self._chunks + tuple(new_chunks), dimension=self._dimension)

    def search(self, query_embedding: Sequence[float], k: int) -> list[ScoredChunk]:
        """
        Rank all chunks against a query vector and return the top `k`.

        Raises:
            InvalidParameterError: If k < 1 or the query dimension is wrong.
            EmptyIndexError: If the index holds no chunks.
        """
        if k < 1:
            raise InvalidParameterError(f"k must be a positive integer (got {k})")
        if self._matrix is None:
            raise EmptyIndexError("The index has no entries to search")

        self._check_dimension(query_embedding)
        query = _normalise(np.asarray(query_embedding, dtype=np.float64).reshape(1, -1))[0]
        similarities = self._matrix @ query

        # Stable sort on negated scores: ties keep insertion order
        order = np.argsort(-similarities, kind="stable")[:k]
        return [
            ScoredChunk(chunk=self._chunks[i], similarity=round(float(similarities[i]), 6))
            for i in order
        ]

    def _check_dimension(self, embedding: Sequence[float]) -> None:
        if self._dimension is not None and len(embedding) != self._dimension:
            raise InvalidParameterError(
                f"Embedding dimension {len(embedding)} does not match "
                f"index dimension {self._dimension}"
            )


def _normalise(matrix: np.ndarray) -> np.ndarray:
    """L2-normalise rows; zero rows stay zero (similarity 0 to everything)."""
    norms = np.linalg.norm(matrix, axis=1, keepdims=True)
    norms[norms == 0] = 1.0
    return matrix / norms
