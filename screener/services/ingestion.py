# =============================================================================
# Ingestion Pipeline — Labeled Resume → Indexed Chunks
# =============================================================================
#
# PIPELINE:
#   1. Validate the label and the document text (no side effects on failure)
#   2. Segment the text (configured size / overlap / unit)
#   3. Attach the SAME ChunkMetadata to every chunk, ordinals 0..n-1
#   4. VectorStore.add → embed, append, persist (one exclusive step)
#
# Text extraction from PDFs/uploads happens before this point; the pipeline
# receives plain text. Deleting the uploaded file is the caller's job.
#
# Ingesting the same document twice is allowed: it produces two chunk
# groups with distinct ids and identical metadata. No dedup is attempted.
# =============================================================================

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field

from screener.config import settings
from screener.errors import ValidationError
from screener.services.index import ChunkDraft, ChunkMetadata
from screener.services.scoring import StatusLabel
from screener.services.segmenter import SegmentUnit, segment, validate_window
from screener.services.vectorstore import VectorStore

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Summary of one ingested document."""

    document_id: str
    chunk_ids: list[str] = field(default_factory=list)

    @property
    def chunk_count(self) -> int:
        return len(self.chunk_ids)


class IngestionPipeline:
    """Turns a labeled document into indexed chunks."""

    def __init__(
        self,
        vector_store: VectorStore,
        chunk_size: int | None = None,
        chunk_overlap: int | None = None,
        chunk_unit: SegmentUnit | None = None,
    ) -> None:
        self._vector_store = vector_store
        self.chunk_size = settings.chunk_size if chunk_size is None else chunk_size
        self.chunk_overlap = settings.chunk_overlap if chunk_overlap is None else chunk_overlap
        self.chunk_unit: SegmentUnit = chunk_unit or settings.chunk_unit
        validate_window(self.chunk_size, self.chunk_overlap)

    def build_drafts(
        self,
        text: str,
        metadata: ChunkMetadata,
        document_id: str | None = None,
    ) -> list[ChunkDraft]:
        """Segment text into drafts sharing one document id and metadata."""
        source_id = document_id or uuid.uuid4().hex
        return [
            ChunkDraft(
                text=piece,
                source_document_id=source_id,
                ordinal=ordinal,
                metadata=metadata,
            )
            for ordinal, piece in enumerate(
                segment(text, self.chunk_size, self.chunk_overlap, self.chunk_unit)
            )
        ]

    async def ingest(
        self,
        document_text: str,
        label: str | StatusLabel | None,
        role: str | None = None,
        reason: str | None = None,
        document_id: str | None = None,
    ) -> IngestResult:
        """
        Index a labeled document.

        Args:
            document_text: Plain text of the resume.
            label: Outcome label, "hired" or "not hired" (required).
            role: Optional role the candidate was screened for.
            reason: Optional reason for the outcome.
            document_id: Optional caller-supplied id; generated otherwise.

        Raises:
            ValidationError: Missing/unknown label or empty text.
            InvalidParameterError, ProviderError, PersistenceError: from
                the vector store.
        """
        status_label = _validate_label(label)
        if not isinstance(document_text, str) or not document_text.strip():
            raise ValidationError("Document text is required and must not be empty.")

        metadata = ChunkMetadata(status_label=status_label, role=role, reason=reason)
        drafts = self.build_drafts(document_text, metadata, document_id)
        source_id = drafts[0].source_document_id

        logger.info(
            "Ingesting document %s: %d chunks, label=%s, role=%s",
            source_id, len(drafts), status_label.value, metadata.role,
        )

        chunks = await self._vector_store.add(drafts)
        return IngestResult(document_id=source_id, chunk_ids=[c.id for c in chunks])


def _validate_label(label: str | StatusLabel | None) -> StatusLabel:
    if isinstance(label, StatusLabel):
        if label is StatusLabel.UNSCORED:
            raise ValidationError("'unscored' is not a valid outcome for ingestion.")
        return label
    if label is None or not str(label).strip():
        raise ValidationError("A status label ('hired' or 'not hired') is required.")
    try:
        return StatusLabel.parse_decision(str(label))
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
