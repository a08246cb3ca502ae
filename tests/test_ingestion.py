# =============================================================================
# Unit Tests — Ingestion Pipeline
# =============================================================================

import asyncio

import pytest

from screener.errors import InvalidParameterError, ValidationError
from screener.services.ingestion import IngestionPipeline
from screener.services.index import ChunkMetadata
from screener.services.persistence import IndexStore
from screener.services.scoring import StatusLabel

RESUME = (
    "Senior backend engineer with 5 years of Python and Go. Led a team of 4 "
    "building payment APIs, owned on-call rotation and observability, and "
    "migrated a monolith to services on Kubernetes."
)


def _run(coro):
    return asyncio.run(coro)


@pytest.fixture
def pipeline(services) -> IngestionPipeline:
    return IngestionPipeline(services.vector_store, chunk_size=60, chunk_overlap=10)


class TestIngest:
    """Tests for IngestionPipeline.ingest()."""

    def test_chunks_share_metadata_and_document_id(self, pipeline, services):
        result = _run(pipeline.ingest(RESUME, "hired", role="backend", reason="strong"))

        chunks = services.vector_store.snapshot.chunks
        assert result.chunk_count == len(chunks) > 1
        assert [c.id for c in chunks] == result.chunk_ids
        assert {c.source_document_id for c in chunks} == {result.document_id}
        assert [c.ordinal for c in chunks] == list(range(len(chunks)))
        assert all(
            c.metadata == ChunkMetadata(
                status_label=StatusLabel.HIRED, role="backend", reason="strong",
            )
            for c in chunks
        )

    def test_label_is_normalised(self, pipeline, services):
        _run(pipeline.ingest(RESUME, "Not_Hired"))
        assert services.vector_store.snapshot.chunks[0].metadata.status_label is StatusLabel.NOT_HIRED

    def test_blank_optional_fields_stored_as_none(self, pipeline, services):
        _run(pipeline.ingest(RESUME, "hired", role="  ", reason=""))
        meta = services.vector_store.snapshot.chunks[0].metadata
        assert meta.role is None
        assert meta.reason is None

    def test_caller_supplied_document_id(self, pipeline):
        result = _run(pipeline.ingest(RESUME, "hired", document_id="resume-42"))
        assert result.document_id == "resume-42"

    def test_same_document_twice_gets_distinct_ids(self, pipeline, services):
        first = _run(pipeline.ingest(RESUME, "hired"))
        second = _run(pipeline.ingest(RESUME, "hired"))

        assert first.document_id != second.document_id
        assert set(first.chunk_ids).isdisjoint(second.chunk_ids)
        assert len(services.vector_store) == first.chunk_count + second.chunk_count

    def test_persisted_for_fresh_process(self, pipeline, index_path):
        result = _run(pipeline.ingest(RESUME, "not hired"))
        loaded = IndexStore(index_path).load()
        assert [c.id for c in loaded.chunks] == result.chunk_ids


class TestIngestValidation:
    """Rejected inputs leave the index untouched."""

    @pytest.mark.parametrize("label", [None, "", "   ", "maybe", "unscored", StatusLabel.UNSCORED])
    def test_invalid_label(self, pipeline, embedder, index_path, label):
        with pytest.raises(ValidationError):
            _run(pipeline.ingest(RESUME, label))
        assert embedder.calls == []
        assert not index_path.exists()

    @pytest.mark.parametrize("text", ["", "   \n\t"])
    def test_empty_text(self, pipeline, embedder, index_path, text):
        with pytest.raises(ValidationError):
            _run(pipeline.ingest(text, "hired"))
        assert embedder.calls == []
        assert not index_path.exists()

    def test_label_checked_before_text(self, pipeline):
        with pytest.raises(ValidationError, match="status label"):
            _run(pipeline.ingest("", None))


class TestPipelineParameters:
    @pytest.mark.parametrize("size,overlap", [(0, 10), (100, 0), (10, 10), (10, 20)])
    def test_invalid_window(self, services, size, overlap):
        with pytest.raises(InvalidParameterError):
            IngestionPipeline(services.vector_store, chunk_size=size, chunk_overlap=overlap)

    def test_defaults_from_settings(self, services):
        pipeline = IngestionPipeline(services.vector_store)
        assert pipeline.chunk_size == 10000
        assert pipeline.chunk_overlap == 10
        assert pipeline.chunk_unit == "characters"

    def test_build_drafts_has_no_side_effects(self, pipeline, embedder, index_path):
        drafts = pipeline.build_drafts(RESUME, ChunkMetadata(status_label=StatusLabel.HIRED))
        assert len(drafts) > 1
        assert embedder.calls == []
        assert not index_path.exists()
