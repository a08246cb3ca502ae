# =============================================================================
# API Response Models — Pydantic V2 Schemas
# =============================================================================
#
# These models define the shape of data coming OUT of the API.
# Embeddings never leave the service: matches are reported by id, outcome
# and similarity only.
# =============================================================================

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_camel = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthResponse(BaseModel):
    """Response for GET /health — confirms the API is running."""

    status: str = "ok"
    version: str
    service: str
    indexed_chunks: int = Field(description="Chunks in the loaded index (0 if not loaded)")
    index_dimension: int | None = Field(
        default=None, description="Embedding dimension of the loaded index",
    )

    model_config = _camel


class ErrorResponse(BaseModel):
    """Error payload returned with every non-2xx status."""

    error: str


class IngestResponse(BaseModel):
    """Response for POST /ingest."""

    ok: bool = True
    document_id: str = Field(description="Id shared by all chunks of this document")
    chunk_count: int = Field(description="Number of chunks added to the index")

    model_config = _camel


class MatchResponse(BaseModel):
    """A previously screened chunk used as retrieval context."""

    chunk_id: str
    source_document_id: str
    similarity: float = Field(description="Cosine similarity to the candidate")
    status_label: str | None = None
    role: str | None = None

    model_config = _camel


class ReviewResponse(BaseModel):
    """
    Response for POST /review.

    `score` is null and `statusLabel` is "unscored" when the model output
    had no usable "Score: <n>" line; `rationale` still carries the raw text.
    """

    score: int | None = Field(description="Fitness score in [0, 100], or null if unscored")
    status_label: str = Field(description="'hired', 'not hired' or 'unscored'")
    rationale: str = Field(description="Raw model output")
    model: str = ""
    matches: list[MatchResponse] = Field(default_factory=list)

    model_config = _camel
