# =============================================================================
# Review Engine — Retrieval-Augmented Resume Scoring
# =============================================================================
#
# FLOW:
#   1. Validate inputs (empty resume/requirements → ValidationError, before
#      any paid call)
#   2. Load the corpus if needed (NoCorpusError if nothing was ingested)
#   3. Embed the candidate and retrieve the top-k similar labeled chunks
#   4. Build the grounded prompt (prompts.py); the recruiter framing goes
#      out as the system prompt
#   5. Ask the scoring model (retry/timeout inside the provider)
#   6. Parse "Score: <n>" and derive the status label (scoring.py)
#   7. Write the candidate back into the corpus, tagged with that label,
#      according to the write-back policy
#   8. Return a ScoreResult
#
# Cancellation before step 7 leaves the index untouched: asyncio cancels
# the outstanding provider call and the write-back is never reached.
# =============================================================================

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Literal

from screener.config import settings
from screener.errors import InvalidParameterError, ValidationError
from screener.services.index import ChunkMetadata, ScoredChunk
from screener.services.ingestion import IngestionPipeline
from screener.services.llm import LLMProvider
from screener.services.prompts import build_review_prompt, build_system_prompt
from screener.services.scoring import (
    MAX_SCORE,
    MIN_SCORE,
    StatusLabel,
    parse_score,
    status_for,
)
from screener.services.vectorstore import VectorStore

logger = logging.getLogger(__name__)

WritebackPolicy = Literal["always", "scored", "never"]


@dataclass
class ScoreResult:
    """Outcome of one review call."""

    raw_model_text: str
    score: int | None
    status_label: StatusLabel
    matches: list[ScoredChunk] = field(default_factory=list)
    model: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    candidate_id: str | None = None
    written_back_ids: list[str] = field(default_factory=list)


class ReviewEngine:
    """Scores a candidate resume against requirements and the labeled corpus."""

    def __init__(
        self,
        vector_store: VectorStore,
        llm: LLMProvider,
        ingestion: IngestionPipeline,
        top_k: int | None = None,
        hire_threshold: int | None = None,
        writeback_policy: WritebackPolicy | None = None,
        position: str | None = None,
        rubric: str | None = None,
    ) -> None:
        self._vector_store = vector_store
        self._llm = llm
        self._ingestion = ingestion
        self.top_k = settings.retrieval_top_k if top_k is None else top_k
        self.hire_threshold = (
            settings.hire_threshold if hire_threshold is None else hire_threshold
        )
        self.writeback_policy: WritebackPolicy = writeback_policy or settings.writeback_policy
        self.position = position or settings.screening_role
        self.rubric = rubric if rubric is not None else settings.scoring_rubric

        if self.top_k < 1:
            raise InvalidParameterError(
                f"top_k must be a positive integer (got {self.top_k})"
            )
        if not MIN_SCORE <= self.hire_threshold <= MAX_SCORE:
            raise InvalidParameterError(
                f"hire_threshold must be between {MIN_SCORE} and {MAX_SCORE} "
                f"(got {self.hire_threshold})"
            )
        if self.writeback_policy not in ("always", "scored", "never"):
            raise InvalidParameterError(
                f"Unknown write-back policy '{self.writeback_policy}'"
            )

    async def review(
        self,
        candidate_text: str,
        requirements: str,
        k: int | None = None,
    ) -> ScoreResult:
        """
        Score a candidate resume.

        Args:
            candidate_text: Plain text of the resume to evaluate.
            requirements: Free-text evaluation criteria for this request.
            k: Number of similar chunks to retrieve (default: configured).

        Raises:
            ValidationError: Empty resume or requirements, or k < 1.
            NoCorpusError / EmptyIndexError: Nothing to compare against.
            ProviderError: Embedding or scoring call failed after retries.
            PersistenceError: Write-back could not be saved.
        """
        if not isinstance(candidate_text, str) or not candidate_text.strip():
            raise ValidationError("Candidate resume text is required and must not be empty.")
        if not isinstance(requirements, str) or not requirements.strip():
            raise ValidationError("Evaluation requirements are required.")
        top_k = self.top_k if k is None else k
        if top_k < 1:
            raise ValidationError(f"k must be a positive integer (got {top_k}).")

        candidate_id = uuid.uuid4().hex
        start_time = time.monotonic()

        # --- Retrieval ---
        # Fail fast on a missing corpus before paying for an embedding
        await self._vector_store.ensure_loaded()
        query_embedding = await self._vector_store.embed_query(candidate_text)
        matches = await self._vector_store.search_by_vector(query_embedding, top_k)

        logger.info(
            "Review %s: retrieved %d chunks (k=%d, top similarity=%.3f)",
            candidate_id, len(matches), top_k,
            matches[0].similarity if matches else 0.0,
        )

        # --- Scoring ---
        prompt = build_review_prompt(
            requirements=requirements,
            candidate_text=candidate_text,
            context_chunks=[m.chunk for m in matches],
            rubric=self.rubric,
        )
        response = await self._llm.complete(
            messages=[{"role": "user", "content": prompt}],
            system=build_system_prompt(self.position),
        )

        score = parse_score(response.content)
        status_label = status_for(score, self.hire_threshold)

        logger.info(
            "Review %s scored: score=%s, status=%s, model=%s, tokens=%d+%d",
            candidate_id, score, status_label.value, response.model,
            response.input_tokens, response.output_tokens,
        )

        result = ScoreResult(
            raw_model_text=response.content,
            score=score,
            status_label=status_label,
            matches=matches,
            model=response.model,
            input_tokens=response.input_tokens,
            output_tokens=response.output_tokens,
            candidate_id=candidate_id,
        )

        # --- Write-back ---
        if self._should_write_back(score):
            result.written_back_ids = await self._write_back(
                candidate_id, candidate_text, status_label, query_embedding,
            )

        logger.info(
            "Review %s complete in %d ms",
            candidate_id, int((time.monotonic() - start_time) * 1000),
        )
        return result

    def _should_write_back(self, score: int | None) -> bool:
        if self.writeback_policy == "never":
            return False
        if self.writeback_policy == "scored":
            return score is not None
        return True

    async def _write_back(
        self,
        candidate_id: str,
        candidate_text: str,
        status_label: StatusLabel,
        query_embedding: list[float],
    ) -> list[str]:
        """Add the reviewed candidate to the corpus, tagged with its label."""
        metadata = ChunkMetadata(status_label=status_label, origin="review")
        drafts = self._ingestion.build_drafts(candidate_text, metadata, candidate_id)

        # A single chunk equal to the query text already has its embedding
        embeddings = None
        if len(drafts) == 1 and drafts[0].text == candidate_text:
            embeddings = [query_embedding]

        chunks = await self._vector_store.add(drafts, embeddings=embeddings)
        logger.info(
            "Review %s written back: %d chunks, status=%s",
            candidate_id, len(chunks), status_label.value,
        )
        return [c.id for c in chunks]
