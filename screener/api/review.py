# =============================================================================
# Review API — Score a Candidate Resume
# =============================================================================
#
# POST /review  {documentText, requirements, k?}
#            → {score, statusLabel, rationale, model, matches}
#
# An unparsable model answer is still a 200: score=null,
# statusLabel="unscored", and the raw text in `rationale`.
# =============================================================================

import logging

from fastapi import APIRouter, Depends

from screener.api.deps import get_screening_services
from screener.models.requests import ReviewRequest
from screener.models.responses import ErrorResponse, MatchResponse, ReviewResponse
from screener.services.container import ScreeningServices

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Review"])


@router.post(
    "/review",
    response_model=ReviewResponse,
    summary="Score a candidate resume against requirements",
    description=(
        "Retrieve previously screened resumes similar to the candidate, ask "
        "the scoring model for a grounded 0-100 score, and map it to a "
        "hiring decision."
    ),
    responses={
        400: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def review_endpoint(
    request: ReviewRequest,
    services: ScreeningServices = Depends(get_screening_services),
) -> ReviewResponse:
    logger.info(
        "Review request: %d chars, requirements='%s', k=%s",
        len(request.document_text), request.requirements[:80], request.k,
    )

    result = await services.review.review(
        candidate_text=request.document_text,
        requirements=request.requirements,
        k=request.k,
    )

    matches = [
        MatchResponse(
            chunk_id=hit.chunk.id,
            source_document_id=hit.chunk.source_document_id,
            similarity=hit.similarity,
            status_label=(
                hit.chunk.metadata.status_label.value
                if hit.chunk.metadata.status_label is not None
                else None
            ),
            role=hit.chunk.metadata.role,
        )
        for hit in result.matches
    ]

    return ReviewResponse(
        score=result.score,
        status_label=result.status_label.value,
        rationale=result.raw_model_text,
        model=result.model,
        matches=matches,
    )
