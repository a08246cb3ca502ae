# =============================================================================
# Ingest API — Add a Labeled Resume to the Screening Corpus
# =============================================================================
#
# POST /ingest  {documentText, statusLabel, role?, reason?} → {ok: true, ...}
#
# The handler is thin: shape validation by Pydantic, everything else by the
# ingestion pipeline. Domain errors are rendered by the handlers in main.py
# (400 validation, 500 misconfiguration/persistence, 502 provider).
# =============================================================================

import logging

from fastapi import APIRouter, Depends

from screener.api.deps import get_screening_services
from screener.models.requests import IngestRequest
from screener.models.responses import ErrorResponse, IngestResponse
from screener.services.container import ScreeningServices

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Ingestion"])


@router.post(
    "/ingest",
    response_model=IngestResponse,
    summary="Add a labeled resume to the screening corpus",
    description=(
        "Segment, embed and index a previously screened resume together "
        "with its outcome. The index is persisted before the response is sent."
    ),
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def ingest_endpoint(
    request: IngestRequest,
    services: ScreeningServices = Depends(get_screening_services),
) -> IngestResponse:
    logger.info(
        "Ingest request: %d chars, label=%s, role=%s",
        len(request.document_text), request.status_label, request.role,
    )

    result = await services.ingestion.ingest(
        document_text=request.document_text,
        label=request.status_label,
        role=request.role,
        reason=request.reason,
    )

    return IngestResponse(
        ok=True,
        document_id=result.document_id,
        chunk_count=result.chunk_count,
    )
