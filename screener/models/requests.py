# =============================================================================
# API Request Models — Pydantic V2 Schemas
# =============================================================================
#
# These models define the shape of data coming INTO the API.
# Field names are snake_case in Python and camelCase on the wire
# ("documentText", "statusLabel"); either spelling is accepted.
#
# DESIGN DECISION: Shape checks only. Whether a label is a valid outcome or
# a resume is blank is decided by the core, so the same rules apply to
# every caller, HTTP or not.
# =============================================================================

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class IngestRequest(BaseModel):
    """
    Request body for POST /ingest — add a labeled resume to the corpus.

    Example:
        {
            "documentText": "5 years backend engineering, led a team of 4",
            "statusLabel": "hired",
            "role": "backend"
        }
    """

    document_text: str = Field(
        ...,
        description="Plain text of the resume (already extracted from the upload)",
    )
    status_label: str | None = Field(
        default=None,
        description="Screening outcome: 'hired' or 'not hired'",
        examples=["hired"],
    )
    role: str | None = Field(
        default=None,
        max_length=200,
        description="Role the candidate was screened for",
    )
    reason: str | None = Field(
        default=None,
        max_length=2000,
        description="Why the candidate got this outcome",
    )

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ReviewRequest(BaseModel):
    """
    Request body for POST /review — score a candidate resume.

    Example:
        {
            "documentText": "3 years backend engineering",
            "requirements": "3+ years backend experience"
        }
    """

    document_text: str = Field(
        ...,
        description="Plain text of the resume to evaluate",
    )
    requirements: str = Field(
        ...,
        description="Evaluation criteria for this review",
    )
    k: int | None = Field(
        default=None,
        ge=1,
        le=50,
        description="Number of similar screened resumes to retrieve. Defaults to config.",
    )

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )
