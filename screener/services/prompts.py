# =============================================================================
# Review Prompt — Grounded Evaluation Instructions
# =============================================================================
#
# Task framing (position title) is the SYSTEM prompt. The user prompt
# follows it, with sections in a FIXED order:
#   1. Requirements supplied with the request
#   2. The candidate resume
#   3. Retrieval context: previously screened resumes, numbered [1], [2], ...
#      in retrieval order, each labeled with its recorded outcome
#   4. Scoring rubric, only when configured
#   5. Scoring instructions
#   6. Output-format directive: the literal "Score: <integer>" line
#
# DESIGN DECISION: The rubric is a configuration input (SCORING_RUBRIC),
# shown verbatim in its own section. Informal weighting hints are never
# spliced into the instructions, so every scoring criterion is auditable.
# =============================================================================

from __future__ import annotations

from collections.abc import Sequence

from screener.services.index import Chunk
from screener.services.scoring import MAX_SCORE, MIN_SCORE, SCORE_MARKER

SYSTEM_FRAMING = (
    "You are a recruiter screening resumes for {position}. You score each "
    "resume against the stated requirements and report the score in the "
    "requested format."
)

NO_CONTEXT = "(No previously screened resumes are available.)"

SCORING_INSTRUCTIONS = (
    "Perform an initial screening of the resume to evaluate against the "
    "requirements. Use the previously screened resumes only as a small "
    "consideration: they show how similar candidates were decided, but the "
    "requirements come first. Assign a score between {low} and {high} "
    "reflecting the candidate's fit, and explain how the candidate meets or "
    "falls short of each requirement."
)

OUTPUT_FORMAT = (
    "Write your reasoning first. Then end your answer with a single line in "
    "exactly this format, with a whole number and nothing else on the line:\n"
    "{marker} <integer between {low} and {high}>"
)


def format_context(chunks: Sequence[Chunk]) -> str:
    """
    Format retrieved chunks as numbered, outcome-labeled context.

    Example output:
        [1] (outcome: hired, role: backend, reason: strong systems design):
        5 years backend engineering, led a team of 4

        ---

        [2] (outcome: not hired):
        ...
    """
    sections = []
    for i, chunk in enumerate(chunks, 1):
        meta = chunk.metadata
        details = []
        if meta.status_label is not None:
            details.append(f"outcome: {meta.status_label.value}")
        if meta.role:
            details.append(f"role: {meta.role}")
        if meta.reason:
            details.append(f"reason: {meta.reason}")
        label = f" ({', '.join(details)})" if details else ""
        sections.append(f"[{i}]{label}:\n{chunk.text}")
    return "\n\n---\n\n".join(sections)


def build_system_prompt(position: str = "the open position") -> str:
    return SYSTEM_FRAMING.format(position=position)


def build_review_prompt(
    requirements: str,
    candidate_text: str,
    context_chunks: Sequence[Chunk],
    rubric: str | None = None,
) -> str:
    """Assemble the evaluation prompt in its fixed section order."""
    context = format_context(context_chunks) or NO_CONTEXT

    parts = [
        f"*Requirements:*\n{requirements.strip()}",
        f"*Resume to Evaluate:*\n{candidate_text.strip()}",
        "*Context:*\nPreviously screened resumes that resemble the resume to "
        f"evaluate, with their recorded outcomes:\n\n{context}",
    ]
    if rubric and rubric.strip():
        parts.append(f"*Scoring Rubric:*\n{rubric.strip()}")
    parts.append(
        "*Instructions:*\n"
        + SCORING_INSTRUCTIONS.format(low=MIN_SCORE, high=MAX_SCORE)
    )
    parts.append(
        "*Output Format:*\n"
        + OUTPUT_FORMAT.format(marker=SCORE_MARKER, low=MIN_SCORE, high=MAX_SCORE)
    )
    return "\n\n".join(parts)
