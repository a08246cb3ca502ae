# =============================================================================
# Score Parser & Status Policy
# =============================================================================
#
# The only bridge between free-text model output and a hiring decision.
#
# EXTRACTION RULE:
# 1. Find the FIRST case-insensitive occurrence of the marker "Score:"
# 2. Skip whitespace and Markdown emphasis ("*", "_") after the marker,
#    so "**Score:** 82" and "Score: 82" read the same
# 3. Read an optional sign followed by digits
# 4. A fractional value ("Score: 82.5") or no number at all → parse fails
# 5. Clamp the integer to [0, 100]
#
# Later markers are never consulted: if the first marker is unusable the
# result is unscored. The parser never guesses.
#
# STATUS POLICY:
#   score >= threshold → "hired"
#   score <  threshold → "not hired"
#   score is None      → "unscored"
# =============================================================================

from __future__ import annotations

import enum
import logging
import re

logger = logging.getLogger(__name__)

SCORE_MARKER = "Score:"
MIN_SCORE = 0
MAX_SCORE = 100
DEFAULT_HIRE_THRESHOLD = 75

_MARKER_RE = re.compile(re.escape(SCORE_MARKER), re.IGNORECASE)
_VALUE_RE = re.compile(r"[\s*_]*([+-]?\d+)(?!\d|[.,]\d)")


class StatusLabel(str, enum.Enum):
    """Decision outcome attached to chunks and review results."""

    HIRED = "hired"
    NOT_HIRED = "not hired"
    UNSCORED = "unscored"

    @classmethod
    def parse_decision(cls, value: str) -> StatusLabel:
        """
        Parse a human-supplied outcome label ("hired" / "not hired").

        Case and surrounding whitespace are ignored; "not_hired" and
        "not-hired" are accepted. "unscored" is not a decision.

        Raises:
            ValueError: If the value is not one of the two decisions.
        """
        normalised = " ".join(value.strip().lower().replace("_", " ").replace("-", " ").split())
        for label in (cls.HIRED, cls.NOT_HIRED):
            if normalised == label.value:
                return label
        raise ValueError(
            f"Unknown status label '{value}'. Expected 'hired' or 'not hired'."
        )


def parse_score(text: str) -> int | None:
    """
    Extract the score from a model response.

    Returns:
        The clamped integer score, or None if the first "Score:" marker is
        missing or not followed by an integer.
    """
    marker = _MARKER_RE.search(text)
    if marker is None:
        logger.warning("No '%s' marker in model response", SCORE_MARKER)
        return None

    value = _VALUE_RE.match(text, marker.end())
    if value is None:
        logger.warning(
            "'%s' marker not followed by an integer: %r",
            SCORE_MARKER, text[marker.start() : marker.end() + 20],
        )
        return None

    raw = int(value.group(1))
    score = max(MIN_SCORE, min(MAX_SCORE, raw))
    if score != raw:
        logger.info("Clamped score %d to %d", raw, score)
    return score


def status_for(score: int | None, threshold: int = DEFAULT_HIRE_THRESHOLD) -> StatusLabel:
    """Map a score to its decision label."""
    if score is None:
        return StatusLabel.UNSCORED
    if score >= threshold:
        return StatusLabel.HIRED
    return StatusLabel.NOT_HIRED
