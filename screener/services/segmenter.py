# =============================================================================
# Segmenter — Bounded, Overlapping Text Windows
# =============================================================================
#
# Splits a document's plain text into chunks no longer than `chunk_size`
# units, where consecutive chunks share exactly `overlap` units.
#
# Two units are supported:
#   - "characters": windows over the raw string (default)
#   - "tokens": windows over tiktoken ids (cl100k_base), mapped back to
#     slices of the original text on character boundaries. Keeps chunk
#     sizes aligned with embedding model limits.
#
# ALGORITHM:
# 1. Validate 0 < overlap < chunk_size
# 2. If the whole sequence fits in one window, return it unchanged
# 3. Slide a window of chunk_size with step = chunk_size - overlap
# 4. Stop at the first window that reaches the end of the sequence
#
# Character windows are cut at exact unit boundaries; token windows are
# widened to the start of any character they would split. The result is deterministic:
# identical input and parameters always give an identical list.
# =============================================================================

from __future__ import annotations

import logging
from typing import Literal, TypeVar

import tiktoken

from screener.errors import InvalidParameterError

logger = logging.getLogger(__name__)

SegmentUnit = Literal["characters", "tokens"]

_T = TypeVar("_T", str, list[int])


# ---------------------------------------------------------------------------
# Tiktoken Encoder — Cached Singleton
# ---------------------------------------------------------------------------
# Loading the encoder reads a BPE file from disk; cache it across calls.
# cl100k_base is the encoding used by text-embedding-3-small.
# ---------------------------------------------------------------------------

_encoder: tiktoken.Encoding | None = None


def _get_encoder() -> tiktoken.Encoding:
    """Lazily initialize and cache the tiktoken encoder."""
    global _encoder
    if _encoder is None:
        _encoder = tiktoken.get_encoding("cl100k_base")
    return _encoder


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_window(chunk_size: int, overlap: int) -> None:
    """Raise InvalidParameterError unless 0 < overlap < chunk_size."""
    if chunk_size <= 0 or overlap <= 0:
        raise InvalidParameterError(
            f"chunk_size and overlap must be positive "
            f"(got chunk_size={chunk_size}, overlap={overlap})"
        )
    if overlap >= chunk_size:
        raise InvalidParameterError(
            f"overlap ({overlap}) must be smaller than chunk_size ({chunk_size})"
        )


def segment(
    text: str,
    chunk_size: int,
    overlap: int,
    unit: SegmentUnit = "characters",
) -> list[str]:
    """
    Split text into ordered, overlapping chunks.

    Args:
        text: Plain document text.
        chunk_size: Maximum units per chunk.
        overlap: Units shared by consecutive chunks.
        unit: "characters" or "tokens".

    Returns:
        Chunks in document order. Empty text gives an empty list; text no
        longer than chunk_size gives exactly [text].

    Raises:
        InvalidParameterError: If the window parameters are inconsistent
            or the unit is unknown.
    """
    validate_window(chunk_size, overlap)

    if not text:
        return []

    if unit == "characters":
        chunks = window(text, chunk_size, overlap)
    elif unit == "tokens":
        chunks = _token_windows(text, chunk_size, overlap)
    else:
        raise InvalidParameterError(f"Unknown segmentation unit '{unit}'")

    logger.debug(
        "Segmented %d characters into %d chunks (size=%d, overlap=%d, unit=%s)",
        len(text), len(chunks), chunk_size, overlap, unit,
    )
    return chunks


def window(units: _T, chunk_size: int, overlap: int) -> list[_T]:
    """
    Slide a fixed-size window over a sequence.

    Works on any sliceable sequence (a string or a list of token ids).
    The caller is responsible for validating the parameters.
    """
    return [units[start:end] for start, end in _spans(len(units), chunk_size, overlap)]


def _spans(total: int, chunk_size: int, overlap: int) -> list[tuple[int, int]]:
    """[start, end) bounds of each window over `total` units."""
    if total <= chunk_size:
        return [(0, total)]

    step = chunk_size - overlap
    spans: list[tuple[int, int]] = []
    for start in range(0, total, step):
        end = min(start + chunk_size, total)
        spans.append((start, end))
        if end >= total:
            break
    return spans


def _token_windows(text: str, chunk_size: int, overlap: int) -> list[str]:
    """
    Token windows mapped back onto slices of the original text.

    cl100k_base splits some characters (accents, CJK, emoji) across several
    byte-level tokens, so decoding a window on its own can cut a character
    in half. Instead each token boundary is mapped to a character offset:
    a boundary inside a character moves back to that character's start.
    Chunks are therefore exact substrings of `text` and together still
    cover it end to end.
    """
    encoder = _get_encoder()
    tokens = encoder.encode(text, disallowed_special=())
    if len(tokens) <= chunk_size:
        return [text]

    _, offsets = encoder.decode_with_offsets(tokens)
    bounds = [*offsets, len(text)]

    chunks = []
    for start, end in _spans(len(tokens), chunk_size, overlap):
        piece = text[bounds[start]:bounds[end]]
        # A window lying wholly inside one character maps to nothing
        if piece:
            chunks.append(piece)
    return chunks
