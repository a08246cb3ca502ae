# =============================================================================
# Persistence Manager — Atomic Index Artifact on Disk
# =============================================================================
#
# The whole index lives in ONE versioned JSON artifact:
#
#   {
#     "format_version": 1,
#     "dimension": 1536,
#     "chunks": [{"id": ..., "text": ..., "embedding": [...], ...}, ...]
#   }
#
# DESIGN DECISION: JSON via Pydantic, not pickle.
# The artifact is loaded by fresh processes; JSON cannot execute code on
# load and stays inspectable. Python floats round-trip exactly through
# JSON, so a reloaded index ranks identically.
#
# ATOMIC SAVE:
#   1. Serialise into a temp file in the SAME directory as the target
#   2. flush + fsync
#   3. os.replace() onto the target (atomic rename on POSIX and Windows)
# A crash at any step leaves either the old artifact or the new one,
# never a torn file. The temp file is removed on failure.
#
# LOAD-OR-CREATE:
#   get_or_create() → ingestion may start a new corpus
#   get_or_fail()   → review requires an existing corpus (NoCorpusError)
# =============================================================================

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

import pydantic
from pydantic import BaseModel

from screener.errors import InvalidParameterError, NoCorpusError, PersistenceError
from screener.services.index import Chunk, VectorIndex

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


class IndexArtifact(BaseModel):
    """On-disk layout of the index."""

    format_version: int
    dimension: int | None = None
    chunks: list[Chunk] = []


class IndexStore:
    """Saves and loads VectorIndex snapshots at a fixed path."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def save(self, index: VectorIndex) -> None:
        """
        Atomically write the index artifact.

        Raises:
            PersistenceError: If the artifact could not be written. The
                previous artifact (if any) is left intact.
        """
        artifact = IndexArtifact(
            format_version=FORMAT_VERSION,
            dimension=index.dimension,
            chunks=list(index.chunks),
        )
        payload = artifact.model_dump_json()

        tmp_name: str | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self._path)
            tmp_name = None
        except OSError as exc:
            logger.error("Failed to save index to %s: %s", self._path, exc)
            raise PersistenceError(f"Failed to save index to {self._path}: {exc}") from exc
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)

        logger.info(
            "Saved index: %d chunks, dimension=%s → %s",
            len(index), index.dimension, self._path,
        )

    def load(self) -> VectorIndex | None:
        """
        Read the index artifact.

        Returns:
            The stored VectorIndex, or None if no artifact exists.

        Raises:
            PersistenceError: If the artifact is unreadable, malformed, or
                written by an unknown format version.
        """
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise PersistenceError(f"Failed to read index at {self._path}: {exc}") from exc

        try:
            artifact = IndexArtifact.model_validate_json(raw)
        except pydantic.ValidationError as exc:
            logger.error("Malformed index artifact at %s: %s", self._path, exc)
            raise PersistenceError(f"Malformed index artifact at {self._path}") from exc

        if artifact.format_version != FORMAT_VERSION:
            raise PersistenceError(
                f"Unsupported index format version {artifact.format_version} "
                f"(expected {FORMAT_VERSION})"
            )

        try:
            index = VectorIndex(artifact.chunks, dimension=artifact.dimension)
        except InvalidParameterError as exc:
            raise PersistenceError(f"Inconsistent index artifact: {exc.message}") from exc

        logger.info(
            "Loaded index: %d chunks, dimension=%s ← %s",
            len(index), index.dimension, self._path,
        )
        return index

    def get_or_create(self) -> VectorIndex:
        """Load the stored index, or start an empty one."""
        index = self.load()
        if index is None:
            logger.info("No index at %s; starting a new one", self._path)
            return VectorIndex.empty()
        return index

    def get_or_fail(self) -> VectorIndex:
        """
        Load the stored index.

        Raises:
            NoCorpusError: If nothing has been persisted yet.
        """
        index = self.load()
        if index is None:
            raise NoCorpusError(
                "No screening corpus found. Ingest labeled resumes first."
            )
        return index
