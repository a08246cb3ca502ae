# =============================================================================
# Application Configuration — Pydantic Settings
# =============================================================================
#
# DESIGN DECISION: Pydantic V2's `BaseSettings` for configuration.
# Every knob the screening pipeline needs (provider credentials, chunking,
# retrieval depth, hire threshold, index location, retry budget) is an
# injectable setting. Nothing is hard-coded at a call site.
#
# HOW IT WORKS:
# Pydantic Settings loads values in this priority order (highest first):
#   1. Environment variables (e.g., `HIRE_THRESHOLD=80`)
#   2. Values from the .env file
#   3. Default values defined below
#
# USAGE:
#   from screener.config import settings
#   print(settings.index_path)
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Defaults are suitable for local development against the OpenAI API.
    In production, override via environment variables or a .env file.
    """

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------
    app_name: str = "Resume Screener"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # -------------------------------------------------------------------------
    # API Keys — External Services
    # -------------------------------------------------------------------------
    # OPENAI_API_KEY: embeddings (and the LLM when provider=openai_compatible)
    # ANTHROPIC_API_KEY: Claude, when provider=anthropic
    # LLM_API_KEY: overrides the provider-specific key if set
    # -------------------------------------------------------------------------
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    llm_api_key: str | None = None

    # -------------------------------------------------------------------------
    # LLM Configuration — Multi-Provider
    # -------------------------------------------------------------------------
    #   - "openai_compatible": OpenAI or any API following the OpenAI spec
    #   - "anthropic": Claude via the native Anthropic SDK
    # -------------------------------------------------------------------------
    llm_provider: Literal["openai_compatible", "anthropic"] = "openai_compatible"
    llm_base_url: str | None = None
    llm_model: str = "gpt-4o-mini"
    llm_temperature: float = 0.0
    llm_max_tokens: int = 1024

    # -------------------------------------------------------------------------
    # Embedding Configuration
    # -------------------------------------------------------------------------
    # embedding_dimensions=None lets the model use its native size. The index
    # fixes its dimension from the first embedding it stores either way.
    # -------------------------------------------------------------------------
    embedding_model: str = "text-embedding-3-small"
    embedding_base_url: str | None = None
    embedding_dimensions: int | None = None
    embedding_batch_size: int = Field(default=100, gt=0)

    # -------------------------------------------------------------------------
    # Segmentation
    # -------------------------------------------------------------------------
    # Resumes are short; a large character window keeps most of them in a
    # single chunk while still bounding what goes to the embedding model.
    # chunk_unit="tokens" switches to tiktoken windows (cl100k_base).
    # -------------------------------------------------------------------------
    chunk_size: int = Field(default=10000, gt=0)
    chunk_overlap: int = Field(default=10, gt=0)
    chunk_unit: Literal["characters", "tokens"] = "characters"

    # -------------------------------------------------------------------------
    # Retrieval & Scoring
    # -------------------------------------------------------------------------
    # retrieval_top_k: previously screened chunks shown to the model.
    # hire_threshold: score >= threshold → "hired".
    # writeback_policy: which reviewed candidates join the corpus.
    #   "always" → every review, "scored" → only parsable scores, "never".
    # screening_role: position title used in the task framing.
    # scoring_rubric: optional, auditable rubric text added to the prompt.
    # -------------------------------------------------------------------------
    retrieval_top_k: int = Field(default=4, gt=0)
    hire_threshold: int = Field(default=75, ge=0, le=100)
    writeback_policy: Literal["always", "scored", "never"] = "always"
    screening_role: str = "the open position"
    scoring_rubric: str | None = None

    # -------------------------------------------------------------------------
    # Index Persistence
    # -------------------------------------------------------------------------
    # A single versioned JSON artifact. Written atomically (temp file +
    # os.replace) so a crash never leaves a half-written index behind.
    # -------------------------------------------------------------------------
    index_path: str = "data/index/screening_index.json"

    # -------------------------------------------------------------------------
    # Provider Call Policy
    # -------------------------------------------------------------------------
    # Every embedding / LLM call is bounded by provider_timeout_seconds and
    # retried at most provider_max_retries times on transient failures,
    # waiting base * 2**attempt seconds (capped) between attempts.
    # -------------------------------------------------------------------------
    provider_timeout_seconds: float = Field(default=60.0, gt=0)
    provider_max_retries: int = Field(default=3, ge=0)
    provider_backoff_base_seconds: float = Field(default=1.0, ge=0)
    provider_backoff_max_seconds: float = Field(default=30.0, ge=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _check_chunk_window(self) -> "Settings":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be smaller than "
                f"chunk_size ({self.chunk_size})"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """
    Create and cache a Settings instance.

    Services read the module-level `settings`; tests pass explicit values
    to the service constructors instead of patching the cache.
    """
    return Settings()


# ---------------------------------------------------------------------------
# Module-level convenience instance
# ---------------------------------------------------------------------------
settings = get_settings()
