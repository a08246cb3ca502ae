# =============================================================================
# Services Package — Screening Core
# =============================================================================
# Contains the business logic, separated from the API handlers:
#   - segmenter.py: bounded, overlapping text windows (characters or tokens)
#   - embedder.py: embedding provider contract + OpenAI implementation
#   - llm.py: scoring model contract + OpenAI-compatible / Anthropic
#   - retry.py: timeout and exponential-backoff policy for provider calls
#   - index.py: chunk records and immutable VectorIndex snapshots
#   - persistence.py: atomic save/load of the index artifact
#   - vectorstore.py: index owner (lock, search, append, persist)
#   - ingestion.py: labeled resume → indexed chunks
#   - prompts.py: grounded evaluation prompt
#   - scoring.py: "Score: <n>" parser and hire/not-hire policy
#   - review.py: retrieval-augmented scoring engine
#   - container.py: process-wide wiring of the above
# =============================================================================
