# =============================================================================
# Resume Screener
# =============================================================================
# Screens candidate resumes by retrieving similar, previously labeled resumes
# from a persistent vector index and asking a language model for a grounded
# fitness score, which is mapped deterministically to a hiring decision.
#
# Package structure:
#   screener/
#   ├── api/          → FastAPI route handlers (ingest, review)
#   ├── models/       → Pydantic V2 request/response schemas
#   ├── services/     → Business logic (segmenting, embedding, index,
#   │                    persistence, prompting, scoring)
#   ├── config.py     → Pydantic Settings
#   ├── errors.py     → Error taxonomy with HTTP status mapping
#   └── main.py       → FastAPI application and error handlers
# =============================================================================
