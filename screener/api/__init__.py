# =============================================================================
# API Package — FastAPI Route Handlers
# =============================================================================
#   - ingest.py: add a labeled resume to the corpus
#   - review.py: score a candidate resume
#   - deps.py: service injection
# =============================================================================
