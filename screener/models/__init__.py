# =============================================================================
# Models Package — Pydantic V2 Schemas
# =============================================================================
# Request/response schemas for the API. SEPARATE from the core records in
# services/index.py: the wire contract and the stored chunk layout evolve
# independently, and embeddings are never exposed to clients.
# =============================================================================
