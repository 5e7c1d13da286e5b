"""HTTP surface for the orchestrator (FastAPI)."""
