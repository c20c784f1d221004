"""Dashboard backend (FastAPI)."""
