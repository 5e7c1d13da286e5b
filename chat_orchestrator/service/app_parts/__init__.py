"""Helpers backing the FastAPI routes."""
