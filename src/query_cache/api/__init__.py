"""FastAPI surface for the query service."""
