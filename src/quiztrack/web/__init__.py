"""FastAPI web layer."""
