"""Version 1 of the HTTP API, mounted under /v1."""

from src.api.v1.routes import router

__all__ = ["router"]
