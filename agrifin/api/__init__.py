"""agrifin API Package - FastAPI application.

Public API:
- create_app: Build the application around a store, settings and rate client
- app: Application built from the default settings
"""

from .main import ApiError, app, create_app

__all__ = ["ApiError", "app", "create_app"]
