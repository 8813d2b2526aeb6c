"""Login, logout and current-user endpoints."""

from src.gatekeeper.features.auth.handlers import router

__all__ = ["router"]
