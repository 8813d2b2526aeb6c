"""Shared services module."""

from src.gatekeeper.services.rate_limiter import (
    default_rate_limit,
    limiter,
    login_rate_limit,
    public_rate_limit,
)

__all__ = [
    "limiter",
    "default_rate_limit",
    "login_rate_limit",
    "public_rate_limit",
]
