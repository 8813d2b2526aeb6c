"""Persistence of provider users and login history."""

from src.gatekeeper.database.login_history import (
    InMemoryLoginHistoryStore,
    LoginHistoryEntry,
    SupabaseLoginHistoryStore,
)
from src.gatekeeper.database.user_store import InMemoryUserStore, SupabaseUserStore

__all__ = [
    "InMemoryUserStore",
    "SupabaseUserStore",
    "LoginHistoryEntry",
    "InMemoryLoginHistoryStore",
    "SupabaseLoginHistoryStore",
]
