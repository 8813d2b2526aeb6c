"""Login audit trail written by the login endpoints."""

import logging
from datetime import datetime, timezone
from typing import Protocol

from pydantic import BaseModel, Field
from supabase import Client

from src.gatekeeper.auth.models import Identity

logger = logging.getLogger(__name__)


class LoginHistoryEntry(BaseModel):
    """One successful login."""

    user_id: str
    provider: str | None = None
    user_email: str | None = None
    user_name: str | None = None
    ip_address: str | None = Field(None, max_length=45)
    user_agent: str | None = None
    logged_in_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def for_identity(
        cls, identity: Identity, ip_address: str | None = None, user_agent: str | None = None
    ) -> "LoginHistoryEntry":
        return cls(
            user_id=identity.user_id,
            provider=identity.provider,
            user_email=identity.email,
            user_name=identity.name,
            ip_address=ip_address,
            user_agent=user_agent[:255] if user_agent else None,
        )


class LoginHistoryStore(Protocol):
    async def record(self, entry: LoginHistoryEntry) -> None: ...


class InMemoryLoginHistoryStore:
    def __init__(self) -> None:
        self.entries: list[LoginHistoryEntry] = []

    async def record(self, entry: LoginHistoryEntry) -> None:
        self.entries.append(entry)


class SupabaseLoginHistoryStore:
    """Appends rows to the ``login_histories`` table."""

    def __init__(self, client: Client, table: str = "login_histories"):
        self.client = client
        self.table = table

    async def record(self, entry: LoginHistoryEntry) -> None:
        self.client.table(self.table).insert(entry.model_dump(mode="json")).execute()
        logger.info("Login history saved", extra={"user_id": entry.user_id})
