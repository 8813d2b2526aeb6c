"""Persistence of provider identities seen through remote verification."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from supabase import Client

from src.gatekeeper.auth.models import PersistedProviderUser

logger = logging.getLogger(__name__)


class UserStore(Protocol):
    """Read/write access to previously verified provider users."""

    async def find_fresh(
        self, provider: str, provider_user_id: str, max_age_days: int
    ) -> PersistedProviderUser | None:
        """Return the user if it was verified within ``max_age_days``."""

    async def find_fresh_by_token_hash(
        self, provider: str, token_hash: str, max_age_days: int
    ) -> PersistedProviderUser | None:
        """Return the fresh user last verified with the token hashing to ``token_hash``."""

    async def upsert(self, user: PersistedProviderUser) -> None:
        """Create or refresh the row keyed by (provider, provider_user_id)."""


class InMemoryUserStore:
    """Process-local user store for development and tests."""

    def __init__(self) -> None:
        self.users: dict[tuple[str, str], PersistedProviderUser] = {}

    async def find_fresh(
        self, provider: str, provider_user_id: str, max_age_days: int
    ) -> PersistedProviderUser | None:
        user = self.users.get((provider, provider_user_id))
        if user is not None and user.is_fresh(max_age_days):
            return user
        return None

    async def find_fresh_by_token_hash(
        self, provider: str, token_hash: str, max_age_days: int
    ) -> PersistedProviderUser | None:
        for (user_provider, _), user in self.users.items():
            if user_provider == provider and user.token_hash == token_hash:
                return user if user.is_fresh(max_age_days) else None
        return None

    async def upsert(self, user: PersistedProviderUser) -> None:
        self.users[(user.provider, user.provider_user_id)] = user


class SupabaseUserStore:
    """
    User store backed by the Supabase ``users`` table.

    Rows are unique on (provider, provider_user_id). Stale rows are kept;
    freshness is applied as a ``last_verified_at`` filter on read.

    Example:
        >>> store = SupabaseUserStore(get_supabase_admin_client())
        >>> user = await store.find_fresh("x", "42", max_age_days=30)
    """

    columns = "provider,provider_user_id,name,email,username,avatar,last_verified_at,token_hash"

    def __init__(self, client: Client, table: str = "users"):
        self.client = client
        self.table = table

    @staticmethod
    def _cutoff(max_age_days: int) -> str:
        return (datetime.now(timezone.utc) - timedelta(days=max_age_days)).isoformat()

    def _first(self, filters: dict[str, Any], max_age_days: int) -> PersistedProviderUser | None:
        query = self.client.table(self.table).select(self.columns)
        for field, value in filters.items():
            query = query.eq(field, value)

        response = (
            query.gte("last_verified_at", self._cutoff(max_age_days))
            .order("last_verified_at", desc=True)
            .limit(1)
            .execute()
        )
        return PersistedProviderUser.model_validate(response.data[0]) if response.data else None

    async def find_fresh(
        self, provider: str, provider_user_id: str, max_age_days: int
    ) -> PersistedProviderUser | None:
        return self._first(
            {"provider": provider, "provider_user_id": provider_user_id}, max_age_days
        )

    async def find_fresh_by_token_hash(
        self, provider: str, token_hash: str, max_age_days: int
    ) -> PersistedProviderUser | None:
        return self._first({"provider": provider, "token_hash": token_hash}, max_age_days)

    async def upsert(self, user: PersistedProviderUser) -> None:
        now = datetime.now(timezone.utc).isoformat()
        row = user.model_dump(mode="json")
        row.update({"last_login_at": now, "status": "active"})

        self.client.table(self.table).upsert(row, on_conflict="provider,provider_user_id").execute()

        logger.info(
            "Provider user saved to users table",
            extra={"provider": user.provider, "provider_user_id": user.provider_user_id},
        )
