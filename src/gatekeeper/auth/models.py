"""Data models for authentication."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Identity(BaseModel):
    """
    Normalized user identity produced by a successful verification.

    ``user_id`` is the provider-native subject (Google ``sub``, X user id);
    it is never regenerated. Every other field may be missing.

    Example:
        >>> Identity(user_id="42", name="Jane", username="jane", provider="x")
    """

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(min_length=1)
    email: str | None = None
    name: str | None = None
    username: str | None = None
    avatar: str | None = None
    provider: str | None = None


class CachedIdentityRecord(BaseModel):
    """Identity as stored in the cache under both its token and user keys."""

    identity: Identity
    cached_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class PersistedProviderUser(BaseModel):
    """Row of the users table for an identity seen through a remote verification."""

    provider: str
    provider_user_id: str
    name: str | None = None
    email: str | None = None
    username: str | None = None
    avatar: str | None = None
    last_verified_at: datetime
    token_hash: str | None = None

    def is_fresh(self, max_age_days: int, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        last = self.last_verified_at
        if last.tzinfo is None:
            last = last.replace(tzinfo=timezone.utc)
        return (now - last).total_seconds() <= max_age_days * 86400

    def to_identity(self) -> Identity:
        return Identity(
            user_id=self.provider_user_id,
            email=self.email,
            name=self.name,
            username=self.username,
            avatar=self.avatar,
            provider=self.provider,
        )


class RemoteLookupResponse(BaseModel):
    """Raw outcome of a provider "who am I" call."""

    status_code: int
    body: Any = None
    headers: dict[str, str] = {}

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300
