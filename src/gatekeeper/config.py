"""Application configuration using Pydantic Settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # System Configuration
    api_v1_prefix: str = "/api/v1"
    debug: bool = False
    cors_origins: str = "http://localhost:3000,http://localhost:5173"
    rate_limit_enabled: bool = True

    # Identity providers, tried in this order when no X-Auth-Provider hint is sent
    enabled_auth_providers: str = "google,x"

    # Google Configuration
    google_issuer: str = "https://accounts.google.com"
    google_client_id: str | None = None
    google_verify_signature: bool = False
    google_jwks_url: str = "https://www.googleapis.com/oauth2/v3/certs"
    jwks_cache_ttl_seconds: int = 3600  # 1 hour

    # X Configuration
    x_user_info_url: str = "https://api.x.com/2/users/me?user.fields=profile_image_url"
    remote_lookup_timeout_seconds: float = 10.0

    # Identity cache / fallback
    identity_cache_ttl_seconds: int = 2592000  # 30 days
    user_freshness_days: int = 30
    cache_backend: str = "memory"  # memory | redis
    redis_url: str = "redis://localhost:6379/0"

    # Persistence
    user_store_backend: str = "memory"  # memory | supabase
    supabase_url: str = "https://test.supabase.co"
    supabase_service_role_key: str = "test-service-role-key"
    users_table: str = "users"
    login_history_table: str = "login_histories"

    @property
    def auth_providers(self) -> list[str]:
        """Enabled provider names in registration order."""
        return [p.strip().lower() for p in self.enabled_auth_providers.split(",") if p.strip()]


settings = Settings()
