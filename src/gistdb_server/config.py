"""Centralized configuration for gistdb-server using Pydantic Settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strictly typed configuration loaded from environment variables.

    All environment variables are validated at startup with proper types.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",  # Ignore extra env vars not defined in model
    )

    # Blob store (GitHub Gists)
    github_api_url: str = Field(default="https://api.github.com", description="Base URL of the gist API")
    github_user_agent: str = Field(default="GistDB-API", description="User-Agent sent with every gist API call")
    http_timeout: int = Field(default=30, ge=1, description="HTTP request timeout in seconds")
    default_description: str = Field(
        default="GistDB Database",
        description="Description re-sent on patches when the remote container has none",
    )

    # Sparse index
    index_granularity: int = Field(default=10, ge=1, description="Sample every Nth object when building an index")
    bloom_filter_bits: int = Field(default=100000, ge=8, description="Bit array size of per-field membership filters")
    bloom_filter_hash_count: int = Field(default=1, ge=1, description="Hash functions per membership filter")
    sparse_index_enabled: bool = Field(default=True, description="Consult the sparse index on field searches")
    sparse_index_skip_on_absent: bool = Field(
        default=False,
        description="Skip the full scan when the sampled index reports a value as absent (lossy)",
    )

    # Search result cache
    search_cache_enabled: bool = Field(default=True, description="Memoize search results per collection and query")
    search_cache_max_entries: int = Field(default=1024, ge=1, description="Maximum cached search results")
    search_cache_ttl_seconds: float = Field(default=0.0, ge=0.0, description="Cache entry lifetime, 0 disables expiry")
    search_cache_base_url: str = Field(default="https://gistdb.com", description="Prefix of canonical cache keys")

    # Server settings
    host: str = Field(default="127.0.0.1", description="HTTP server host")
    port: int = Field(default=8787, ge=1, le=65535, description="HTTP server port")
    environment: str = Field(default="production", description="Deployment environment reported by /health")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    # Tracing
    otel_exporter_endpoint: str = Field(default="", description="OTLP/HTTP trace endpoint, empty keeps spans local")

    def cache_ttl(self) -> float | None:
        """Cache entry lifetime in seconds, or None when entries never expire."""
        if self.search_cache_ttl_seconds <= 0:
            return None
        return self.search_cache_ttl_seconds

    def is_debug(self) -> bool:
        return self.log_level.lower() == "debug"
