"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


def _normalize_path(value: Any) -> Path:
    """Normalize a path-like value. MUST NOT create directories or files."""
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


def _section(flat: str, section: str, key: str) -> AliasChoices:
    return AliasChoices(flat, AliasPath(section, key))


class AddonConfig(BaseModel):
    """Identity published in the Stremio manifest (YAML section: addon.*)."""

    id: str = Field(default="org.cinecalidad.addon")
    version: str = Field(default="1.0.0")
    name: str = Field(default="CineCalidad")
    description: str = Field(
        default="Películas en español latino y castellano desde CineCalidad.",
    )


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    YAML is sectioned (http/logging/store/cache/site/addon); flat keys such
    as ``http_timeout_seconds`` are accepted too. Environment variables are
    read by EnvOverrides so load.py can enforce
    defaults < YAML < ENV < CLI.
    """

    # General
    app_name: str = Field(default="calidarr", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=10.0,
        validation_alias=_section("http_timeout_seconds", "http", "timeout_seconds"),
        description="Timeout for outbound HTTP requests (seconds).",
    )
    http_retry_max_attempts: int = Field(
        default=2,
        validation_alias=_section(
            "http_retry_max_attempts", "http", "retry_max_attempts"
        ),
        description="Extra attempts after a retryable failure.",
    )
    http_retry_backoff_base: float = Field(
        default=0.5,
        validation_alias=_section(
            "http_retry_backoff_base", "http", "retry_backoff_base"
        ),
        description="Base delay for exponential retry backoff (seconds).",
    )
    http_user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
        ),
        validation_alias=_section("http_user_agent", "http", "user_agent"),
        description="User-Agent for outgoing HTTP requests.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=_section("log_level", "logging", "level"),
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=_section("log_format", "logging", "format"),
        description="console/json. If unset, derived from environment.",
    )

    # Persisted store (YAML section: store.*)
    store_dir: Path = Field(
        default=Path("./.data/calidarr"),
        validation_alias=_section("store_dir", "store", "dir"),
        description="Diskcache SQLite directory.",
    )
    store_movie_retention_days: int = Field(
        default=7,
        validation_alias=_section(
            "store_movie_retention_days", "store", "movie_retention_days"
        ),
        description="Movie records expire this many days after their last save.",
    )
    store_max_concurrent: int = Field(
        default=10,
        validation_alias=_section("store_max_concurrent", "store", "max_concurrent"),
        description="Max parallel store operations (semaphore limit).",
    )

    # Request cache (YAML section: cache.*), all TTLs in minutes
    cache_default_ttl_minutes: int = Field(
        default=30,
        validation_alias=_section(
            "cache_default_ttl_minutes", "cache", "default_ttl_minutes"
        ),
    )
    cache_meta_ttl_minutes: int = Field(
        default=30,
        validation_alias=_section(
            "cache_meta_ttl_minutes", "cache", "meta_ttl_minutes"
        ),
    )
    cache_stream_ttl_minutes: int = Field(
        default=30,
        validation_alias=_section(
            "cache_stream_ttl_minutes", "cache", "stream_ttl_minutes"
        ),
    )
    cache_catalog_ttl_minutes: int = Field(
        default=30,
        validation_alias=_section(
            "cache_catalog_ttl_minutes", "cache", "catalog_ttl_minutes"
        ),
    )
    cache_metadata_ttl_minutes: int = Field(
        default=7 * 24 * 60,
        validation_alias=_section(
            "cache_metadata_ttl_minutes", "cache", "metadata_ttl_minutes"
        ),
        description="TTL for external metadata lookups. Default 7 days.",
    )
    cache_cleanup_interval_seconds: int = Field(
        default=300,
        validation_alias=_section(
            "cache_cleanup_interval_seconds", "cache", "cleanup_interval_seconds"
        ),
        description="Interval of the expired-entry sweep.",
    )

    # Source site (YAML section: site.*)
    site_base_url: str = Field(
        default="https://www.cinecalidad.rs",
        validation_alias=_section("site_base_url", "site", "base_url"),
    )
    site_max_latest_pages: int = Field(
        default=3,
        validation_alias=_section("site_max_latest_pages", "site", "max_latest_pages"),
    )
    site_max_search_pages: int = Field(
        default=6,
        validation_alias=_section("site_max_search_pages", "site", "max_search_pages"),
    )
    site_page_delay_seconds: float = Field(
        default=0.5,
        validation_alias=_section(
            "site_page_delay_seconds", "site", "page_delay_seconds"
        ),
        description="Pause between sequential listing page fetches.",
    )

    cinemeta_url: str = Field(
        default="https://v3-cinemeta.strem.io",
        description="Base URL of the Cinemeta metadata addon.",
    )

    addon: AddonConfig = Field(default_factory=AddonConfig)

    @field_validator("store_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Path:
        return _normalize_path(v)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @field_validator("http_retry_max_attempts", "site_page_delay_seconds")
    @classmethod
    def _validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("value must be >= 0")
        return v

    @field_validator(
        "cache_default_ttl_minutes",
        "cache_meta_ttl_minutes",
        "cache_stream_ttl_minutes",
        "cache_catalog_ttl_minutes",
        "cache_metadata_ttl_minutes",
    )
    @classmethod
    def _validate_ttl(cls, v: int) -> int:
        if v < 0:
            raise ValueError("cache TTLs must be >= 0")
        return v

    @field_validator(
        "site_max_latest_pages",
        "site_max_search_pages",
        "store_movie_retention_days",
        "store_max_concurrent",
        "cache_cleanup_interval_seconds",
    )
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("value must be >= 1")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """Dump configuration in the sectioned shape used by config.yaml."""
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "retry_max_attempts": self.http_retry_max_attempts,
                "retry_backoff_base": self.http_retry_backoff_base,
                "user_agent": self.http_user_agent,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "store": {
                "dir": str(self.store_dir),
                "movie_retention_days": self.store_movie_retention_days,
                "max_concurrent": self.store_max_concurrent,
            },
            "cache": {
                "default_ttl_minutes": self.cache_default_ttl_minutes,
                "meta_ttl_minutes": self.cache_meta_ttl_minutes,
                "stream_ttl_minutes": self.cache_stream_ttl_minutes,
                "catalog_ttl_minutes": self.cache_catalog_ttl_minutes,
                "metadata_ttl_minutes": self.cache_metadata_ttl_minutes,
                "cleanup_interval_seconds": self.cache_cleanup_interval_seconds,
            },
            "site": {
                "base_url": self.site_base_url,
                "max_latest_pages": self.site_max_latest_pages,
                "max_search_pages": self.site_max_search_pages,
                "page_delay_seconds": self.site_page_delay_seconds,
            },
            "cinemeta_url": self.cinemeta_url,
            "addon": self.addon.model_dump(),
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional, flat).

    Examples: CALIDARR_HTTP_TIMEOUT_SECONDS, CALIDARR_STORE_DIR,
    CALIDARR_SITE_BASE_URL, CALIDARR_LOG_LEVEL.
    """

    model_config = SettingsConfigDict(
        env_prefix="CALIDARR_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_retry_max_attempts: Optional[int] = None
    http_retry_backoff_base: Optional[float] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    store_dir: Optional[Path] = None
    store_movie_retention_days: Optional[int] = None
    store_max_concurrent: Optional[int] = None

    cache_default_ttl_minutes: Optional[int] = None
    cache_meta_ttl_minutes: Optional[int] = None
    cache_stream_ttl_minutes: Optional[int] = None
    cache_catalog_ttl_minutes: Optional[int] = None
    cache_metadata_ttl_minutes: Optional[int] = None
    cache_cleanup_interval_seconds: Optional[int] = None

    site_base_url: Optional[str] = None
    site_max_latest_pages: Optional[int] = None
    site_max_search_pages: Optional[int] = None
    site_page_delay_seconds: Optional[float] = None

    cinemeta_url: Optional[str] = None

    @field_validator("store_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """Only values that were actually provided (non-None), for merging."""
        return self.model_dump(exclude_none=True)
