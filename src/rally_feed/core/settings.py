"""Application settings and configuration.

This module defines all configuration options for the Rally feed service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    This class defines all configuration options for the Rally feed service.
    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Rally Feed", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./rally.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # JWT authentication settings
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 30,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Content mixing
    feed_min_target_total: int = Field(default=8, alias="FEED_MIN_TARGET_TOTAL")
    feed_max_target_total: int = Field(default=25, alias="FEED_MAX_TARGET_TOTAL")
    feed_max_own_posts: int = Field(default=3, alias="FEED_MAX_OWN_POSTS")
    feed_ambassador_cap_ratio: float = Field(default=0.3, alias="FEED_AMBASSADOR_CAP_RATIO")
    # Per-author fairness cap applied after slot allocation.
    feed_max_posts_per_author: int = Field(default=3, alias="FEED_MAX_POSTS_PER_AUTHOR")

    # Minimum content thresholds
    feed_new_user_following_threshold: int = Field(
        default=2, alias="FEED_NEW_USER_FOLLOWING_THRESHOLD"
    )
    feed_new_user_min_posts: int = Field(default=8, alias="FEED_NEW_USER_MIN_POSTS")
    feed_established_min_posts: int = Field(default=5, alias="FEED_ESTABLISHED_MIN_POSTS")
    feed_privacy_min_new_user: int = Field(default=3, alias="FEED_PRIVACY_MIN_NEW_USER")
    feed_privacy_min_established: int = Field(
        default=2, alias="FEED_PRIVACY_MIN_ESTABLISHED"
    )

    # Query cascade
    feed_followed_page_size: int = Field(default=12, alias="FEED_FOLLOWED_PAGE_SIZE")
    feed_public_page_size: int = Field(default=10, alias="FEED_PUBLIC_PAGE_SIZE")
    feed_ambassador_post_limit: int = Field(default=15, alias="FEED_AMBASSADOR_POST_LIMIT")
    feed_ambassador_profile_limit: int = Field(
        default=20, alias="FEED_AMBASSADOR_PROFILE_LIMIT"
    )
    feed_cascade_min_posts: int = Field(default=8, alias="FEED_CASCADE_MIN_POSTS")

    # Pagination
    feed_has_more_threshold: int = Field(default=15, alias="FEED_HAS_MORE_THRESHOLD")
    feed_max_page: int = Field(default=8, alias="FEED_MAX_PAGE")

    # Optimistic overlay lifetime
    optimistic_post_ttl_seconds: float = Field(
        default=30.0, alias="OPTIMISTIC_POST_TTL_SECONDS"
    )

    # Per-viewer feed sessions kept in memory
    feed_max_sessions: int = Field(default=1000, alias="FEED_MAX_SESSIONS")
    feed_session_idle_seconds: float = Field(default=1800.0, alias="FEED_SESSION_IDLE_SECONDS")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()  # type: ignore[call-arg]
