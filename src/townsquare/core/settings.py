"""Application settings and configuration.

This module defines all configuration options for the Townsquare application.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Townsquare", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    public_base_url: str = Field(default="http://localhost:3000", alias="PUBLIC_BASE_URL")

    # Security and authentication
    secret_key: str = Field(default="change-me", alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")
    dev_login_enabled: bool = Field(default=False, alias="DEV_LOGIN_ENABLED")

    # JWT authentication settings
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 30,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Database configuration
    database_url: str = Field(default="sqlite:///./townsquare.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Rate limiting; an empty Redis URL keeps counters in-process
    redis_url: str = Field(default="", alias="REDIS_URL")
    rate_limit_enabled: bool = Field(default=True, alias="RATE_LIMIT_ENABLED")

    # Forum ranking and pagination
    hot_decay_seconds: float = Field(default=7200.0, alias="HOT_DECAY_SECONDS")
    feed_default_limit: int = Field(default=20, alias="FEED_DEFAULT_LIMIT")
    feed_max_limit: int = Field(default=50, alias="FEED_MAX_LIMIT")
    comments_default_limit: int = Field(default=50, alias="COMMENTS_DEFAULT_LIMIT")
    replies_default_limit: int = Field(default=20, alias="REPLIES_DEFAULT_LIMIT")
    max_comment_depth: int = Field(default=5, alias="MAX_COMMENT_DEPTH")

    # Documents
    document_lease_seconds: int = Field(default=300, alias="DOCUMENT_LEASE_SECONDS")

    # Invitations
    invite_expiry_days: int = Field(default=7, alias="INVITE_EXPIRY_DAYS")

    # Outbound transactional email
    email_api_url: str = Field(default="https://api.resend.com/emails", alias="EMAIL_API_URL")
    email_api_key: str | None = Field(default=None, alias="EMAIL_API_KEY")
    email_from: str = Field(default="Townsquare <noreply@townsquare.local>", alias="EMAIL_FROM")
    email_http_timeout_seconds: float = Field(default=10.0, alias="EMAIL_HTTP_TIMEOUT_SECONDS")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
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


settings = Settings()
