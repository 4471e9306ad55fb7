"""
Name: Application Configuration (Settings)

Responsibilities:
  - Centralized, typed configuration using pydantic-settings
  - Validate environment variables at startup
  - Provide defaults that match the business rules (TTLs, thresholds, queue policy)

Collaborators:
  - api/main.py: reads settings for CORS and startup validation
  - container.py: decides in-memory vs Postgres/Redis adapters
  - worker/worker.py: reads queue concurrency and rate limit

Constraints:
  - Lives in API/infrastructure layer, NOT in domain/application
  - No business logic — pure configuration

Notes:
  - Uses pydantic-settings for env parsing and validation
  - Singleton via lru_cache for performance
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SIGNING_SECRET = "corbez-signing-secret-change-in-production"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        database_url: PostgreSQL connection string (empty => in-memory repos)
        redis_url: Redis connection string for queues/cache (optional)
        signing_secret: HMAC secret used to sign coupon and pass tokens
        previous_signing_secrets: Comma-separated secrets still accepted on verify
        public_base_url: Base URL embedded in verification links
        coupon_cache_ttl_seconds: TTL of cached coupon payloads (default: 7 days)
        pass_cache_ttl_seconds: TTL of cached employee passes (default: 30 days)
        discount_cache_ttl_seconds: TTL of merchant discount lists (default: 300s)
        referral_points: Points credited to the referrer on first redemption
        warning_threshold: Warnings that trigger an automatic suspension
        auto_suspend_days: Length of the automatic suspension
        suspend_appeal_days / ban_appeal_days: Appeal windows
        job_attempts / job_backoff_ms: Retry policy for background jobs
        worker_concurrency: Worker processes draining the queue
        rate_limit_max / rate_limit_window_ms: Job rate limit window
    """

    # Environment
    app_env: str = "development"
    log_level: str = "INFO"
    log_json: bool = True

    # CORS configuration
    allowed_origins: str = "http://localhost:3000"

    # Database - Connection Pool
    database_url: str = ""
    db_pool_min_size: int = 2
    db_pool_max_size: int = 10
    db_statement_timeout_ms: int = 30000  # 30 seconds

    # Redis
    redis_url: str = ""

    # Token signing
    signing_secret: str = DEFAULT_SIGNING_SECRET
    previous_signing_secrets: str = ""
    public_base_url: str = "https://corbez.com"

    # Cache TTLs
    coupon_cache_ttl_seconds: int = 86400 * 7
    pass_cache_ttl_seconds: int = 86400 * 30
    discount_cache_ttl_seconds: int = 300
    cache_max_entries: int = 10_000

    # Business rules
    referral_points: int = 100
    warning_threshold: int = 3
    auto_suspend_days: int = 7
    suspend_appeal_days: int = 14
    ban_appeal_days: int = 30

    # Retry/Resilience (optimistic concurrency conflicts)
    retry_max_attempts: int = 3
    retry_base_delay_seconds: float = 0.05
    retry_max_delay_seconds: float = 1.0

    # Background jobs
    jobs_queue_name: str = "corbez-jobs"
    job_attempts: int = 3
    job_backoff_ms: int = 1000
    job_timeout_seconds: int = 300
    failed_job_ttl_seconds: int = 86400 * 7
    worker_concurrency: int = 5
    rate_limit_max: int = 100
    rate_limit_window_ms: int = 1000

    # Observability
    metrics_enabled: bool = True

    @field_validator("signing_secret")
    @classmethod
    def signing_secret_not_empty(cls, v: str) -> str:
        if not (v or "").strip():
            raise ValueError("signing_secret must not be empty")
        return v.strip()

    @field_validator("warning_threshold", "auto_suspend_days", "worker_concurrency")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("value must be greater than 0")
        return v

    @field_validator("job_attempts")
    @classmethod
    def job_attempts_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("job_attempts must be >= 0")
        return v

    @field_validator("rate_limit_max", "rate_limit_window_ms")
    @classmethod
    def rate_limit_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("rate limit values must be greater than 0")
        return v

    def get_allowed_origins_list(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [
            origin.strip()
            for origin in self.allowed_origins.split(",")
            if origin.strip()
        ]

    def get_verification_secrets(self) -> list[str]:
        """Current secret first, then the previous ones still accepted."""
        previous = [
            secret.strip()
            for secret in self.previous_signing_secrets.split(",")
            if secret.strip()
        ]
        return [self.signing_secret, *previous]

    @model_validator(mode="after")
    def validate_security_requirements(self):
        if not self.is_production():
            return self

        if self.signing_secret == DEFAULT_SIGNING_SECRET:
            raise ValueError(
                "SIGNING_SECRET must be set to a non-default value in production"
            )
        if len(self.signing_secret) < 32:
            raise ValueError(
                "SIGNING_SECRET must be at least 32 characters in production"
            )
        return self

    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    def is_test(self) -> bool:
        return self.app_env.strip().lower() in {"test", "testing", "ci"}

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore unknown env vars
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get singleton Settings instance.

    Tests that tweak the environment must call get_settings.cache_clear().
    """
    return Settings()
