"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from decimal import Decimal

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from referrals.models.enums import RewardType


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Redis (Dramatiq broker and job keys).
    # Leaving REDIS_HOST unset disables the queue: rewards are emitted inline.
    redis_host: str | None = None
    redis_port: int = Field(default=6379, ge=1, le=65535)
    redis_password: str | None = None
    redis_db: int = Field(default=0, ge=0)

    # Application
    environment: str = "production"
    log_level: str = "INFO"
    log_file: str | None = "logs/referrals.log"

    # Referral codes
    referral_code_prefix: str = "JUSTO"
    referral_code_length: int = Field(
        default=8, ge=4, le=32, description="Random part length of a referral code"
    )

    # Reward terms (referrer side)
    reward_referrer_type: RewardType = RewardType.CREDITS
    reward_referrer_amount: Decimal | None = Field(
        default=Decimal("500"), ge=0
    )
    reward_referrer_description: str = "Créditos Justo por referir"

    # Reward terms (referred side)
    reward_referred_type: RewardType = RewardType.FEE_WAIVER
    reward_referred_amount: Decimal | None = Field(default=None, ge=0)
    reward_referred_description: str = "30 días sin comisión"

    reward_expires_days: int = Field(
        default=90, gt=0, description="Days an issued reward stays redeemable"
    )

    # Reward emission queue
    reward_job_max_attempts: int = Field(
        default=3, ge=1, le=10, description="Total attempts per emission job"
    )
    reward_job_min_backoff_ms: int = Field(default=1_000, gt=0)
    reward_job_max_backoff_ms: int = Field(default=60_000, gt=0)
    reward_job_key_ttl_seconds: int = Field(
        default=86_400, gt=0, description="Lifetime of a claimed emission job key"
    )
    reward_dead_message_ttl_ms: int = Field(
        default=7 * 24 * 60 * 60 * 1000,
        gt=0,
        description="How long exhausted emission jobs are kept for inspection",
    )
    reward_worker_threads: int = Field(default=5, ge=1, le=64)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(
            ("postgresql://", "postgresql+asyncpg://", "sqlite+aiosqlite://")
        ):
            raise ValueError(
                "DATABASE_URL must start with postgresql+asyncpg:// "
                "(or sqlite+aiosqlite:// for local runs)"
            )
        return v

    @field_validator("referral_code_prefix")
    @classmethod
    def validate_code_prefix(cls, v: str) -> str:
        """Prefix is stored upper-case and must be alphanumeric."""
        v = v.strip().upper()
        if not v.isalnum():
            raise ValueError("REFERRAL_CODE_PREFIX must be alphanumeric")
        return v

    @field_validator("reward_referrer_type", "reward_referred_type", mode="before")
    @classmethod
    def normalize_reward_type(cls, v: object) -> object:
        """Accept FEE_WAIVER / fee-waiver / fee_waiver spellings."""
        if isinstance(v, str):
            return v.strip().lower().replace("-", "_")
        return v

    @model_validator(mode="after")
    def validate_backoff(self) -> "Settings":
        """Backoff window must be well-formed."""
        if self.reward_job_min_backoff_ms > self.reward_job_max_backoff_ms:
            raise ValueError(
                "REWARD_JOB_MIN_BACKOFF_MS cannot exceed REWARD_JOB_MAX_BACKOFF_MS"
            )
        return self

    @model_validator(mode="after")
    def validate_production(self) -> "Settings":
        """Warn about production setups without a reward queue."""
        if self.environment == "production" and not self.queue_configured:
            logger.warning(
                "REDIS_HOST is not set in production. Rewards will be emitted "
                "synchronously in the request path for the whole process lifetime."
            )
        return self

    @property
    def queue_configured(self) -> bool:
        """Whether a job queue is available for reward emission."""
        return bool(self.redis_host)


# Global settings instance
settings = Settings()
