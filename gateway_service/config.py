"""
Gateway Service Configuration Module

Gateway settings (budget, pricing, auth, stores, limits) read from the
environment with pydantic-settings and checked once at startup.
Vendor credentials and model names live in interview_gateway.common.config.
"""

import logging
from functools import lru_cache
from typing import List, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from interview_gateway.common.config import Config
from interview_gateway.common.cost_tracker import CostRates

logger = logging.getLogger(__name__)


class GatewaySettings(BaseSettings):
    """
    Gateway service configuration.

    Field names match environment variable names (case-insensitive);
    the monthly budget also accepts MONTHLY_BUDGET.
    """

    model_config = SettingsConfigDict(
        env_prefix="",  # No prefix, use exact env var names
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # === Server ===
    environment: str = Field(
        default="development",
        description="Environment: development, staging, production"
    )
    port: int = Field(
        default=3001,
        ge=1,
        le=65535,
        description="HTTP port"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )
    log_format: str = Field(
        default="simple",
        description="Log format: simple or json"
    )

    # === CORS ===
    cors_origins: str = Field(
        default="",
        description="Comma-separated list of allowed CORS origins"
    )

    # === Cost governance ===
    monthly_budget_usd: float = Field(
        default=500.0,
        gt=0,
        validation_alias=AliasChoices("MONTHLY_BUDGET", "MONTHLY_BUDGET_USD"),
        description="Monthly vendor spend ceiling in USD"
    )
    cost_per_ai_token: float = Field(
        default=0.000003,
        ge=0,
        description="USD per AI token (blended input/output)"
    )
    cost_per_tts_char: float = Field(
        default=0.000018,
        ge=0,
        description="USD per synthesized character"
    )
    cost_per_stt_minute: float = Field(
        default=0.006,
        ge=0,
        description="USD per transcribed audio minute"
    )

    # === Auth (Supabase) ===
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL used to verify bearer tokens"
    )
    supabase_service_key: Optional[str] = Field(
        default=None,
        description="Supabase service-role key"
    )
    auth_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=60,
        description="Token verification timeout"
    )
    admin_user_ids: str = Field(
        default="",
        description="Comma-separated user ids allowed to read the cost ledger"
    )

    # === Redis (Optional) ===
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis connection URL for shared usage/cost ledgers (optional)"
    )

    # === MongoDB ===
    mongodb_uri: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    mongo_db_name: str = Field(
        default="interview_coach",
        description="MongoDB database name"
    )

    # === Limits ===
    max_audio_bytes: int = Field(
        default=25 * 1024 * 1024,
        ge=1024,
        description="Largest accepted speech-to-text upload"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is a known value."""
        allowed = {"development", "staging", "production"}
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"environment must be one of: {', '.join(sorted(allowed))}")
        return v_lower

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in {"simple", "json"}:
            raise ValueError("log_format must be 'simple' or 'json'")
        return v_lower

    @field_validator("supabase_url")
    @classmethod
    def validate_supabase_url(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid URL format: {v}")
        return v.rstrip("/")

    @field_validator("mongodb_uri")
    @classmethod
    def validate_mongodb_uri(cls, v: str) -> str:
        if not v.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError(f"Invalid MongoDB URI: {v}")
        return v

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        if not v.startswith(("redis://", "rediss://", "unix://")):
            raise ValueError(f"Invalid Redis URL: {v}")
        return v

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into a list."""
        if not self.cors_origins:
            return []
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def admin_user_id_set(self) -> set:
        return {user_id.strip() for user_id in self.admin_user_ids.split(",") if user_id.strip()}

    @property
    def cost_rates(self) -> CostRates:
        return CostRates(
            ai_token=self.cost_per_ai_token,
            tts_char=self.cost_per_tts_char,
            stt_minute=self.cost_per_stt_minute,
        )

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def auth_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_key)

    def validate_production_config(self) -> List[str]:
        """
        Validate configuration is suitable for production.

        Returns list of warning/error messages.
        """
        issues = []

        if not self.auth_configured:
            severity = "CRITICAL" if self.is_production else "WARNING"
            issues.append(
                f"{severity}: SUPABASE_URL / SUPABASE_SERVICE_KEY not set, bearer tokens cannot be verified"
            )

        if self.is_production:
            if not self.cors_origins:
                issues.append("WARNING: CORS_ORIGINS not configured")
            if "localhost" in self.mongodb_uri:
                issues.append("WARNING: Using localhost MongoDB in production")
            if not self.redis_url:
                issues.append("WARNING: REDIS_URL not set, usage and cost ledgers are per process")

        return issues


@lru_cache()
def get_settings() -> GatewaySettings:
    """
    Settings read from the environment on first call, then reused.
    """
    return GatewaySettings()


def validate_config_on_startup(settings: Optional[GatewaySettings] = None) -> GatewaySettings:
    """
    Check settings before the app starts serving.

    CRITICAL issues raise ValueError; WARNING issues and missing vendor
    credentials are logged.
    """
    try:
        settings = settings or get_settings()
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}")

    for issue in settings.validate_production_config():
        if issue.startswith("CRITICAL"):
            raise ValueError(issue)
        logger.warning(issue)

    # No credentials in these lines
    logger.info(f"Configuration loaded: environment={settings.environment}")
    logger.info(f"  monthly_budget=${settings.monthly_budget_usd:.2f}")
    logger.info(f"  ledger_store={'redis' if settings.redis_url else 'memory'}")
    logger.info(f"  mongodb={'local' if 'localhost' in settings.mongodb_uri else 'remote'}")
    logger.info(f"  auth_configured={settings.auth_configured}")

    missing = Config.validate()
    if missing:
        logger.warning(f"Vendor credentials not set: {', '.join(missing)}")
    logger.debug(Config.summary())
    return settings
