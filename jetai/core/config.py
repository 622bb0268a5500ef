"""Application configuration using Pydantic Settings.

Loads configuration from environment variables and .env file.
Credential groups, provider order, enrichment endpoints and alert
thresholds are all read here once at startup.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ============ Application Settings ============
    APP_NAME: str = "JetAI"
    APP_VERSION: str = "0.1.0"
    AGENT_NAME: str = Field(
        default="JetAI",
        description="Name the assistant uses for itself in prompts and reports",
    )
    DEBUG: bool = False
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # ============ Server Settings ============
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    WORKERS: int = 1

    # ============ CORS Settings ============
    CORS_ORIGINS: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins",
    )

    # ============ Credential Groups ============
    # Five interchangeable Google credential groups. GROUP5 reuses the
    # project-wide GOOGLE_API_KEY.
    GOOGLE_GROUP1_API_KEY: str = Field(default="", description="Credential group 1 API key")
    GOOGLE_GROUP2_API_KEY: str = Field(default="", description="Credential group 2 API key")
    GOOGLE_GROUP3_API_KEY: str = Field(default="", description="Credential group 3 API key")
    GOOGLE_GROUP4_API_KEY: str = Field(default="", description="Credential group 4 API key")
    GOOGLE_API_KEY: str = Field(default="", description="Credential group 5 API key")

    @property
    def credential_group_secrets(self) -> dict[int, str]:
        """Map group id to its configured secret (may be empty)."""
        return {
            1: self.GOOGLE_GROUP1_API_KEY,
            2: self.GOOGLE_GROUP2_API_KEY,
            3: self.GOOGLE_GROUP3_API_KEY,
            4: self.GOOGLE_GROUP4_API_KEY,
            5: self.GOOGLE_API_KEY,
        }

    # ============ Model Provider Settings ============
    MODEL_PROVIDER_ORDER: list[str] = Field(
        default=["gemini", "anthropic", "openai"],
        description="Order in which conversational model providers are tried",
    )
    MODEL_TEMPERATURE: float = Field(default=0.7, description="Sampling temperature")
    MODEL_MAX_OUTPUT_TOKENS: int = Field(default=1024, description="Max tokens per reply")
    GEMINI_MODEL: str = Field(default="gemini-1.5-flash", description="Gemini model name")
    ANTHROPIC_API_KEY: str = Field(default="", description="Anthropic API Key")
    ANTHROPIC_MODEL: str = Field(
        default="claude-3-7-sonnet-20250219",
        description="Anthropic model name",
    )
    OPENAI_API_KEY: str = Field(default="", description="OpenAI API Key")
    OPENAI_MODEL: str = Field(default="gpt-4o-mini", description="OpenAI model to use")
    LAST_PROVIDER_MAX_ATTEMPTS: int = Field(
        default=3,
        description="Attempts granted to the last provider in the chain",
    )
    LAST_PROVIDER_BACKOFF_SECONDS: float = Field(
        default=1.0,
        description="Linear backoff step between last-provider attempts",
    )

    # ============ Enrichment Settings ============
    GOOGLE_WEATHER_BASE_URL: str = "https://weather.googleapis.com/v1"
    GOOGLE_GEOCODING_BASE_URL: str = "https://maps.googleapis.com/maps/api"
    GOOGLE_ROUTES_BASE_URL: str = "https://routes.googleapis.com"
    OPEN_METEO_BASE_URL: str = "https://api.open-meteo.com/v1"
    NOMINATIM_BASE_URL: str = "https://nominatim.openstreetmap.org"
    OSRM_BASE_URL: str = "https://router.project-osrm.org"
    NOMINATIM_USER_AGENT: str = Field(
        default="JetAI/1.0",
        description="User-Agent required by the Nominatim usage policy",
    )
    ENRICHMENT_TIMEOUT: float = Field(default=10.0, description="Per-request timeout in seconds")
    ENRICHMENT_MAX_RETRIES: int = Field(
        default=1,
        description="Transport attempts per provider before falling back",
    )
    ENRICHMENT_LANGUAGE: str = "en"

    # ============ Alert Thresholds ============
    ALERT_ERROR_THRESHOLD: int = Field(
        default=5,
        description="Error count at which a category raises an alert",
    )
    ALERT_FALLBACK_RATIO: float = Field(
        default=0.9,
        description="Fallback share above which a category raises an alert",
    )
    ALERT_MIN_SAMPLE: int = Field(
        default=10,
        description="Minimum primary+fallback calls before the ratio alert applies",
    )

    # ============ Operator Settings ============
    ADMIN_API_TOKEN: str = Field(
        default="",
        description="Token expected in X-Admin-Token for diagnostics; empty disables them",
    )

    # ============ Logging Settings ============
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "json"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
