"""Application configuration with comprehensive validation."""
from typing import Literal, Dict
from functools import lru_cache
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with scoring defaults."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "BD Scoring Platform"
    APP_VERSION: str = "1.0.0"
    APP_ENV: Literal["development", "staging", "production"] = "development"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"

    # API
    API_V1_PREFIX: str = "/api/v1"

    # Default pillar weights
    W_ASSET_QUALITY: float = Field(default=0.25, ge=0.0, le=1.0)
    W_MARKET_OUTLOOK: float = Field(default=0.20, ge=0.0, le=1.0)
    W_CAPITAL_INTENSITY: float = Field(default=0.15, ge=0.0, le=1.0)
    W_STRATEGIC_FIT: float = Field(default=0.20, ge=0.0, le=1.0)
    W_FINANCIAL_READINESS: float = Field(default=0.10, ge=0.0, le=1.0)
    W_REGULATORY_RISK: float = Field(default=0.10, ge=0.0, le=1.0)

    # Methodology reliability per pillar
    R_ASSET_QUALITY: float = Field(default=0.85, ge=0.0, le=1.0)
    R_MARKET_OUTLOOK: float = Field(default=0.80, ge=0.0, le=1.0)
    R_CAPITAL_INTENSITY: float = Field(default=0.80, ge=0.0, le=1.0)
    R_STRATEGIC_FIT: float = Field(default=0.75, ge=0.0, le=1.0)
    R_FINANCIAL_READINESS: float = Field(default=0.90, ge=0.0, le=1.0)
    R_REGULATORY_RISK: float = Field(default=0.85, ge=0.0, le=1.0)

    # Engine thresholds
    DOMINANCE_THRESHOLD: float = Field(default=0.5, gt=0.0, le=1.0)
    CONFIDENCE_THRESHOLD: float = Field(default=0.6, ge=0.0, le=1.0)
    COMPLETENESS_THRESHOLD: float = Field(default=0.7, ge=0.0, le=1.0)
    MODEL_ACCURACY: float = Field(default=0.85, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def validate_pillar_weights(self):
        """Validate default pillar weights sum to 1.0."""
        total = sum(self.pillar_weights.values())
        if abs(total - 1.0) > 0.001:
            raise ValueError(f"Pillar weights must sum to 1.0, got {total}")
        return self

    @property
    def pillar_weights(self) -> Dict[str, float]:
        """Default weights keyed by pillar id."""
        return {
            "asset_quality": self.W_ASSET_QUALITY,
            "market_outlook": self.W_MARKET_OUTLOOK,
            "capital_intensity": self.W_CAPITAL_INTENSITY,
            "strategic_fit": self.W_STRATEGIC_FIT,
            "financial_readiness": self.W_FINANCIAL_READINESS,
            "regulatory_risk": self.W_REGULATORY_RISK,
        }

    @property
    def pillar_reliabilities(self) -> Dict[str, float]:
        """Methodology reliability keyed by pillar id."""
        return {
            "asset_quality": self.R_ASSET_QUALITY,
            "market_outlook": self.R_MARKET_OUTLOOK,
            "capital_intensity": self.R_CAPITAL_INTENSITY,
            "strategic_fit": self.R_STRATEGIC_FIT,
            "financial_readiness": self.R_FINANCIAL_READINESS,
            "regulatory_risk": self.R_REGULATORY_RISK,
        }


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
