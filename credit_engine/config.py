"""Configuration management using Pydantic Settings"""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict

from credit_engine.domain.models import EnginePolicy, TierThresholds


class Settings(BaseSettings):
    """Engine configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Delinquency
    daily_penalty_rate_percent: Decimal = Decimal("1.0")
    tier_mild_max_days: int = 15
    tier_moderate_max_days: int = 30
    tier_severe_max_days: int = 60
    tier_persistent_max_days: int = 89

    # Guarantees
    guarantee_freeze_percent: Decimal = Decimal("10.0")
    max_guarantees_per_guarantor: int = 3
    guarantor_min_stage: int = 3
    release_min_completed_percent: Decimal = Decimal("50")
    execution_grace_days: int = 1  # days after write-off before guarantees execute

    # Credits
    insurance_premium_percent: Decimal = Decimal("1.0")
    comparison_materiality: Decimal = Decimal("10.00")

    # Service
    service_name: str = "credit-engine"
    log_level: str = "INFO"

    def policy(self) -> EnginePolicy:
        """Immutable snapshot handed to engine calls; resolve once per operation"""
        return EnginePolicy(
            daily_penalty_rate_percent=self.daily_penalty_rate_percent,
            guarantee_freeze_percent=self.guarantee_freeze_percent,
            max_guarantees_per_guarantor=self.max_guarantees_per_guarantor,
            guarantor_min_stage=self.guarantor_min_stage,
            release_min_completed_percent=self.release_min_completed_percent,
            insurance_premium_percent=self.insurance_premium_percent,
            comparison_materiality=self.comparison_materiality,
            execution_grace_days=self.execution_grace_days,
            tiers=TierThresholds(
                mild_max=self.tier_mild_max_days,
                moderate_max=self.tier_moderate_max_days,
                severe_max=self.tier_severe_max_days,
                persistent_max=self.tier_persistent_max_days,
            ),
        )


settings = Settings()
