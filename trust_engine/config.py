"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service_name: str = "trust-engine"
    log_level: str = "INFO"

    # Trust network
    trust_hub_count: int = 5  # Hubs reported in the network metrics rollup

    # Repayment plans
    default_plan_frequency: str = "monthly"  # weekly | biweekly | monthly


settings = Settings()
