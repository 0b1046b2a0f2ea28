# ============================================================================
# src/report_comparison/config/polling_config.py
# ============================================================================
"""
Job Polling Settings
- Cadence
- Attempt budget
- Cosmetic progress estimates
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PollingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    POLL_INTERVAL_SECONDS: float = Field(
        default=20.0,
        ge=0.0,
        description="Delay between status checks. The first check is immediate."
    )
    MAX_POLL_ATTEMPTS: int = Field(
        default=30,
        gt=0,
        description="Non-terminal responses tolerated before the client stops waiting (~10 minutes)"
    )
    PENDING_PROGRESS: int = Field(
        default=20,
        ge=0, le=100,
        description="Progress shown while the job is pending"
    )
    PROCESSING_PROGRESS: int = Field(
        default=60,
        ge=0, le=100,
        description="Progress shown while the job is processing"
    )


polling_settings = PollingSettings()
