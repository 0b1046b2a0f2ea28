# ============================================================================
# src/report_comparison/config/thresholds_config.py
# ============================================================================
"""
Comparison Thresholds
- Report count limits
- Upload size limit
- Trend tolerance
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ThresholdSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    MIN_REPORTS: int = Field(
        default=2,
        ge=2,
        description="Minimum reports in one comparison"
    )
    MAX_REPORTS: int = Field(
        default=10,
        ge=2,
        description="Maximum reports in one comparison"
    )
    MAX_FILE_SIZE_MB: int = Field(
        default=15,
        gt=0,
        description="Maximum size of a single uploaded report"
    )
    TREND_TOLERANCE: float = Field(
        default=0.05,
        gt=0.0, lt=1.0,
        description="Consecutive changes within this fraction of the series mean count as no change"
    )

    @model_validator(mode="after")
    def check_report_bounds(self):
        if self.MIN_REPORTS > self.MAX_REPORTS:
            raise ValueError("MIN_REPORTS must not exceed MAX_REPORTS")
        return self

    @property
    def max_file_size_bytes(self) -> int:
        return self.MAX_FILE_SIZE_MB * 1024 * 1024


threshold_settings = ThresholdSettings()
