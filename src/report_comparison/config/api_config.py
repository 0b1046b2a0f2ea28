# ============================================================================
# src/report_comparison/config/api_config.py
# ============================================================================
"""
Comparison API Settings
- Base URL of the comparison service
- Request timeouts
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApiSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    API_BASE_URL: str = Field(
        default="http://localhost:8000/api",
        description="Base URL of the comparison REST service"
    )
    API_TOKEN: str = Field(
        default="",
        description="Bearer token sent with every request (empty = no auth header)"
    )
    REQUEST_TIMEOUT: int = Field(
        default=30,
        gt=0,
        description="Timeout for status, list, stats and delete calls (seconds)"
    )
    SUBMIT_TIMEOUT: int = Field(
        default=15 * 60,
        gt=0,
        description="Timeout for the multipart submission, which uploads up to 10 files (seconds)"
    )


api_settings = ApiSettings()
