# ============================================================================
# src/report_comparison/config/analyzer_config.py
# ============================================================================
"""
Per-Report Analyzer Settings (Ollama)
- Server and model
- Generation limits
- Timeout
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AnalyzerSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    OLLAMA_HOST: str = Field(
        default="http://localhost:11434",
        description="Ollama server URL"
    )
    OLLAMA_MODEL: str = Field(
        default="MedAIBase/MedGemma1.5:4b-it-q8_0",
        description="Model used to extract lab values; must accept images for JPEG/PNG reports"
    )
    ANALYZER_MAX_TOKENS: int = Field(
        default=2000,
        gt=0,
        description="Maximum tokens generated per report"
    )
    ANALYZER_TEMPERATURE: float = Field(
        default=0.1,
        ge=0.0,
        description="Sampling temperature (0.1 = very deterministic)"
    )
    ANALYZER_TIMEOUT: int = Field(
        default=300,
        gt=0,
        description="Maximum time for one report extraction (seconds)"
    )
    ANALYZER_MAX_TEXT_LENGTH: int = Field(
        default=8000,
        gt=0,
        description="PDF text beyond this many characters is truncated before prompting"
    )


analyzer_settings = AnalyzerSettings()
