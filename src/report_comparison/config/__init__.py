# ============================================================================
# src/report_comparison/config/__init__.py
# ============================================================================
"""
Convenient imports for all settings
"""

from .api_config import api_settings
from .polling_config import polling_settings
from .thresholds_config import threshold_settings
from .analyzer_config import analyzer_settings
from .logging_config import logging_settings
