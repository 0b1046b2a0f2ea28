"""
Per-report analyzers (the opaque extraction step).
"""

from .base import ReportAnalyzer
from .ollama_analyzer import OllamaReportAnalyzer
from .prompts import build_extraction_prompt

__all__ = [
    'ReportAnalyzer',
    'OllamaReportAnalyzer',
    'build_extraction_prompt',
]
