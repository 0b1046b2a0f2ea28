# ============================================================================
# src/report_comparison/analyzer/base.py
# ============================================================================
"""
Per-Report Analyzer Interface

The comparison pipeline consumes extraction as an opaque, injectable
collaborator:

    extract(file) -> StructuredReport{test_name, test_results[...]}

Implementations:
- OllamaReportAnalyzer: prompts a local Ollama model
- test doubles: any subclass returning canned reports
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from json_repair import repair_json

from ..core.files import ReportFile
from ..core.models import StructuredReport


class ReportAnalyzer(ABC):
    """
    Abstract base class for per-report extraction backends.

    All backends must implement:
    - extract(): turn one document into a StructuredReport
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.logger = logging.getLogger(self.__class__.__name__)
        self._extraction_count = 0

    @abstractmethod
    async def extract(
        self,
        file: ReportFile,
        instructions: Optional[str] = None
    ) -> StructuredReport:
        """
        Extract structured lab results from one report.

        Args:
            file: The uploaded document
            instructions: Optional free-text guidance from the requester

        Returns:
            StructuredReport

        Raises:
            AnalyzerError: extraction failed for this file
        """
        pass

    async def close(self) -> None:
        """Release any held resources (HTTP sessions, models)."""
        return None

    def extract_json(self, response_text: str) -> Optional[Dict]:
        """
        Extract JSON object from generated text.

        Models often wrap JSON in prose or emit it slightly malformed
        (single quotes, trailing commas). json_repair is the fallback.
        """
        if not response_text or not response_text.strip():
            self.logger.warning("Empty response text, no JSON to extract")
            return None

        try:
            parsed = json.loads(response_text.strip())
            if isinstance(parsed, dict):
                return parsed
        except json.JSONDecodeError:
            pass

        start_idx = response_text.find('{')
        end_idx = response_text.rfind('}')
        candidate = response_text[start_idx:end_idx + 1] if 0 <= start_idx < end_idx else response_text

        repaired = repair_json(candidate, return_objects=True)
        if isinstance(repaired, dict):
            self.logger.debug("json_repair fixed model response")
            return repaired

        self.logger.warning(f"Could not parse JSON from response: {response_text[:200]}...")
        return None
