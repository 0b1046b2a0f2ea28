# ============================================================================
# src/report_comparison/analyzer/ollama_analyzer.py
# ============================================================================
"""
Ollama Report Analyzer

Extracts lab results from one report with a local Ollama model:
- PDFs: text is pulled with pdfplumber and sent in the prompt
- JPEG/PNG: the image is sent base64-encoded in the `images` field, so the
  configured model must be vision-capable

Setup:
    1. Install Ollama: https://ollama.ai
    2. Pull model: ollama pull MedAIBase/MedGemma1.5:4b-it-q8_0
    3. Start server: ollama serve
"""

import asyncio
import base64
import logging
from io import BytesIO
from typing import Any, Dict, Optional

import aiohttp
import pdfplumber
from pydantic import ValidationError

from ..config import analyzer_settings
from ..core.files import ReportFile
from ..core.models import StructuredReport
from ..temporal.parsing import parse_report_date
from ..utils.exceptions import AnalyzerError, ConfigurationError
from ..utils.logging import log_performance
from .base import ReportAnalyzer
from .prompts import build_extraction_prompt

logger = logging.getLogger(__name__)


class OllamaReportAnalyzer(ReportAnalyzer):
    """
    Ollama-based per-report extraction.

    Config options (fall back to analyzer settings):
        ollama_host: Ollama server URL
        ollama_model: Model name
        max_tokens: Max tokens to generate
        temperature: Sampling temperature
        timeout: Per-report timeout in seconds
        max_text_length: PDF text truncation limit
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)

        self.host = self.config.get('ollama_host', analyzer_settings.OLLAMA_HOST).rstrip('/')
        self.model_name = self.config.get('ollama_model', analyzer_settings.OLLAMA_MODEL)
        self.max_tokens = self.config.get('max_tokens', analyzer_settings.ANALYZER_MAX_TOKENS)
        self.temperature = self.config.get('temperature', analyzer_settings.ANALYZER_TEMPERATURE)
        self.timeout = self.config.get('timeout', analyzer_settings.ANALYZER_TIMEOUT)
        self.max_text_length = self.config.get('max_text_length', analyzer_settings.ANALYZER_MAX_TEXT_LENGTH)
        self._validate_config()

        # HTTP session (created lazily, tied to event loop)
        self._session: Optional[aiohttp.ClientSession] = None
        self._session_loop: Optional[asyncio.AbstractEventLoop] = None

        self.logger.info(f"Initialized Ollama analyzer: {self.host} / {self.model_name}")

    def _validate_config(self) -> None:
        """Reject config overrides the settings validators never saw."""
        if not self.host.startswith(("http://", "https://")):
            raise ConfigurationError(f"ollama_host must be an http(s) URL, got {self.host!r}")
        for name in ("max_tokens", "timeout", "max_text_length"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or value <= 0:
                raise ConfigurationError(f"{name} must be a positive number, got {value!r}")

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session for current event loop."""
        current_loop = asyncio.get_running_loop()

        needs_new_session = (
            self._session is None
            or self._session.closed
            or self._session_loop is not current_loop
        )

        if needs_new_session:
            if self._session is not None and not self._session.closed:
                await self._session.close()

            timeout = aiohttp.ClientTimeout(total=None, sock_connect=30, sock_read=self.timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._session_loop = current_loop

        return self._session

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
        self._session_loop = None

    @log_performance(logger, "Report extraction")
    async def extract(
        self,
        file: ReportFile,
        instructions: Optional[str] = None
    ) -> StructuredReport:
        payload: Dict[str, Any] = {
            "model": self.model_name,
            "stream": False,
            "format": "json",
            "options": {
                "num_predict": self.max_tokens,
                "temperature": self.temperature,
            },
        }

        if file.is_pdf:
            text = await asyncio.to_thread(self._pdf_text, file)
            if not text.strip():
                raise AnalyzerError(f"No extractable text in {file.file_name}", file_name=file.file_name)
            payload["prompt"] = build_extraction_prompt(text, instructions)
        elif file.is_image:
            payload["prompt"] = build_extraction_prompt("", instructions)
            payload["images"] = [base64.b64encode(file.content).decode("ascii")]
        else:
            raise AnalyzerError(
                f"Unsupported file type {file.content_type} for {file.file_name}",
                file_name=file.file_name,
            )

        response_text = await self._generate(payload, file.file_name)

        data = self.extract_json(response_text)
        if data is None:
            raise AnalyzerError(f"Model returned no usable JSON for {file.file_name}", file_name=file.file_name)

        try:
            report = StructuredReport.model_validate(self._clean_payload(data))
        except ValidationError as e:
            raise AnalyzerError(
                f"Model output for {file.file_name} did not match the report structure: {e}",
                file_name=file.file_name,
            ) from e

        self._extraction_count += 1
        self.logger.info(f"Extracted {len(report.test_results)} results from {file.file_name}")
        return report

    async def _generate(self, payload: Dict[str, Any], file_name: str) -> str:
        session = await self._get_session()

        async def _do_request():
            async with session.post(f"{self.host}/api/generate", json=payload) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise AnalyzerError(
                        f"Ollama error ({response.status}) for {file_name}: {error_text}",
                        file_name=file_name,
                    )
                return await response.json()

        try:
            data = await asyncio.wait_for(_do_request(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            self.logger.error(f"Ollama request timed out after {self.timeout}s for {file_name}")
            raise AnalyzerError(
                f"Extraction timed out after {self.timeout}s for {file_name}", file_name=file_name
            ) from e
        except aiohttp.ClientConnectorError as e:
            raise AnalyzerError(
                f"Cannot connect to Ollama at {self.host}. Make sure Ollama is running: ollama serve",
                file_name=file_name,
            ) from e

        return data.get("response", "")

    def _pdf_text(self, file: ReportFile) -> str:
        pages = []
        with pdfplumber.open(BytesIO(file.content)) as pdf:
            for page in pdf.pages:
                pages.append(page.extract_text() or "")
        text = "\n".join(pages)

        if len(text) > self.max_text_length:
            self.logger.warning(
                f"{file.file_name}: truncating {len(text)} characters to {self.max_text_length}"
            )
            text = text[:self.max_text_length]
        return text

    def _clean_payload(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Drop entries the model could not fill (null dates, nameless rows).

        Report dates are copied as printed on the document; anything that
        does not parse becomes None so the comparison falls back to the
        upload time instead of failing.
        """
        cleaned = dict(data)

        report_date = cleaned.get("report_date")
        if not report_date or str(report_date).strip().lower() in ("null", "none", "unknown", "n/a"):
            cleaned["report_date"] = None
        else:
            parsed = parse_report_date(report_date)
            if parsed is None:
                self.logger.warning(f"Unrecognized report date {report_date!r}, using upload time")
            cleaned["report_date"] = parsed

        results = cleaned.get("test_results") or cleaned.get("results") or []
        cleaned["test_results"] = [
            r for r in results
            if isinstance(r, dict) and str(r.get("parameter") or "").strip()
        ]
        cleaned.pop("results", None)
        return cleaned
