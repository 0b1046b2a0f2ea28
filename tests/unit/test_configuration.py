# ============================================================================
# FILE: tests/unit/test_configuration.py
# ============================================================================
"""
Unit tests for settings, logging helpers and the exception hierarchy
"""

import asyncio
import json
import logging

import pytest
from pydantic import ValidationError

from report_comparison.config import api_settings, polling_settings, threshold_settings
from report_comparison.config.polling_config import PollingSettings
from report_comparison.config.thresholds_config import ThresholdSettings
from report_comparison.utils.exceptions import (
    ApiError,
    ComparisonNotFoundError,
    FileTooLargeError,
    ReportComparisonError,
    ReportCountError,
    SubmissionValidationError,
)
from report_comparison.utils.logging import JsonFormatter, LogContext, log_performance


def test_configuration_defaults():
    """Test that configuration loads with the documented defaults"""
    assert threshold_settings.MIN_REPORTS == 2
    assert threshold_settings.MAX_REPORTS == 10
    assert threshold_settings.MAX_FILE_SIZE_MB == 15
    assert threshold_settings.max_file_size_bytes == 15 * 1024 * 1024
    assert polling_settings.MAX_POLL_ATTEMPTS == 30
    assert polling_settings.POLL_INTERVAL_SECONDS == 20.0
    assert api_settings.SUBMIT_TIMEOUT == 900


def test_environment_override(monkeypatch):
    monkeypatch.setenv("POLL_INTERVAL_SECONDS", "5")
    monkeypatch.setenv("MAX_POLL_ATTEMPTS", "12")

    settings = PollingSettings()
    assert settings.POLL_INTERVAL_SECONDS == 5.0
    assert settings.MAX_POLL_ATTEMPTS == 12


def test_threshold_validators():
    with pytest.raises(ValidationError):
        ThresholdSettings(MIN_REPORTS=6, MAX_REPORTS=4)
    with pytest.raises(ValidationError):
        ThresholdSettings(TREND_TOLERANCE=1.5)


def test_exception_hierarchy():
    assert issubclass(ReportCountError, SubmissionValidationError)
    assert issubclass(SubmissionValidationError, ReportComparisonError)
    assert issubclass(ComparisonNotFoundError, ApiError)

    assert "at least 2" in str(ReportCountError(1, 2, 10))
    assert "Maximum 10" in str(ReportCountError(11, 2, 10))
    assert ComparisonNotFoundError("cmp-1").status == 404
    assert "big.pdf" in str(FileTooLargeError(["big.pdf"], 15))


def test_log_context_stamps_comparison_id(caplog):
    logger = logging.getLogger("report_comparison.test")

    with caplog.at_level(logging.INFO, logger="report_comparison.test"):
        with LogContext(logger, comparison_id="cmp-1"):
            logger.info("aligning")
        logger.info("outside")

    inside, outside = caplog.records[-2:]
    assert inside.comparison_id == "cmp-1"
    assert not hasattr(outside, "comparison_id")

    payload = json.loads(JsonFormatter().format(inside))
    assert payload["comparison_id"] == "cmp-1"
    assert payload["message"] == "aligning"
    assert payload["level"] == "INFO"


def test_log_performance(caplog):
    logger = logging.getLogger("report_comparison.test.perf")

    @log_performance(logger, "Alignment")
    def work(x):
        return x * 2

    @log_performance(logger, "Broken step")
    def broken():
        raise ValueError("bad input")

    with caplog.at_level(logging.INFO, logger="report_comparison.test.perf"):
        assert work(2) == 4
        with pytest.raises(ValueError):
            broken()

    messages = [r.getMessage() for r in caplog.records]
    assert any(m.startswith("Alignment completed in") for m in messages)
    assert any(m.startswith("Broken step failed after") for m in messages)


def test_nested_log_context_merges_and_restores(caplog):
    logger = logging.getLogger("report_comparison.test.nested")

    with caplog.at_level(logging.INFO, logger="report_comparison.test.nested"):
        with LogContext(logger, comparison_id="cmp-1"):
            with LogContext(logger, file_name="jan.pdf"):
                logger.info("extracting")
            logger.info("aligning")

    extracting, aligning = caplog.records[-2:]
    assert extracting.comparison_id == "cmp-1"
    assert extracting.file_name == "jan.pdf"
    assert aligning.comparison_id == "cmp-1"
    assert not hasattr(aligning, "file_name")


@pytest.mark.asyncio
async def test_log_context_is_isolated_between_tasks(caplog):
    logger = logging.getLogger("report_comparison.test.tasks")

    async def job(comparison_id):
        with LogContext(logger, comparison_id=comparison_id):
            await asyncio.sleep(0)
            logger.info("processing")

    with caplog.at_level(logging.INFO, logger="report_comparison.test.tasks"):
        await asyncio.gather(job("cmp-a"), job("cmp-b"))

    assert sorted(r.comparison_id for r in caplog.records[-2:]) == ["cmp-a", "cmp-b"]


@pytest.mark.asyncio
async def test_log_performance_async(caplog):
    logger = logging.getLogger("report_comparison.test.async_perf")

    @log_performance(logger, "Report extraction")
    async def extract():
        await asyncio.sleep(0)
        return "ok"

    with caplog.at_level(logging.INFO, logger="report_comparison.test.async_perf"):
        assert await extract() == "ok"

    assert caplog.records[-1].getMessage().startswith("Report extraction completed in")
