# ============================================================================
# src/report_comparison/core/enums.py
# ============================================================================
"""
Comparison Enums
- Job status (server owned)
- Poll state (client local)
- Trend categories
- Recommendation priority and category
"""

from enum import Enum
from typing import Optional


class ComparisonStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ComparisonStatus.COMPLETED, ComparisonStatus.FAILED)


class PollState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"    # client stopped waiting; server job may still finish
    CANCELLED = "cancelled"


class Trend(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"
    FLUCTUATING = "fluctuating"
    INSUFFICIENT_DATA = "insufficient_data"


class ResultStatus(str, Enum):
    NORMAL = "Normal"
    HIGH = "High"
    LOW = "Low"
    ABNORMAL = "Abnormal"


ABNORMAL_STATUSES = frozenset({ResultStatus.HIGH, ResultStatus.LOW, ResultStatus.ABNORMAL})


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RecommendationCategory(str, Enum):
    IMMEDIATE = "immediate"
    FOLLOW_UP = "follow_up"
    LIFESTYLE = "lifestyle"
    DIETARY = "dietary"
    MEDICATION = "medication"


def normalize_status(status) -> Optional[ResultStatus]:
    """Map a free-text result flag ("high", "H", "LOW ") onto ResultStatus."""
    if status is None:
        return None
    if isinstance(status, ResultStatus):
        return status
    text = str(status).strip().lower()
    aliases = {
        "normal": ResultStatus.NORMAL,
        "n": ResultStatus.NORMAL,
        "high": ResultStatus.HIGH,
        "h": ResultStatus.HIGH,
        "hh": ResultStatus.HIGH,
        "low": ResultStatus.LOW,
        "l": ResultStatus.LOW,
        "ll": ResultStatus.LOW,
        "abnormal": ResultStatus.ABNORMAL,
        "a": ResultStatus.ABNORMAL,
        "critical": ResultStatus.ABNORMAL,
    }
    return aliases.get(text)


def is_abnormal(status) -> bool:
    return normalize_status(status) in ABNORMAL_STATUSES
