# ============================================================================
# src/report_comparison/core/models.py
# ============================================================================
"""
Comparison Data Model

Wire-compatible pydantic models for the comparison service:
- LabResult / StructuredReport: what the per-report analyzer returns
- Report: one analyzed upload inside a comparison
- ParameterComparison: one lab parameter aligned across reports
- ComparisonAnalysis: partitions, recommendations, patient summary
- Comparison: the job record observed by the poller

Records coming from the server may carry `_id` instead of `id`,
`start_date`/`end_date` inside `date_range`, and populated patient/doctor
objects instead of plain ids. All of these are accepted on input.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Optional

from pydantic import AfterValidator, AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .enums import (
    ComparisonStatus,
    Priority,
    RecommendationCategory,
    Trend,
    normalize_status,
)


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Drop tzinfo after converting to UTC so all dates sort together."""
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


NaiveDatetime = Annotated[datetime, AfterValidator(_naive_utc)]


def normalize_parameter_name(name: str) -> str:
    """Alignment key: lowercase, trimmed, internal whitespace collapsed."""
    return " ".join((name or "").split()).lower()


def display_parameter_name(name: str) -> str:
    return " ".join((name or "").split())


class _Model(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class LabResult(_Model):
    """Single extracted lab value from one report."""
    parameter: str
    value: str = ""
    unit: str = ""
    reference_range: str = ""
    status: str = "Normal"

    @field_validator("value", "unit", "reference_range", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v)

    @field_validator("status", mode="before")
    @classmethod
    def _canonical_status(cls, v: Any) -> str:
        if v is None or str(v).strip() == "":
            return "Normal"
        status = normalize_status(v)
        return status.value if status else str(v).strip()


class StructuredReport(_Model):
    """Output of the per-report analyzer."""
    test_name: str = ""
    test_category: Optional[str] = None
    report_date: Optional[NaiveDatetime] = None
    test_results: List[LabResult] = Field(
        default_factory=list,
        validation_alias=AliasChoices("test_results", "results"),
    )


class Report(_Model):
    """One analyzed upload, as stored in `individual_analyses`."""
    file_name: str
    file_type: str = ""
    upload_order: int = 0
    analysis_date: NaiveDatetime
    test_name: str = ""
    test_category: Optional[str] = None
    test_results: List[LabResult] = Field(default_factory=list)


class ParameterValue(_Model):
    report_index: int
    date: NaiveDatetime
    value: str
    status: str
    file_name: str


class ParameterComparison(_Model):
    """A lab parameter aligned across every report that contains it."""
    parameter: str
    unit: str = ""
    reference_range: str = ""
    values: List[ParameterValue] = Field(default_factory=list)
    trend: Trend = Trend.INSUFFICIENT_DATA
    trend_analysis: str = ""
    is_concerning: bool = False
    clinical_significance: Optional[str] = None

    @property
    def latest(self) -> Optional[ParameterValue]:
        return self.values[-1] if self.values else None

    @property
    def latest_status(self) -> Optional[str]:
        latest = self.latest
        return latest.status if latest else None


class Recommendation(_Model):
    category: RecommendationCategory
    action: str
    priority: Priority
    timeline: str


class PatientSummary(_Model):
    overall_status: str = ""
    main_findings: str = ""
    next_steps: str = ""


class ComparisonAnalysis(_Model):
    overall_trend: str = ""
    key_changes: List[str] = Field(default_factory=list)
    concerning_parameters: List[str] = Field(default_factory=list)
    improved_parameters: List[str] = Field(default_factory=list)
    stable_parameters: List[str] = Field(default_factory=list)
    recommendations: List[Recommendation] = Field(default_factory=list)
    patient_summary: PatientSummary = Field(default_factory=PatientSummary)
    # Unit or reference range mismatches between reports (not reconciled)
    alignment_warnings: List[str] = Field(default_factory=list)


class DateRange(_Model):
    start: Optional[NaiveDatetime] = Field(
        default=None, validation_alias=AliasChoices("start", "start_date")
    )
    end: Optional[NaiveDatetime] = Field(
        default=None, validation_alias=AliasChoices("end", "end_date")
    )


class UploadedFile(_Model):
    file_name: str
    file_type: str
    file_size: int
    upload_order: int


def _reference_id(v: Any) -> Any:
    # Populated references arrive as objects with their own id.
    if isinstance(v, dict):
        return v.get("_id") or v.get("id")
    return v


class Comparison(_Model):
    """The comparison job record."""
    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    patient_id: str
    doctor_id: Optional[str] = None
    comparison_name: str = ""
    report_count: int = 0
    date_range: DateRange = Field(default_factory=DateRange)
    uploaded_files: List[UploadedFile] = Field(default_factory=list)
    individual_analyses: List[Report] = Field(default_factory=list)
    parameter_comparisons: List[ParameterComparison] = Field(default_factory=list)
    comparison_analysis: Optional[ComparisonAnalysis] = None
    status: ComparisonStatus = ComparisonStatus.PENDING
    processing_stage: str = ""
    error_message: Optional[str] = None
    processing_time_ms: int = 0
    created_at: NaiveDatetime
    updated_at: NaiveDatetime

    @field_validator("patient_id", "doctor_id", mode="before")
    @classmethod
    def _unwrap_reference(cls, v: Any) -> Any:
        return _reference_id(v)

    def get_parameter(self, name: str) -> Optional[ParameterComparison]:
        """Look up an aligned parameter by name (case/whitespace insensitive)."""
        key = normalize_parameter_name(name)
        for param in self.parameter_comparisons:
            if normalize_parameter_name(param.parameter) == key:
                return param
        return None


class SubmissionResult(_Model):
    comparison_id: str
    report_count: int
    status: ComparisonStatus = ComparisonStatus.PENDING


class Pagination(_Model):
    current_page: int = 1
    total_pages: int = 0
    total_items: int = 0
    items_per_page: int = 10


class ComparisonStats(_Model):
    total_comparisons: int = 0
    this_month: int = 0
    pending: int = 0
    processing: int = 0
    completed: int = 0
    failed: int = 0
    by_month: Dict[str, int] = Field(default_factory=dict)
