# ============================================================================
# src/report_comparison/core/comparison_store.py
# ============================================================================
"""
Comparison Store

In-memory store for comparison job records served by the REST service.
Records are kept as Comparison models keyed by id; listing is newest
first with the same filters and pagination the dashboard uses.
"""

import logging
import math
import uuid
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence, Tuple

from .enums import ComparisonStatus
from .models import Comparison, ComparisonStats, Pagination, UploadedFile

logger = logging.getLogger(__name__)


class ComparisonStore:
    """Keeps every comparison record for the lifetime of the process."""

    def __init__(self):
        self._records: Dict[str, Comparison] = {}

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------
    def create(
        self,
        patient_id: str,
        comparison_name: str,
        uploaded_files: Sequence[UploadedFile],
        doctor_id: Optional[str] = None
    ) -> Comparison:
        """Create a pending record for a freshly submitted comparison."""
        now = datetime.now()
        comparison = Comparison(
            id=str(uuid.uuid4()),
            patient_id=patient_id,
            doctor_id=doctor_id,
            comparison_name=comparison_name,
            report_count=len(uploaded_files),
            uploaded_files=list(uploaded_files),
            status=ComparisonStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        self._records[comparison.id] = comparison
        logger.info(f"Created comparison {comparison.id} ({comparison.report_count} reports)")
        return comparison

    def save(self, comparison: Comparison) -> Comparison:
        self._records[comparison.id] = comparison
        return comparison

    def update(self, comparison_id: str, **fields) -> Optional[Comparison]:
        """
        Apply field updates to a record and bump updated_at.

        Returns None when the record no longer exists (deleted mid-job).
        """
        current = self._records.get(comparison_id)
        if current is None:
            return None
        fields["updated_at"] = datetime.now()
        updated = current.model_copy(update=fields)
        self._records[comparison_id] = updated
        return updated

    def delete(self, comparison_id: str) -> bool:
        """Delete a record. Returns True if one was removed."""
        removed = self._records.pop(comparison_id, None) is not None
        if removed:
            logger.info(f"Deleted comparison {comparison_id}")
        return removed

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------
    def get(self, comparison_id: str) -> Optional[Comparison]:
        return self._records.get(comparison_id)

    def list(
        self,
        page: int = 1,
        limit: int = 10,
        status: Optional[ComparisonStatus] = None,
        patient_id: Optional[str] = None,
        doctor_id: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None
    ) -> Tuple[List[Comparison], Pagination]:
        """
        List records newest first.

        Args:
            page: 1-based page number
            limit: Page size
            status: Only records in this status
            patient_id: Only this patient's records
            doctor_id: Only this doctor's records
            date_from: Created on or after this day
            date_to: Created on or before this day
        """
        records = [
            r for r in self._records.values()
            if (status is None or r.status == status)
            and (patient_id is None or r.patient_id == patient_id)
            and (doctor_id is None or r.doctor_id == doctor_id)
            and (date_from is None or r.created_at.date() >= date_from)
            and (date_to is None or r.created_at.date() <= date_to)
        ]
        records.sort(key=lambda r: r.created_at, reverse=True)

        page = max(page, 1)
        limit = max(limit, 1)
        start = (page - 1) * limit

        pagination = Pagination(
            current_page=page,
            total_pages=math.ceil(len(records) / limit),
            total_items=len(records),
            items_per_page=limit,
        )
        return records[start:start + limit], pagination

    def stats(self, now: Optional[datetime] = None) -> ComparisonStats:
        now = now or datetime.now()
        records = list(self._records.values())

        by_month: Dict[str, int] = {}
        for record in records:
            key = record.created_at.strftime("%Y-%m")
            by_month[key] = by_month.get(key, 0) + 1

        def count(status: ComparisonStatus) -> int:
            return sum(1 for r in records if r.status == status)

        return ComparisonStats(
            total_comparisons=len(records),
            this_month=by_month.get(now.strftime("%Y-%m"), 0),
            pending=count(ComparisonStatus.PENDING),
            processing=count(ComparisonStatus.PROCESSING),
            completed=count(ComparisonStatus.COMPLETED),
            failed=count(ComparisonStatus.FAILED),
            by_month=dict(sorted(by_month.items())),
        )

    def __len__(self) -> int:
        return len(self._records)
