# ============================================================================
# FILE: tests/unit/test_comparison_store.py
# ============================================================================
"""
Unit tests for the in-memory comparison store
"""

from datetime import date, datetime

from report_comparison.core.comparison_store import ComparisonStore
from report_comparison.core.enums import ComparisonStatus
from report_comparison.core.models import UploadedFile


def uploaded(count=2):
    return [
        UploadedFile(file_name=f"r{i}.pdf", file_type="application/pdf", file_size=100, upload_order=i)
        for i in range(count)
    ]


def seeded_store():
    """Three records created in Jan, Mar and Mar."""
    store = ComparisonStore()
    created = [datetime(2026, 1, 5), datetime(2026, 3, 2), datetime(2026, 3, 20)]
    for i, when in enumerate(created):
        record = store.create(f"P{i % 2}", f"Comparison {i}", uploaded(), doctor_id="D1" if i else None)
        store.save(record.model_copy(update={"created_at": when, "updated_at": when}))
    return store


def test_create_is_pending():
    store = ComparisonStore()
    record = store.create("P1", "Quarterly CBC", uploaded(3))

    assert record.status == ComparisonStatus.PENDING
    assert record.report_count == 3
    assert store.get(record.id) == record


def test_update_bumps_updated_at():
    store = ComparisonStore()
    record = store.create("P1", "Quarterly CBC", uploaded())
    store.save(record.model_copy(update={"updated_at": datetime(2020, 1, 1)}))

    updated = store.update(record.id, status=ComparisonStatus.PROCESSING, processing_stage="analyzing_reports")
    assert updated.status == ComparisonStatus.PROCESSING
    assert updated.updated_at > datetime(2020, 1, 1)
    assert store.update("missing", status=ComparisonStatus.FAILED) is None


def test_list_newest_first():
    comparisons, pagination = seeded_store().list()
    assert [c.comparison_name for c in comparisons] == ["Comparison 2", "Comparison 1", "Comparison 0"]
    assert pagination.total_items == 3
    assert pagination.total_pages == 1


def test_list_filters():
    store = seeded_store()

    by_patient, _ = store.list(patient_id="P0")
    assert [c.comparison_name for c in by_patient] == ["Comparison 2", "Comparison 0"]

    by_doctor, _ = store.list(doctor_id="D1")
    assert len(by_doctor) == 2

    in_march, _ = store.list(date_from=date(2026, 3, 1), date_to=date(2026, 3, 20))
    assert [c.comparison_name for c in in_march] == ["Comparison 2", "Comparison 1"]

    pending, _ = store.list(status=ComparisonStatus.PENDING)
    assert len(pending) == 3
    completed, _ = store.list(status=ComparisonStatus.COMPLETED)
    assert completed == []


def test_list_pagination():
    page, pagination = seeded_store().list(page=2, limit=2)
    assert [c.comparison_name for c in page] == ["Comparison 0"]
    assert pagination.current_page == 2
    assert pagination.total_pages == 2


def test_delete_is_idempotent():
    store = ComparisonStore()
    record = store.create("P1", "Quarterly CBC", uploaded())

    assert store.delete(record.id) is True
    assert store.delete(record.id) is False
    assert store.get(record.id) is None


def test_stats():
    store = seeded_store()
    first, _ = store.list(page=1, limit=1)
    store.update(first[0].id, status=ComparisonStatus.COMPLETED)

    stats = store.stats(now=datetime(2026, 3, 25))
    assert stats.total_comparisons == 3
    assert stats.this_month == 2
    assert stats.pending == 2
    assert stats.completed == 1
    assert stats.by_month == {"2026-01": 1, "2026-03": 2}
