# ============================================================================
# api/main.py
# ============================================================================
"""
FastAPI Backend for the Report Comparison Engine

Runs on port 8000.
Accepts 2-10 lab reports per comparison, runs extraction and the
cross-report pipeline as a background job, and serves the job record
for polling.
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, FastAPI, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from report_comparison import __version__
from report_comparison.analyzer import OllamaReportAnalyzer, ReportAnalyzer
from report_comparison.client.submitter import default_comparison_name
from report_comparison.core.comparison_store import ComparisonStore
from report_comparison.core.engine import ComparisonEngine
from report_comparison.core.enums import ComparisonStatus
from report_comparison.core.files import ReportFile, canonical_mime_type, validate_submission
from report_comparison.core.models import Report, UploadedFile
from report_comparison.utils import LogContext, setup_logging_from_settings
from report_comparison.utils.exceptions import AnalyzerError, SubmissionValidationError

logger = logging.getLogger(__name__)


# ============================================================================
# Background Processing
# ============================================================================

async def run_comparison(
    comparison_id: str,
    files: List[ReportFile],
    custom_prompt: Optional[str],
    store: ComparisonStore,
    analyzer: ReportAnalyzer,
    engine: ComparisonEngine
):
    """
    Process one comparison job.

    Flow:
    1. analyzing_reports: each file through the analyzer, in upload order
    2. aligning_parameters: order by report date and align parameters
    3. summarizing: trend summary and recommendations
    """
    with LogContext(logger, comparison_id=comparison_id):
        await _process_comparison(comparison_id, files, custom_prompt, store, analyzer, engine)


async def _process_comparison(
    comparison_id: str,
    files: List[ReportFile],
    custom_prompt: Optional[str],
    store: ComparisonStore,
    analyzer: ReportAnalyzer,
    engine: ComparisonEngine
):
    started = time.perf_counter()

    def elapsed_ms() -> int:
        return int((time.perf_counter() - started) * 1000)

    record = store.update(
        comparison_id,
        status=ComparisonStatus.PROCESSING,
        processing_stage="analyzing_reports",
    )
    if record is None:
        return
    uploaded_at = record.created_at

    try:
        reports = []
        for order, report_file in enumerate(files):
            try:
                with LogContext(logger, file_name=report_file.file_name):
                    structured = await analyzer.extract(report_file, custom_prompt)
            except AnalyzerError:
                raise
            except Exception as e:
                raise AnalyzerError(str(e), file_name=report_file.file_name) from e

            reports.append(Report(
                file_name=report_file.file_name,
                file_type=canonical_mime_type(report_file.content_type),
                upload_order=order,
                analysis_date=structured.report_date or uploaded_at,
                test_name=structured.test_name,
                test_category=structured.test_category,
                test_results=structured.test_results,
            ))
            logger.info(
                f"Comparison {comparison_id}: analyzed {report_file.file_name} "
                f"({len(structured.test_results)} results)"
            )

        result = engine.compare(
            reports,
            on_stage=lambda stage: store.update(comparison_id, processing_stage=stage),
        )

        if not result.parameter_comparisons:
            logger.warning(f"Comparison {comparison_id}: no lab values extracted from any report")

        store.update(
            comparison_id,
            status=ComparisonStatus.COMPLETED,
            processing_stage="completed",
            individual_analyses=result.individual_analyses,
            parameter_comparisons=result.parameter_comparisons,
            comparison_analysis=result.comparison_analysis,
            date_range=result.date_range,
            processing_time_ms=elapsed_ms(),
        )
        logger.info(f"Comparison {comparison_id} completed in {elapsed_ms()}ms")

    except AnalyzerError as e:
        message = f"Failed to analyze {e.file_name}: {e}" if e.file_name else str(e)
        logger.error(f"Comparison {comparison_id} failed: {message}")
        store.update(
            comparison_id,
            status=ComparisonStatus.FAILED,
            error_message=message,
            processing_time_ms=elapsed_ms(),
        )
    except Exception as e:
        logger.error(f"Comparison {comparison_id} failed: {e}")
        store.update(
            comparison_id,
            status=ComparisonStatus.FAILED,
            error_message=str(e),
            processing_time_ms=elapsed_ms(),
        )


# ============================================================================
# Endpoints
# ============================================================================

router = APIRouter(prefix="/api/ai-test-comparison")


@router.post("/compare")
async def compare_reports(
    request: Request,
    background_tasks: BackgroundTasks,
    test_reports: Optional[List[UploadFile]] = File(None),
    patient_id: str = Form(""),
    comparison_name: Optional[str] = Form(None),
    custom_prompt: Optional[str] = Form(None),
    doctor_id: Optional[str] = Form(None)
):
    """
    Create a comparison job from uploaded reports.

    Validation failures return 400 with the offending file names.
    """
    files = [
        ReportFile(
            file_name=upload.filename or f"report_{i + 1}",
            content=await upload.read(),
            content_type=upload.content_type or "",
        )
        for i, upload in enumerate(test_reports or [])
    ]

    try:
        validate_submission(files, patient_id)
    except SubmissionValidationError as e:
        raise HTTPException(
            status_code=400,
            detail={"message": str(e), "files": getattr(e, "file_names", [])},
        )

    store: ComparisonStore = request.app.state.store
    comparison = store.create(
        patient_id=patient_id.strip(),
        doctor_id=(doctor_id or "").strip() or None,
        comparison_name=(comparison_name or "").strip() or default_comparison_name(),
        uploaded_files=[
            UploadedFile(
                file_name=f.file_name,
                file_type=canonical_mime_type(f.content_type),
                file_size=f.size,
                upload_order=i,
            )
            for i, f in enumerate(files)
        ],
    )

    background_tasks.add_task(
        run_comparison,
        comparison.id,
        files,
        (custom_prompt or "").strip() or None,
        store,
        request.app.state.analyzer,
        request.app.state.engine,
    )

    return {
        "success": True,
        "message": "Comparison started",
        "data": {
            "comparison_id": comparison.id,
            "report_count": comparison.report_count,
            "status": comparison.status.value,
        },
    }


@router.get("/stats")
async def get_stats(request: Request):
    stats = request.app.state.store.stats()
    return {"success": True, "data": stats.model_dump(mode="json")}


@router.get("")
async def list_comparisons(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[ComparisonStatus] = None,
    patient_id: Optional[str] = None,
    doctor_id: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None
):
    """List comparisons, newest first."""
    comparisons, pagination = request.app.state.store.list(
        page=page,
        limit=limit,
        status=status,
        patient_id=patient_id,
        doctor_id=doctor_id,
        date_from=date_from,
        date_to=date_to,
    )
    return {
        "success": True,
        "data": [c.model_dump(mode="json") for c in comparisons],
        "pagination": pagination.model_dump(mode="json"),
    }


@router.get("/{comparison_id}")
async def get_comparison(comparison_id: str, request: Request):
    """Get one comparison record (polled until completed or failed)."""
    comparison = request.app.state.store.get(comparison_id)
    if comparison is None:
        raise HTTPException(status_code=404, detail="Comparison not found")
    return {"success": True, "data": comparison.model_dump(mode="json")}


@router.delete("/{comparison_id}")
async def delete_comparison(comparison_id: str, request: Request):
    """Delete a comparison. Unknown ids are treated as already deleted."""
    removed = request.app.state.store.delete(comparison_id)
    return {
        "success": True,
        "message": "Comparison deleted successfully" if removed else "Comparison already deleted",
    }


# ============================================================================
# App
# ============================================================================

def create_app(
    analyzer: Optional[ReportAnalyzer] = None,
    store: Optional[ComparisonStore] = None,
    engine: Optional[ComparisonEngine] = None
) -> FastAPI:
    """Build the API with injectable analyzer, store and engine."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.analyzer.close()

    app = FastAPI(
        title="Report Comparison Engine API",
        description="Compare lab reports across dates and summarize parameter trends",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.analyzer = analyzer or OllamaReportAnalyzer()
    app.state.store = store or ComparisonStore()
    app.state.engine = engine or ComparisonEngine()

    @app.get("/")
    async def root():
        """Health check endpoint."""
        return {"status": "ok", "service": "Report Comparison Engine API"}

    @app.get("/api/health")
    async def health():
        """Health check for monitoring."""
        return {"status": "healthy", "time": datetime.now().isoformat()}

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    setup_logging_from_settings()
    uvicorn.run(app, host="0.0.0.0", port=8000)
