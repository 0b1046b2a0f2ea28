# ============================================================================
# src/report_comparison/core/files.py
# ============================================================================
"""
Report Files

ReportFile is one document selected for comparison (bytes + MIME type).
ReportSelection is the incremental picker the comparison screen builds up
before submitting: unsupported files are dropped on the way in and the
selection never grows past the report limit.
"""

import logging
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from ..config import threshold_settings
from ..utils.exceptions import (
    FileTooLargeError,
    PatientRequiredError,
    ReportCountError,
    UnsupportedFileTypeError,
)

logger = logging.getLogger(__name__)


ALLOWED_MIME_TYPES = frozenset({"image/jpeg", "image/png", "application/pdf"})

# Browsers occasionally report JPEGs as image/jpg
MIME_ALIASES = {"image/jpg": "image/jpeg", "image/pjpeg": "image/jpeg"}


def canonical_mime_type(content_type: Optional[str]) -> str:
    if not content_type:
        return ""
    content_type = content_type.split(";")[0].strip().lower()
    return MIME_ALIASES.get(content_type, content_type)


def is_allowed_type(content_type: Optional[str]) -> bool:
    return canonical_mime_type(content_type) in ALLOWED_MIME_TYPES


@dataclass
class ReportFile:
    """A lab report document ready for upload."""
    file_name: str
    content: bytes = field(repr=False)
    content_type: str

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def is_pdf(self) -> bool:
        return canonical_mime_type(self.content_type) == "application/pdf"

    @property
    def is_image(self) -> bool:
        return canonical_mime_type(self.content_type) in ("image/jpeg", "image/png")

    @classmethod
    def from_path(cls, path: Union[str, Path], content_type: Optional[str] = None) -> "ReportFile":
        """Read a file from disk, guessing the MIME type from its extension."""
        path = Path(path)
        if content_type is None:
            content_type, _ = mimetypes.guess_type(path.name)
        return cls(
            file_name=path.name,
            content=path.read_bytes(),
            content_type=content_type or "application/octet-stream",
        )


def validate_submission(
    files: Sequence[ReportFile],
    patient_id: Optional[str],
    min_reports: Optional[int] = None,
    max_reports: Optional[int] = None,
    max_file_size_mb: Optional[int] = None
) -> None:
    """
    Check a comparison request before anything is uploaded or processed.

    Raises:
        UnsupportedFileTypeError: a file is not JPEG, PNG or PDF
        FileTooLargeError: a file is over the size limit
        ReportCountError: too few or too many files
        PatientRequiredError: patient_id is missing or blank
    """
    min_reports = min_reports or threshold_settings.MIN_REPORTS
    max_reports = max_reports or threshold_settings.MAX_REPORTS
    max_file_size_mb = max_file_size_mb or threshold_settings.MAX_FILE_SIZE_MB

    unsupported = [f.file_name for f in files if not is_allowed_type(f.content_type)]
    if unsupported:
        raise UnsupportedFileTypeError(unsupported)

    max_bytes = max_file_size_mb * 1024 * 1024
    oversized = [f.file_name for f in files if f.size > max_bytes]
    if oversized:
        raise FileTooLargeError(oversized, max_file_size_mb)

    if not min_reports <= len(files) <= max_reports:
        raise ReportCountError(len(files), min_reports, max_reports)

    if not patient_id or not patient_id.strip():
        raise PatientRequiredError()


class ReportSelection:
    """
    Files picked for one comparison, in upload order.

    add() keeps the supported files and returns the names of the rejected
    ones. A batch that would push the selection past the maximum is
    rejected as a whole.
    """

    def __init__(self, max_reports: Optional[int] = None, min_reports: Optional[int] = None):
        self.max_reports = max_reports or threshold_settings.MAX_REPORTS
        self.min_reports = min_reports or threshold_settings.MIN_REPORTS
        self._files: List[ReportFile] = []

    def add(self, files: Iterable[ReportFile]) -> List[str]:
        files = list(files)
        valid = [f for f in files if is_allowed_type(f.content_type)]
        rejected = [f.file_name for f in files if not is_allowed_type(f.content_type)]

        if rejected:
            logger.info(f"Ignoring unsupported files: {', '.join(rejected)}")

        total = len(self._files) + len(valid)
        if total > self.max_reports:
            raise ReportCountError(total, self.min_reports, self.max_reports)

        self._files.extend(valid)
        return rejected

    def remove(self, index: int) -> ReportFile:
        return self._files.pop(index)

    def clear(self) -> None:
        self._files.clear()

    @property
    def files(self) -> List[ReportFile]:
        return list(self._files)

    @property
    def ready(self) -> bool:
        return len(self._files) >= self.min_reports

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self):
        return iter(list(self._files))
