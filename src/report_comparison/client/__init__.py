"""
Comparison service client: submission, polling and browsing.
"""

from .api_client import ComparisonApiClient
from .submitter import JobSubmitter, default_comparison_name
from .poller import JobPoller, TIMEOUT_MESSAGE
from .session import ComparisonSession

__all__ = [
    'ComparisonApiClient',
    'JobSubmitter',
    'default_comparison_name',
    'JobPoller',
    'TIMEOUT_MESSAGE',
    'ComparisonSession',
]
