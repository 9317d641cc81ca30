"""
Core components of the internship application engine.

Modules:
- browser: Single shared Playwright browser session
- verifier: Login and authentication state
- extractor: Search URL building and listing extraction
- submitter: Multi-step application submission
- form_filler: Positional screening-answer filling
- job_queue / orchestrator: One-at-a-time job processing for a run
- event_log: Operator-facing event feed
"""

from .exceptions import (
    ErrorCategory,
    AutomationError,
    Unauthenticated,
    NavigationTimeout,
    NotFound,
    SelectorMiss,
    AlreadyApplied,
    TransportFailure,
    UnknownRemoteBehavior,
    InvalidTransition,
    RunAlreadyActive,
    categorize_error,
)
from .models import (
    JobStatus,
    ApplyStatus,
    LogSeverity,
    ListingRecord,
    AnswerTemplate,
    RunConfiguration,
    LogEvent,
    VerifyResult,
    SearchResult,
    ApplyResult,
)
from .browser import BrowserSessionManager, get_session_manager, reset_session_manager
from .verifier import AuthenticationVerifier
from .extractor import ListingExtractor, build_search_url, parse_stipend_amount
from .form_filler import FormFiller
from .screenshot_manager import ScreenshotManager
from .submitter import ApplicationSubmitter
from .event_log import EventLog
from .answer_store import AnswerStore, default_answers
from .job_queue import JobQueue
from .orchestrator import JobOrchestrator

__all__ = [
    "ErrorCategory",
    "AutomationError",
    "Unauthenticated",
    "NavigationTimeout",
    "NotFound",
    "SelectorMiss",
    "AlreadyApplied",
    "TransportFailure",
    "UnknownRemoteBehavior",
    "InvalidTransition",
    "RunAlreadyActive",
    "categorize_error",
    "JobStatus",
    "ApplyStatus",
    "LogSeverity",
    "ListingRecord",
    "AnswerTemplate",
    "RunConfiguration",
    "LogEvent",
    "VerifyResult",
    "SearchResult",
    "ApplyResult",
    "BrowserSessionManager",
    "get_session_manager",
    "reset_session_manager",
    "AuthenticationVerifier",
    "ListingExtractor",
    "build_search_url",
    "parse_stipend_amount",
    "FormFiller",
    "ScreenshotManager",
    "ApplicationSubmitter",
    "EventLog",
    "AnswerStore",
    "default_answers",
    "JobQueue",
    "JobOrchestrator",
]
