#!/usr/bin/env python3
"""
Unified Data Models for InternBot

All shared data models are defined here to ensure consistency across the codebase.
"""

import uuid
from typing import List, Optional, Dict, Any
from dataclasses import dataclass, field
from enum import Enum
from datetime import datetime

from .exceptions import ErrorCategory, InvalidTransition


# ============== Enums ==============

class JobStatus(str, Enum):
    """Per-listing job status."""
    PENDING = "PENDING"
    APPLYING = "APPLYING"
    APPLIED = "APPLIED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({JobStatus.APPLIED, JobStatus.FAILED, JobStatus.SKIPPED})

ALLOWED_TRANSITIONS = {
    JobStatus.PENDING: frozenset({JobStatus.APPLYING, JobStatus.SKIPPED}),
    JobStatus.APPLYING: frozenset({JobStatus.APPLIED, JobStatus.FAILED}),
    JobStatus.APPLIED: frozenset(),
    JobStatus.FAILED: frozenset(),
    JobStatus.SKIPPED: frozenset(),
}


class ApplyStatus(str, Enum):
    """Outcome reported by the application submitter."""
    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    FAILED = "failed"
    BUTTON_NOT_FOUND = "button_not_found"


class LogSeverity(str, Enum):
    """Severity of an operator-facing log event."""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


def new_listing_id() -> str:
    return f"int_{uuid.uuid4().hex[:12]}"


# ============== Data Models ==============

@dataclass
class ListingRecord:
    """One internship listing extracted from a search pass."""
    id: str
    title: str
    company: str
    location: str
    stipend: str
    posted: str
    link: str
    stipend_amount: Optional[int] = None
    status: JobStatus = JobStatus.PENDING

    def transition(self, new_status: JobStatus) -> None:
        """Move to ``new_status``; terminal states never change again."""
        if new_status not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTransition(
                f"{self.id}: {self.status.value} -> {new_status.value} is not allowed"
            )
        self.status = new_status

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "company": self.company,
            "location": self.location,
            "stipend": self.stipend,
            "stipendAmount": self.stipend_amount,
            "posted": self.posted,
            "link": self.link,
            "status": self.status.value,
        }


@dataclass
class AnswerTemplate:
    """A screening question and the answer typed into its form field."""
    question: str
    answer: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"question": self.question, "answer": self.answer}


@dataclass(frozen=True)
class RunConfiguration:
    """Search filters and operator identity for one run (immutable)."""
    keywords: str = ""
    location: str = ""
    remote_only: bool = False
    min_stipend: int = 0
    email: str = ""

    @property
    def effective_location(self) -> str:
        """Location filter actually applied; remote-only ignores location."""
        return "" if self.remote_only else self.location

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keywords": self.keywords,
            "location": self.location,
            "remoteOnly": self.remote_only,
            "minStipend": self.min_stipend,
            "email": self.email,
        }


@dataclass(frozen=True)
class LogEvent:
    """Append-only operator log entry."""
    message: str
    severity: LogSeverity = LogSeverity.INFO
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:9])
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "message": self.message,
            "type": self.severity.value,
        }


# ============== Results ==============

@dataclass
class VerifyResult:
    """Outcome of a credential verification."""
    success: bool
    message: str
    redirect_url: Optional[str] = None
    failure: Optional[ErrorCategory] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"success": self.success, "message": self.message}
        if self.redirect_url:
            data["redirectUrl"] = self.redirect_url
        return data


@dataclass
class SearchResult:
    """Outcome of one search pass."""
    success: bool
    listings: List[ListingRecord] = field(default_factory=list)
    message: Optional[str] = None
    skipped: List[ListingRecord] = field(default_factory=list)
    search_url: Optional[str] = None
    failure: Optional[ErrorCategory] = None

    @property
    def count(self) -> int:
        return len(self.listings)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "success": self.success,
            "internships": [listing.to_dict() for listing in self.listings],
            "count": self.count,
        }
        if self.message:
            data["message"] = self.message
        return data


@dataclass
class ApplyResult:
    """Outcome of one application attempt.

    ``verified`` separates a confirmed submission (success marker or success
    URL seen) from the optimistic default where nothing went visibly wrong.
    """
    success: bool
    status: ApplyStatus
    message: str = ""
    verified: bool = False
    screenshot_path: Optional[str] = None
    failure: Optional[ErrorCategory] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "status": self.status.value,
            "verified": self.verified,
        }
