"""
Error taxonomy for the automation engine.

Every failure the engine can report maps onto one ErrorCategory so the API,
the job orchestrator and the event log describe failures the same way.
"""

import asyncio
from enum import Enum

import aiohttp
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError


class ErrorCategory(str, Enum):
    """Failure categories surfaced to callers."""
    UNAUTHENTICATED = "unauthenticated"
    TIMEOUT = "timeout"
    NOT_FOUND = "not_found"
    SELECTOR_MISS = "selector_miss"
    ALREADY_APPLIED = "already_applied"
    TRANSPORT_FAILURE = "transport_failure"
    UNKNOWN_REMOTE_BEHAVIOR = "unknown_remote_behavior"


# Categories produced by an exception path rather than a classified page state
EXCEPTION_CATEGORIES = frozenset({
    ErrorCategory.TIMEOUT,
    ErrorCategory.TRANSPORT_FAILURE,
    ErrorCategory.UNKNOWN_REMOTE_BEHAVIOR,
})


class AutomationError(Exception):
    """Base class for engine errors."""
    category = ErrorCategory.UNKNOWN_REMOTE_BEHAVIOR


class Unauthenticated(AutomationError):
    """The shared session has not completed a successful login."""
    category = ErrorCategory.UNAUTHENTICATED

    def __init__(self, message: str = "Not logged in"):
        super().__init__(message)


class NavigationTimeout(AutomationError):
    """A navigation or selector wait exceeded its bound."""
    category = ErrorCategory.TIMEOUT


class NotFound(AutomationError):
    """The remote page reports a missing resource or expected content is absent."""
    category = ErrorCategory.NOT_FOUND


class SelectorMiss(AutomationError):
    """No known selector matched after exhausting the fallbacks."""
    category = ErrorCategory.SELECTOR_MISS


class AlreadyApplied(AutomationError):
    """Terminal page state: the operator has already applied."""
    category = ErrorCategory.ALREADY_APPLIED


class TransportFailure(AutomationError):
    """The backend could not be reached at all."""
    category = ErrorCategory.TRANSPORT_FAILURE


class UnknownRemoteBehavior(AutomationError):
    """Generic failure raised by the automation layer."""
    category = ErrorCategory.UNKNOWN_REMOTE_BEHAVIOR


class InvalidTransition(ValueError):
    """A job status change that would break monotonicity."""


class RunAlreadyActive(RuntimeError):
    """A run is in progress; its configuration cannot be replaced."""


def categorize_error(error: BaseException) -> ErrorCategory:
    """Map an arbitrary exception onto the error taxonomy."""
    if isinstance(error, AutomationError):
        return error.category
    if isinstance(error, (PlaywrightTimeoutError, asyncio.TimeoutError)):
        return ErrorCategory.TIMEOUT
    if isinstance(error, (aiohttp.ClientConnectionError, ConnectionError)):
        return ErrorCategory.TRANSPORT_FAILURE
    if isinstance(error, PlaywrightError):
        message = str(error).lower()
        if "net::err" in message or "connection refused" in message:
            return ErrorCategory.TRANSPORT_FAILURE
        if "target closed" in message or "has been closed" in message:
            return ErrorCategory.UNKNOWN_REMOTE_BEHAVIOR
    return ErrorCategory.UNKNOWN_REMOTE_BEHAVIOR
