"""
Resilience Tests - Failure Mode Testing
Timeouts, transport errors and broken pages must degrade into structured
results and log lines, never into a crashed run or a leaked browser.
"""

import asyncio
import pytest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import aiohttp
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from api.main import shutdown_services
from conftest import FakeElement, FakePage
from core.exceptions import (
    EXCEPTION_CATEGORIES,
    ErrorCategory,
    NavigationTimeout,
    NotFound,
    Unauthenticated,
    categorize_error,
)
from core.extractor import ListingExtractor
from core.models import (
    ApplyResult,
    ApplyStatus,
    JobStatus,
    ListingRecord,
    RunConfiguration,
    SearchResult,
    new_listing_id,
)
from core.orchestrator import JobOrchestrator
from core.screenshot_manager import ScreenshotManager
from core.submitter import ApplicationSubmitter


@pytest.mark.resilience
class TestErrorTaxonomy:

    @pytest.mark.parametrize("error,expected", [
        (PlaywrightTimeoutError("Timeout 30000ms exceeded"), ErrorCategory.TIMEOUT),
        (asyncio.TimeoutError(), ErrorCategory.TIMEOUT),
        (aiohttp.ClientConnectionError("reset"), ErrorCategory.TRANSPORT_FAILURE),
        (PlaywrightError("net::ERR_NAME_NOT_RESOLVED at https://internshala.com"), ErrorCategory.TRANSPORT_FAILURE),
        (PlaywrightError("Target closed"), ErrorCategory.UNKNOWN_REMOTE_BEHAVIOR),
        (NavigationTimeout("login"), ErrorCategory.TIMEOUT),
        (NotFound("listing"), ErrorCategory.NOT_FOUND),
        (Unauthenticated(), ErrorCategory.UNAUTHENTICATED),
        (ValueError("odd"), ErrorCategory.UNKNOWN_REMOTE_BEHAVIOR),
    ])
    def test_categorize(self, error, expected):
        assert categorize_error(error) == expected

    def test_page_states_are_not_exception_categories(self):
        for category in (ErrorCategory.NOT_FOUND, ErrorCategory.ALREADY_APPLIED,
                         ErrorCategory.SELECTOR_MISS, ErrorCategory.UNAUTHENTICATED):
            assert category not in EXCEPTION_CATEGORIES


@pytest.mark.resilience
class TestBrowserFailures:

    @pytest.mark.asyncio
    async def test_search_transport_failure(self, authed_session, test_config, fake_page):
        fake_page.goto_error = PlaywrightError("net::ERR_CONNECTION_RESET")

        result = await ListingExtractor(authed_session, test_config).search("python")

        assert not result.success
        assert result.failure == ErrorCategory.TRANSPORT_FAILURE
        assert result.failure in EXCEPTION_CATEGORIES

    @pytest.mark.asyncio
    async def test_screenshot_failure_does_not_change_outcome(self, authed_session, test_config, fake_page):
        fake_page.screenshot_error = PlaywrightError("Page crashed")

        result = await ApplicationSubmitter(authed_session, test_config).apply(
            "https://internshala.com/internship/detail/x"
        )

        assert result.status == ApplyStatus.BUTTON_NOT_FOUND
        assert result.screenshot_path is None

    @pytest.mark.asyncio
    async def test_screenshot_without_page(self, tmp_path):
        assert await ScreenshotManager(tmp_path).capture(None, "error") is None

    @pytest.mark.asyncio
    async def test_screenshot_limit(self, tmp_path):
        manager = ScreenshotManager(tmp_path, max_screenshots=1)
        page = FakePage()

        assert await manager.capture(page, "first") is not None
        assert await manager.capture(page, "second") is None
        assert len(list(Path(tmp_path).glob("*.png"))) == 1

    @pytest.mark.asyncio
    async def test_page_lock_released_after_failure(self, authed_session, test_config, fake_page):
        async def broken_title():
            raise PlaywrightError("Target page, context or browser has been closed")

        fake_page.title = broken_title
        submitter = ApplicationSubmitter(authed_session, test_config)

        result = await submitter.apply("https://internshala.com/internship/detail/x")

        assert result.status == ApplyStatus.FAILED
        assert not authed_session.is_busy

    @pytest.mark.asyncio
    async def test_job_errors_never_stop_the_loop(self, authed_session, test_config):
        extractor = MagicMock()
        submitter = MagicMock()
        records = [
            ListingRecord(new_listing_id(), f"Job {i}", "Acme", "Pune", "Unpaid", "Today",
                          "https://internshala.com/internship/detail/x")
            for i in range(3)
        ]
        extractor.search = AsyncMock(return_value=SearchResult(success=True, listings=records))
        submitter.apply = AsyncMock(side_effect=[
            PlaywrightError("Browser has been closed"),
            ApplyResult(success=False, status=ApplyStatus.FAILED, message="Application failed: detached"),
            RuntimeError("boom"),
        ])
        orchestrator = JobOrchestrator(authed_session, extractor, submitter, config=test_config)

        await orchestrator.start_run(RunConfiguration(keywords="python"))
        await orchestrator.wait_idle()

        assert all(r.status == JobStatus.FAILED for r in records)
        assert submitter.apply.await_count == 3

    @pytest.mark.asyncio
    async def test_search_crash_is_logged(self, authed_session, test_config):
        extractor = MagicMock()
        extractor.search = AsyncMock(side_effect=PlaywrightError("Executable doesn't exist"))
        orchestrator = JobOrchestrator(authed_session, extractor, MagicMock(), config=test_config)

        await orchestrator.start_run(RunConfiguration(keywords="python"))
        await asyncio.wait_for(orchestrator.wait_idle(), timeout=2)

        events = orchestrator.event_log.snapshot()[0]
        assert any(e.message.startswith("Search failed") for e in events)
        assert not orchestrator.is_running


@pytest.mark.resilience
class TestLoginFailures:

    @pytest.mark.asyncio
    async def test_login_page_unreachable(self, session, test_config, fake_page):
        from core.verifier import AuthenticationVerifier

        fake_page.goto_error = PlaywrightTimeoutError("Timeout 30000ms exceeded")

        with pytest.raises(NavigationTimeout):
            await AuthenticationVerifier(session, test_config).verify("a@b.com", "pw")

        assert not session.authenticated
        assert not session.is_busy


@pytest.mark.resilience
class TestShutdown:

    @pytest.mark.asyncio
    async def test_close_session_waits_for_page_holder(self, authed_session):
        async with authed_session.acquire_page():
            closer = asyncio.create_task(authed_session.close_session())
            await asyncio.sleep(0.01)

            assert not closer.done()
            assert authed_session.is_active

        await asyncio.wait_for(closer, timeout=2)
        assert not authed_session.is_active

    @pytest.mark.asyncio
    async def test_logout_during_run_lets_application_finish(self, services, fake_page, fake_playwright):
        await services.session.ensure_session()
        services.session.mark_authenticated(True)

        record = ListingRecord(new_listing_id(), "A", "Acme", "Pune", "Unpaid", "Today",
                               "https://internshala.com/internship/detail/a")
        services.orchestrator.extractor.search = AsyncMock(
            return_value=SearchResult(success=True, listings=[record])
        )
        fake_page.elements["#apply_now_button"] = [FakeElement()]
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_goto(url, wait_until=None, timeout=None):
            started.set()
            await release.wait()
            fake_page.url = url

        fake_page.goto = slow_goto

        await services.orchestrator.start_run(RunConfiguration(keywords="python"))
        await asyncio.wait_for(started.wait(), timeout=2)

        shutdown = asyncio.create_task(shutdown_services(services))
        await asyncio.sleep(0.01)

        assert not shutdown.done()
        assert not fake_playwright.browser.closed
        assert services.session.is_busy

        release.set()
        await asyncio.wait_for(shutdown, timeout=2)

        assert record.status == JobStatus.APPLIED
        assert fake_playwright.browser.closed
        assert not services.session.is_active
        assert not services.orchestrator.is_running
