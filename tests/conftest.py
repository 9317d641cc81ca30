"""
Pytest fixtures and configuration for the InternBot test suite.

The browser is replaced by small in-memory fakes of the Playwright objects the
engine touches (page, element, locator, browser, context), so every test runs
without Chromium or network access.
"""

import pytest
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Dict, List, Optional

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

# Add project root to path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))


def _split(selector: str) -> List[str]:
    return [part.strip() for part in selector.split(",") if part.strip()]


class FakeElement:
    """Stand-in for an ElementHandle; children are keyed by exact selector."""

    def __init__(self, text: Optional[str] = None, attrs: Optional[Dict[str, str]] = None,
                 children: Optional[Dict[str, list]] = None, click_error: Optional[Exception] = None,
                 on_click=None):
        self.text = text
        self.attrs = attrs or {}
        self.children = children or {}
        self.click_error = click_error
        self.on_click = on_click
        self.value = None
        self.clicks = 0
        self.script_clicks = 0
        self.scripts: List[str] = []

    async def query_selector(self, selector):
        matches = await self.query_selector_all(selector)
        return matches[0] if matches else None

    async def query_selector_all(self, selector):
        if selector in self.children:
            return list(self.children[selector])
        found = []
        for part in _split(selector):
            found.extend(self.children.get(part, []))
        return found

    async def text_content(self):
        return self.text

    async def get_attribute(self, name):
        return self.attrs.get(name)

    async def click(self, timeout=None):
        if self.click_error is not None:
            raise self.click_error
        self.clicks += 1
        if self.on_click:
            self.on_click()

    async def evaluate(self, script, arg=None):
        self.scripts.append(script)
        if "el.click()" in script:
            self.script_clicks += 1
        if "el.value" in script:
            self.value = arg


class FakeLocator:
    def __init__(self, page, selector):
        self.page = page
        self.selector = selector

    async def press_sequentially(self, text, delay=None):
        self.page.typed[self.selector] = text


class FakePage(FakeElement):
    """
    Stand-in for a Playwright Page.

    ``elements`` maps selectors to lists of FakeElement. ``after_goto`` and
    ``after_click`` are hooks that can mutate the page to simulate navigation.
    """

    def __init__(self, url: str = "about:blank", title: str = "Internshala", elements=None):
        super().__init__(children=elements or {})
        self.url = url
        self.title_text = title
        self.closed = False
        self.visited: List[dict] = []
        self.typed: Dict[str, str] = {}
        self.clicked: List[str] = []
        self.screenshots: List[str] = []

        self.goto_error: Optional[Exception] = None
        self.screenshot_error: Optional[Exception] = None
        self.after_goto = None
        self.after_click = None
        self.navigation_url: Optional[str] = None
        self.navigation_timeout = False

    @property
    def elements(self):
        return self.children

    async def goto(self, url, wait_until=None, timeout=None):
        self.visited.append({"url": url, "wait_until": wait_until, "timeout": timeout})
        if self.goto_error is not None:
            raise self.goto_error
        self.url = url
        if self.after_goto:
            self.after_goto(self, url)

    async def wait_for_selector(self, selector, timeout=None, state=None):
        element = await self.query_selector(selector)
        if element is None:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")
        return element

    async def title(self):
        return self.title_text

    def locator(self, selector):
        return FakeLocator(self, selector)

    @asynccontextmanager
    async def _navigation(self):
        yield
        if self.navigation_timeout:
            raise PlaywrightTimeoutError("Timeout 15000ms exceeded waiting for navigation")
        if self.navigation_url:
            self.url = self.navigation_url

    def expect_navigation(self, wait_until=None, timeout=None):
        return self._navigation()

    async def click(self, selector, timeout=None):
        self.clicked.append(selector)
        if self.after_click:
            self.after_click(self, selector)

    async def screenshot(self, path=None, full_page=False):
        if self.screenshot_error is not None:
            raise self.screenshot_error
        self.screenshots.append(path)
        Path(path).write_bytes(b"png")

    def is_closed(self):
        return self.closed

    async def close(self):
        self.closed = True


class FakeContext:
    def __init__(self, pages):
        self._pages = list(pages)
        self.opened = 0

    async def new_page(self):
        self.opened += 1
        if len(self._pages) > 1:
            return self._pages.pop(0)
        return self._pages[0]


class FakeBrowser:
    def __init__(self, pages):
        self.context = FakeContext(pages)
        self.context_options = None
        self.closed = False
        self.close_error: Optional[Exception] = None

    async def new_context(self, **options):
        self.context_options = options
        return self.context

    async def close(self):
        self.closed = True
        if self.close_error is not None:
            raise self.close_error


class FakeChromium:
    def __init__(self, owner):
        self.owner = owner

    async def launch(self, headless=True, args=None):
        self.owner.launches += 1
        self.owner.launch_args = args
        if self.owner.launch_error is not None:
            raise self.owner.launch_error
        self.owner.browser = FakeBrowser(self.owner.pages)
        return self.owner.browser


class FakePlaywright:
    """Replaces ``async_playwright``: ``FakePlaywright(page)().start()``."""

    def __init__(self, *pages):
        self.pages = list(pages) or [FakePage()]
        self.launches = 0
        self.launch_args = None
        self.launch_error: Optional[Exception] = None
        self.browser: Optional[FakeBrowser] = None
        self.stopped = 0
        self.chromium = FakeChromium(self)

    def __call__(self):
        return self

    async def start(self):
        return self

    async def stop(self):
        self.stopped += 1


def make_card(title=None, company=None, location=None, stipend=None, link=None, posted=None):
    """A search-result card using the primary selector of each field."""
    children = {}
    if title is not None:
        children[".job-internship-name"] = [FakeElement(title)]
    if company is not None:
        children[".company-name"] = [FakeElement(company)]
    if location is not None:
        children[".location_link"] = [FakeElement(location)]
    if stipend is not None:
        children[".stipend"] = [FakeElement(stipend)]
    if link is not None:
        children['a[href*="/internship/detail/"]'] = [FakeElement(attrs={"href": link})]
    if posted is not None:
        children[".status-success"] = [FakeElement(posted)]
    return FakeElement(children=children)


# === Config / Session Fixtures ===

@pytest.fixture
def test_config(tmp_path):
    """Config with every delay zeroed and screenshots in a temp dir."""
    from api.config import AppConfig
    return AppConfig(
        BASE_URL="https://internshala.com",
        SETTLE_DELAY_SECONDS=0,
        SHORT_SETTLE_SECONDS=0,
        FILL_SETTLE_SECONDS=0,
        RUN_JOB_DELAY_SECONDS=0,
        TYPING_DELAY_MS=0,
        SCREENSHOT_DIR=str(tmp_path / "screenshots"),
        MODEL_API_KEY=None,
    )


@pytest.fixture
def fake_page():
    return FakePage()


@pytest.fixture
def fake_playwright(fake_page):
    return FakePlaywright(fake_page)


@pytest.fixture
def session(test_config, fake_playwright):
    from core.browser import BrowserSessionManager
    return BrowserSessionManager(test_config, playwright_factory=fake_playwright)


@pytest.fixture
async def authed_session(session):
    """Session with a launched fake browser and the login flag set."""
    await session.ensure_session()
    session.mark_authenticated(True)
    return session


# === Test Environment Setup ===

@pytest.fixture(autouse=True)
def setup_test_env():
    """Setup test environment variables."""
    os.environ.setdefault("TESTING", "true")
    os.environ.pop("MODEL_API_KEY", None)
    yield


# === API Test Client ===

@pytest.fixture
def services(test_config, session):
    from api.main import Services
    from ai.answer_generator import AnswerGenerator
    from core.answer_store import AnswerStore
    from core.event_log import EventLog
    from core.extractor import ListingExtractor
    from core.orchestrator import JobOrchestrator
    from core.submitter import ApplicationSubmitter
    from core.verifier import AuthenticationVerifier

    extractor = ListingExtractor(session, test_config)
    submitter = ApplicationSubmitter(session, test_config)
    event_log = EventLog()
    return Services(
        session=session,
        verifier=AuthenticationVerifier(session, test_config),
        extractor=extractor,
        submitter=submitter,
        orchestrator=JobOrchestrator(session, extractor, submitter, event_log, test_config),
        event_log=event_log,
        answers=AnswerStore(),
        generator=AnswerGenerator(test_config),
    )


@pytest.fixture
def client(services):
    """
    Test client wired to fake services.
    Uses dependency_overrides so no real browser is ever launched.
    """
    from fastapi.testclient import TestClient
    from api.main import app, get_services

    original = app.state.services
    app.state.services = services
    app.dependency_overrides[get_services] = lambda: services

    try:
        with TestClient(app, raise_server_exceptions=False) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(get_services, None)
        app.state.services = original


# === Markers ===

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "resilience: Failure mode and degradation tests")
