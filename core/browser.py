#!/usr/bin/env python3
"""
Browser Session Manager

Owns the single headless Chromium process and the single page every
navigation-driving operation (login, search, apply) runs on. Callers go
through ``acquire_page()`` so two operations never interleave navigations
on the shared page.

Example:
    from core.browser import get_session_manager

    manager = get_session_manager()
    async with manager.acquire_page() as page:
        await page.goto("https://internshala.com")

    await manager.close_session()
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional, Dict, Any, Callable, AsyncIterator

from playwright.async_api import async_playwright, Browser, BrowserContext, Page, Playwright
from playwright.async_api import Error as PlaywrightError

from api.config import AppConfig, get_config
from .exceptions import Unauthenticated

logger = logging.getLogger(__name__)

LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]


class BrowserSessionManager:
    """
    Process-wide owner of one browser, one page and the ``authenticated`` flag.

    Launching is serialized by ``_launch_lock``; page use is serialized by
    ``_page_lock``. Both are asyncio locks, so the manager must be used from
    one event loop.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        playwright_factory: Callable[[], Any] = async_playwright,
    ):
        self.config = config or get_config()
        self._playwright_factory = playwright_factory

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        self._authenticated = False
        self._launches = 0

        self._launch_lock = asyncio.Lock()
        self._page_lock = asyncio.Lock()

    # === State ===

    @property
    def authenticated(self) -> bool:
        return self._authenticated

    @property
    def is_active(self) -> bool:
        """True while a browser process is running."""
        return self._browser is not None

    @property
    def is_busy(self) -> bool:
        """True while some operation holds the page."""
        return self._page_lock.locked()

    def mark_authenticated(self, value: bool) -> None:
        self._authenticated = bool(value) and self._browser is not None

    def require_authenticated(self) -> None:
        """Fail fast for entry points that need a logged-in session."""
        if not self._authenticated:
            raise Unauthenticated()

    # === Lifecycle ===

    async def ensure_session(self) -> Page:
        """
        Return the shared page, launching the browser on first use.

        Idempotent: an existing open page is returned as is. A page that was
        closed underneath us is replaced in the same context so cookies (and
        therefore the login) survive.
        """
        async with self._launch_lock:
            if self._page is not None and not self._page.is_closed():
                return self._page

            if self._browser is None:
                await self._launch()
            elif self._page is not None:
                logger.warning("Shared page was closed; opening a replacement")

            self._page = await self._context.new_page()
            return self._page

    async def _launch(self):
        logger.info(f"Launching browser (headless={self.config.HEADLESS})")
        self._playwright = await self._playwright_factory().start()
        try:
            self._browser = await self._playwright.chromium.launch(
                headless=self.config.HEADLESS,
                args=LAUNCH_ARGS,
            )
            self._context = await self._browser.new_context(
                viewport=self.config.viewport,
                user_agent=self.config.USER_AGENT,
                locale="en-US",
            )
        except PlaywrightError:
            await self._playwright.stop()
            self._playwright = None
            self._browser = None
            self._context = None
            raise
        self._launches += 1

    @asynccontextmanager
    async def acquire_page(self) -> AsyncIterator[Page]:
        """Exclusive use of the shared page for the duration of the block."""
        async with self._page_lock:
            page = await self.ensure_session()
            yield page

    async def close_session(self):
        """
        Terminate the browser process and forget the login. No-op without a session.

        Waits for the operation holding the page to finish first.
        """
        async with self._page_lock, self._launch_lock:
            if self._browser is None and self._playwright is None:
                self._authenticated = False
                return

            try:
                if self._browser is not None:
                    await self._browser.close()
                if self._playwright is not None:
                    await self._playwright.stop()
                logger.info("Browser session closed")
            except PlaywrightError as e:
                logger.error(f"Error closing browser session: {e}")
            finally:
                self._playwright = None
                self._browser = None
                self._context = None
                self._page = None
                self._authenticated = False

    def get_stats(self) -> Dict[str, Any]:
        """Get session manager statistics."""
        return {
            "browser_active": self.is_active,
            "authenticated": self._authenticated,
            "busy": self.is_busy,
            "launches": self._launches,
        }

    async def __aenter__(self):
        await self.ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close_session()


# Singleton instance
_session_manager: Optional[BrowserSessionManager] = None


def get_session_manager() -> BrowserSessionManager:
    """Get or create singleton session manager instance."""
    global _session_manager
    if _session_manager is None:
        _session_manager = BrowserSessionManager()
    return _session_manager


def reset_session_manager():
    """Reset the singleton instance (for testing)."""
    global _session_manager
    _session_manager = None
