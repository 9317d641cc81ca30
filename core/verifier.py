"""
Authentication Verifier

Submits the operator's credentials to the login form on the shared page and
classifies the outcome. A successful login flips the session's
``authenticated`` flag, which gates search, apply and runs.
"""

import logging
from typing import Optional

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from api.config import AppConfig, get_config
from .browser import BrowserSessionManager
from .exceptions import NavigationTimeout
from .models import VerifyResult
from . import selectors

logger = logging.getLogger(__name__)

DEFAULT_LOGIN_ERROR = "Invalid credentials"


def is_authenticated_url(url: str) -> bool:
    return any(marker in (url or "") for marker in selectors.AUTHENTICATED_URL_MARKERS)


class AuthenticationVerifier:
    """Log in once ahead of a run. Safe to retry; not safe to run concurrently with a navigation."""

    def __init__(self, session: BrowserSessionManager, config: Optional[AppConfig] = None):
        self.session = session
        self.config = config or get_config()

    async def verify(self, email: str, password: str) -> VerifyResult:
        """
        Log in with ``email``/``password``.

        Returns a VerifyResult whose message is the site's own error text on
        rejection. Raises NavigationTimeout when the login page or the
        post-submit navigation does not settle in time.
        """
        async with self.session.acquire_page() as page:
            self.session.mark_authenticated(False)

            try:
                await page.goto(
                    self.config.login_url,
                    wait_until="networkidle",
                    timeout=self.config.NAVIGATION_TIMEOUT_MS,
                )
                await page.wait_for_selector(
                    selectors.LOGIN_EMAIL_INPUT,
                    timeout=self.config.SELECTOR_TIMEOUT_MS,
                )
            except PlaywrightTimeoutError as e:
                raise NavigationTimeout(f"Login page did not load: {e}") from e

            await page.locator(selectors.LOGIN_EMAIL_INPUT).press_sequentially(
                email, delay=self.config.TYPING_DELAY_MS
            )
            await page.locator(selectors.LOGIN_PASSWORD_INPUT).press_sequentially(
                password, delay=self.config.TYPING_DELAY_MS
            )

            try:
                async with page.expect_navigation(
                    wait_until="networkidle",
                    timeout=self.config.LOGIN_NAVIGATION_TIMEOUT_MS,
                ):
                    await page.click(selectors.LOGIN_SUBMIT_BUTTON)
            except PlaywrightTimeoutError as e:
                # An in-page rejection never navigates; report it like any other failure
                message = await self._error_message(page)
                if message is None:
                    raise NavigationTimeout(f"Login did not complete: {e}") from e
                logger.info(f"Login rejected without navigation: {message}")
                return VerifyResult(success=False, message=message)

            current_url = page.url
            if is_authenticated_url(current_url):
                self.session.mark_authenticated(True)
                logger.info(f"Login successful, landed on {current_url}")
                return VerifyResult(
                    success=True,
                    message="Login successful",
                    redirect_url=current_url,
                )

            message = await self._error_message(page) or DEFAULT_LOGIN_ERROR
            logger.info(f"Login failed: {message}")
            return VerifyResult(success=False, message=message)

    async def _error_message(self, page) -> Optional[str]:
        element = await page.query_selector(selectors.LOGIN_ERROR_MESSAGE)
        if element is None:
            return None
        text = (await element.text_content() or "").strip()
        return text or DEFAULT_LOGIN_ERROR
