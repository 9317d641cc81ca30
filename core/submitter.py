"""
Application Submitter

Drives one application on the shared page: open the listing, detect terminal
page states, find and click the apply button, fill screening answers, submit
and look for a confirmation. Every wait is bounded; the control lookups walk
the fallback tables in core.selectors.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from api.config import AppConfig, get_config
from .browser import BrowserSessionManager
from .exceptions import ErrorCategory
from .form_filler import FormFiller
from .models import AnswerTemplate, ApplyResult, ApplyStatus
from .screenshot_manager import ScreenshotManager
from . import selectors

logger = logging.getLogger(__name__)

ASSUMED_SUCCESS_MESSAGE = "Application process completed (verification recommended)"
CONFIRMED_SUCCESS_MESSAGE = "Application submitted successfully"


class ApplicationSubmitter:
    """
    Submit applications to listing detail pages.

    Usage:
        submitter = ApplicationSubmitter(get_session_manager())
        result = await submitter.apply(listing.link, answers)
        if result.success and not result.verified:
            ...  # nothing went wrong, but no confirmation was seen
    """

    def __init__(
        self,
        session: BrowserSessionManager,
        config: Optional[AppConfig] = None,
        form_filler: Optional[FormFiller] = None,
        screenshots: Optional[ScreenshotManager] = None,
    ):
        self.session = session
        self.config = config or get_config()
        self.form_filler = form_filler or FormFiller()
        self.screenshots = screenshots or ScreenshotManager(Path(self.config.SCREENSHOT_DIR))

    async def apply(self, detail_url: str, answers: Sequence[AnswerTemplate] = ()) -> ApplyResult:
        """
        Apply to the listing at ``detail_url``.

        Raises:
            Unauthenticated: before the page is touched, when not logged in.

        Every other failure comes back as an ApplyResult.
        """
        self.session.require_authenticated()

        async with self.session.acquire_page() as page:
            try:
                return await self._apply(page, detail_url, answers)
            except Exception as e:
                logger.error(f"Application to {detail_url} failed: {e}", exc_info=True)
                shot = await self.screenshots.capture(page, "error_apply")
                return ApplyResult(
                    success=False,
                    status=ApplyStatus.FAILED,
                    message=f"Application failed: {e}",
                    screenshot_path=str(shot.path) if shot else None,
                    failure=ErrorCategory.UNKNOWN_REMOTE_BEHAVIOR,
                )

    async def _apply(self, page, detail_url: str, answers: Sequence[AnswerTemplate]) -> ApplyResult:
        logger.info(f"Applying to {detail_url}")
        try:
            await page.goto(
                detail_url,
                wait_until="domcontentloaded",
                timeout=self.config.APPLY_NAVIGATION_TIMEOUT_MS,
            )
        except PlaywrightError as e:
            # The page is often usable even when the load event never fires
            logger.warning(f"Navigation to {detail_url} did not complete: {e}")

        await asyncio.sleep(self.config.SETTLE_DELAY_SECONDS)

        terminal = await self._terminal_state(page)
        if terminal:
            return terminal

        apply_button = await self._probe(page, selectors.APPLY_BUTTONS)
        if apply_button is None:
            logger.warning(f"No apply button on {detail_url}")
            shot = await self.screenshots.capture(page, "error_no_button")
            return ApplyResult(
                success=False,
                status=ApplyStatus.BUTTON_NOT_FOUND,
                message="Apply button not found",
                screenshot_path=str(shot.path) if shot else None,
                failure=ErrorCategory.SELECTOR_MISS,
            )

        await self._click(apply_button)
        await asyncio.sleep(self.config.SETTLE_DELAY_SECONDS)

        continue_button = await self._probe(page, (selectors.CONTINUE_BUTTON,))
        if continue_button is not None:
            await self._click(continue_button)
            await asyncio.sleep(self.config.SHORT_SETTLE_SECONDS)

        if answers:
            fill = await self.form_filler.fill_answers(page, answers)
            if fill.filled:
                await asyncio.sleep(self.config.FILL_SETTLE_SECONDS)

        submit_button = await self._probe(page, selectors.SUBMIT_BUTTONS)
        if submit_button is not None:
            await self._click(submit_button)
            await asyncio.sleep(self.config.SETTLE_DELAY_SECONDS)

            if await self._confirmed(page):
                logger.info(f"Application to {detail_url} confirmed")
                return ApplyResult(
                    success=True,
                    status=ApplyStatus.APPLIED,
                    message=CONFIRMED_SUCCESS_MESSAGE,
                    verified=True,
                )
        else:
            logger.info("No submit button found; assuming single-step application")

        logger.warning(f"No confirmation seen for {detail_url}")
        return ApplyResult(
            success=True,
            status=ApplyStatus.APPLIED,
            message=ASSUMED_SUCCESS_MESSAGE,
            verified=False,
        )

    async def _terminal_state(self, page) -> Optional[ApplyResult]:
        title = await page.title() or ""
        if any(marker in title for marker in selectors.NOT_FOUND_TITLE_MARKERS):
            return ApplyResult(
                success=False,
                status=ApplyStatus.FAILED,
                message="Internship page not found (404)",
                failure=ErrorCategory.NOT_FOUND,
            )

        if await page.query_selector(selectors.ALREADY_APPLIED_MARKER) is not None:
            logger.info("Already applied to this internship")
            return ApplyResult(
                success=False,
                status=ApplyStatus.ALREADY_APPLIED,
                message="Already applied to this internship",
                failure=ErrorCategory.ALREADY_APPLIED,
            )
        return None

    async def _probe(self, page, candidates: Sequence[str]):
        """First candidate selector that appears within the probe timeout."""
        for selector in candidates:
            try:
                element = await page.wait_for_selector(
                    selector,
                    timeout=self.config.PROBE_TIMEOUT_MS,
                )
            except PlaywrightTimeoutError:
                continue
            if element is not None:
                logger.debug(f"Matched {selector}")
                return element
        return None

    async def _click(self, element):
        try:
            await element.click(timeout=self.config.PROBE_TIMEOUT_MS)
        except PlaywrightError as e:
            logger.debug(f"Native click failed ({e}); clicking from page script")
            await element.evaluate("el => el.click()")

    async def _confirmed(self, page) -> bool:
        if await page.query_selector(selectors.SUCCESS_MARKER) is not None:
            return True
        return selectors.SUCCESS_URL_FRAGMENT in (page.url or "")
