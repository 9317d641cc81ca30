"""
Diagnostic Screenshot Service

Captures timestamp-keyed screenshots when an application attempt cannot find
its controls or blows up. Capturing is best effort: a failed capture is
logged and never changes the outcome of the attempt.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

logger = logging.getLogger(__name__)


@dataclass
class Screenshot:
    """A captured diagnostic screenshot."""
    path: Path
    label: str
    page_url: Optional[str] = None
    captured_at: datetime = field(default_factory=datetime.now)

    @property
    def filename(self) -> str:
        return self.path.name


class ScreenshotManager:
    """
    Timestamped diagnostic captures.

    Usage:
        manager = ScreenshotManager(Path("./screenshots"))
        shot = await manager.capture(page, "error_no_button")
        # -> screenshots/error_no_button_2026-10-19T16-28-03-123456.png
    """

    def __init__(self, base_dir: Path, max_screenshots: int = 500):
        self.base_dir = Path(base_dir)
        self.max_screenshots = max_screenshots
        self.captured: List[Screenshot] = []

    def _generate_path(self, label: str, timestamp: datetime) -> Path:
        stamp = timestamp.strftime("%Y-%m-%dT%H-%M-%S-%f")
        return self.base_dir / f"{label}_{stamp}.png"

    async def capture(self, page: Optional[Page], label: str) -> Optional[Screenshot]:
        """Capture the full page; returns None when nothing could be captured."""
        if page is None:
            return None
        if len(self.captured) >= self.max_screenshots:
            logger.warning(f"Screenshot limit ({self.max_screenshots}) reached, skipping {label}")
            return None

        now = datetime.now()
        path = self._generate_path(label, now)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            await page.screenshot(path=str(path), full_page=True)
        except (PlaywrightError, OSError) as e:
            logger.warning(f"Could not capture {label} screenshot: {e}")
            return None

        screenshot = Screenshot(path=path, label=label, page_url=page.url, captured_at=now)
        self.captured.append(screenshot)
        logger.info(f"Saved screenshot to {path}")
        return screenshot
