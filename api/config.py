"""
Unified Configuration Module for InternBot

All configuration settings are centralized here.
Import from this module: from api.config import config
"""

import os
from typing import List, Optional
from dataclasses import dataclass, field


@dataclass
class AppConfig:
    """Unified application configuration."""

    # === Server Settings ===
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "3001"))
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # === CORS Settings ===
    CORS_ORIGINS: List[str] = field(default_factory=lambda: [
        origin.strip() for origin in
        os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
        if origin.strip()
    ])
    CORS_ALLOW_CREDENTIALS: bool = True

    # === Remote Site ===
    BASE_URL: str = os.getenv("INTERNSHALA_BASE_URL", "https://internshala.com")

    # === Browser Session ===
    HEADLESS: bool = os.getenv("HEADLESS", "true").lower() == "true"
    VIEWPORT_WIDTH: int = int(os.getenv("VIEWPORT_WIDTH", "1280"))
    VIEWPORT_HEIGHT: int = int(os.getenv("VIEWPORT_HEIGHT", "800"))
    USER_AGENT: str = os.getenv(
        "USER_AGENT",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    )

    # === Timeouts (milliseconds) ===
    NAVIGATION_TIMEOUT_MS: int = int(os.getenv("NAVIGATION_TIMEOUT_MS", "30000"))
    LOGIN_NAVIGATION_TIMEOUT_MS: int = int(os.getenv("LOGIN_NAVIGATION_TIMEOUT_MS", "15000"))
    SELECTOR_TIMEOUT_MS: int = int(os.getenv("SELECTOR_TIMEOUT_MS", "10000"))
    PROBE_TIMEOUT_MS: int = int(os.getenv("PROBE_TIMEOUT_MS", "2000"))
    APPLY_NAVIGATION_TIMEOUT_MS: int = int(os.getenv("APPLY_NAVIGATION_TIMEOUT_MS", "60000"))

    # === Human-like Delays ===
    SETTLE_DELAY_SECONDS: float = float(os.getenv("SETTLE_DELAY_SECONDS", "3.0"))
    SHORT_SETTLE_SECONDS: float = float(os.getenv("SHORT_SETTLE_SECONDS", "1.0"))
    FILL_SETTLE_SECONDS: float = float(os.getenv("FILL_SETTLE_SECONDS", "0.5"))
    TYPING_DELAY_MS: int = int(os.getenv("TYPING_DELAY_MS", "100"))

    # === Search / Run ===
    MAX_LISTINGS: int = int(os.getenv("MAX_LISTINGS", "20"))
    RUN_JOB_DELAY_SECONDS: float = float(os.getenv("RUN_JOB_DELAY_SECONDS", "5.0"))

    # === AI Service ===
    MODEL_API_KEY: Optional[str] = (
        os.getenv("MODEL_API_KEY")
        or os.getenv("OPENAI_API_KEY")
    )
    MODEL_NAME: str = os.getenv("MODEL_NAME", "gpt-4o")
    MODEL_BASE_URL: str = os.getenv("MODEL_BASE_URL", "https://api.openai.com/v1")
    AI_MAX_RETRIES: int = int(os.getenv("AI_MAX_RETRIES", "3"))
    AI_TIMEOUT_SECONDS: int = int(os.getenv("AI_TIMEOUT_SECONDS", "30"))

    # === Paths ===
    SCREENSHOT_DIR: str = os.getenv("SCREENSHOT_DIR", "./screenshots")
    LOG_DIR: str = os.getenv("LOG_DIR", "./logs")

    @property
    def viewport(self) -> dict:
        """Viewport dictionary in the shape Playwright expects."""
        return {"width": self.VIEWPORT_WIDTH, "height": self.VIEWPORT_HEIGHT}

    @property
    def login_url(self) -> str:
        return f"{self.BASE_URL.rstrip('/')}/login"

    def validate(self) -> List[str]:
        """Validate configuration and return list of missing optional settings."""
        missing = []

        # Answer generation degrades to a disabled message without a key
        if not self.MODEL_API_KEY:
            missing.append("MODEL_API_KEY (or OPENAI_API_KEY)")

        return missing


# Global config instance
config = AppConfig()


def get_config() -> AppConfig:
    """Get the application configuration."""
    return config
