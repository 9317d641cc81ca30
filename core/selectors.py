"""Centralized selectors for the Internshala site.

All DOM selectors live here so they can be updated in one place when the
site changes its frontend. Each logical field is an ordered chain of
strategies; the first strategy that matches wins.

These are best-effort selectors based on observed page structure.
"""

import re
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple


@dataclass(frozen=True)
class SelectorStrategy:
    """Locate one element inside ``scope`` and read its text or an attribute."""
    selector: str
    attribute: Optional[str] = None

    async def __call__(self, scope: Any) -> Optional[str]:
        element = await scope.query_selector(self.selector)
        if element is None:
            return None
        if self.attribute:
            return await element.get_attribute(self.attribute)
        text = await element.text_content()
        return (text or "").strip()


@dataclass(frozen=True)
class FieldSpec:
    """A logical listing field: its strategy chain and fallback value."""
    name: str
    strategies: Tuple[SelectorStrategy, ...]
    placeholder: str


async def resolve_field(scope: Any, strategies: Sequence[SelectorStrategy]) -> Optional[str]:
    """Evaluate strategies in order; the first one that finds an element wins."""
    for strategy in strategies:
        value = await strategy(scope)
        if value is not None:
            return value
    return None


def _chain(*selectors: str, attribute: Optional[str] = None) -> Tuple[SelectorStrategy, ...]:
    return tuple(SelectorStrategy(selector, attribute) for selector in selectors)


# -- Login page ----------------------------------------------------------------

LOGIN_EMAIL_INPUT = "#email"
LOGIN_PASSWORD_INPUT = "#password"
LOGIN_SUBMIT_BUTTON = "#login_submit"
LOGIN_ERROR_MESSAGE = ".alert-danger, .error-message"

# URL fragments only reachable after a successful login
AUTHENTICATED_URL_MARKERS = ("/student/dashboard", "/student")

# -- Search results ------------------------------------------------------------

LISTING_CONTAINERS = (".individual_internship", ".internship_meta")
NO_RESULTS_MARKERS = ("#no_search_results", ".no_internships_found", "#no_internship_found")

LISTING_FIELDS = (
    FieldSpec(
        "title",
        _chain(".job-internship-name", ".profile h3 a", "h4.heading_4_5 a"),
        "Unknown Position",
    ),
    FieldSpec(
        "company",
        _chain(".company-name", ".company h4 a", ".link_display_like_text"),
        "Unknown Company",
    ),
    FieldSpec(
        "location",
        _chain(".location_link", ".locations span a", "#location_names a"),
        "Not specified",
    ),
    FieldSpec(
        "stipend",
        _chain(".stipend", ".item_body"),
        "Not disclosed",
    ),
    FieldSpec(
        "link",
        _chain('a[href*="/internship/detail/"]', "a.job-title-href", attribute="href"),
        "#",
    ),
    FieldSpec(
        "posted",
        _chain(".status-success", ".status_container span"),
        "Recently",
    ),
)

DETAIL_LINK_PATTERN = re.compile(r"/internship/detail/")

# -- Detail page / application -------------------------------------------------

NOT_FOUND_TITLE_MARKERS = ("404", "Not Found")
ALREADY_APPLIED_MARKER = ".already_applied, .btn-disabled, .applied_message"

APPLY_BUTTONS = (
    "#apply_now_button",
    ".btn.btn-primary.campaign",
    "button.view_detail_button",
    ".apply_now_button",
    "#easy_apply_button",
)

CONTINUE_BUTTON = "#continue_button, .continue_button"

SUBMIT_BUTTONS = (
    "#submit",
    'button[type="submit"]',
    ".submit_button",
    "#apply_button",
)

SUCCESS_MARKER = ".success-message, .alert-success, .applied_success"
SUCCESS_URL_FRAGMENT = "/application/success"
