"""
Answer Form Filling

Fills screening-question answers positionally: answer ``i`` goes to the
``i``-th answer field found on the application form. Field lookup is an
ordered table of strategies; values are written inside the page and
``input``/``change`` events are dispatched so the site's own listeners see
the change.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from .models import AnswerTemplate

logger = logging.getLogger(__name__)

SET_VALUE_SCRIPT = """(el, text) => {
    el.value = text;
    el.dispatchEvent(new Event('input', { bubbles: true }));
    el.dispatchEvent(new Event('change', { bubbles: true }));
}"""


@dataclass(frozen=True)
class FieldStrategy:
    """
    One way of locating the answer field for question ``index``.

    ``indexed`` strategies embed the index in the selector itself, so their
    first match is the field for any index. Positional strategies pick the
    ``index``-th match, and accept a lone match only for the first question.
    """
    name: str
    selector_template: str
    indexed: bool = False

    def selector(self, index: int) -> str:
        return self.selector_template.format(index=index)

    def pick(self, match_count: int, index: int) -> Optional[int]:
        """Position of the element to fill among ``match_count`` matches, or None."""
        if self.indexed:
            return 0 if match_count >= 1 else None
        if match_count > index:
            return index
        if match_count == 1 and index == 0:
            return 0
        return None


ANSWER_FIELD_STRATEGIES = (
    FieldStrategy("named", 'textarea[name="answer_{index}"]', indexed=True),
    FieldStrategy("cover_letter", "#cover_letter_holder textarea"),
    FieldStrategy("form_control", ".form-control"),
    FieldStrategy("textarea", "textarea"),
)


@dataclass
class FilledField:
    """Record of a filled answer field."""
    index: int
    strategy: str


@dataclass
class FillResult:
    """Result of filling the answer fields."""
    filled: List[FilledField] = field(default_factory=list)
    missed: List[int] = field(default_factory=list)
    skipped_empty: List[int] = field(default_factory=list)

    @property
    def filled_count(self) -> int:
        return len(self.filled)


class FormFiller:
    """
    Best-effort positional answer filling.

    Usage:
        filler = FormFiller()
        result = await filler.fill_answers(page, answers)
        if result.missed:
            ...  # submission still goes ahead
    """

    def __init__(self, strategies: Sequence[FieldStrategy] = ANSWER_FIELD_STRATEGIES):
        self.strategies = tuple(strategies)

    async def fill_answers(self, page: Page, answers: Sequence[AnswerTemplate]) -> FillResult:
        result = FillResult()
        logger.info(f"Filling {len(answers)} answer(s)")

        for index, template in enumerate(answers):
            if not template.answer:
                result.skipped_empty.append(index)
                continue

            strategy = await self.fill_one(page, index, template.answer)
            if strategy:
                logger.info(f"Filled answer {index + 1} via {strategy}")
                result.filled.append(FilledField(index=index, strategy=strategy))
            else:
                logger.warning(f"Could not fill answer {index + 1}")
                result.missed.append(index)

        return result

    async def fill_one(self, page: Page, index: int, text: str) -> Optional[str]:
        """Fill answer ``index``; returns the winning strategy name or None."""
        for strategy in self.strategies:
            try:
                elements = await page.query_selector_all(strategy.selector(index))
            except PlaywrightError as e:
                logger.debug(f"Strategy {strategy.name} failed for answer {index + 1}: {e}")
                continue

            position = strategy.pick(len(elements), index)
            if position is None:
                continue

            await elements[position].evaluate(SET_VALUE_SCRIPT, text)
            return strategy.name
        return None
