"""
Tests for positional answer filling.
"""

import pytest

from playwright.async_api import Error as PlaywrightError

from conftest import FakeElement, FakePage
from core.form_filler import ANSWER_FIELD_STRATEGIES, FieldStrategy, FormFiller, SET_VALUE_SCRIPT
from core.models import AnswerTemplate


class TestFieldStrategy:

    def test_indexed_strategy_uses_single_match(self):
        strategy = FieldStrategy("named", 'textarea[name="answer_{index}"]', indexed=True)
        assert strategy.selector(2) == 'textarea[name="answer_2"]'
        assert strategy.pick(1, 2) == 0
        assert strategy.pick(0, 2) is None

    @pytest.mark.parametrize("count,index,expected", [
        (3, 0, 0),
        (3, 2, 2),
        (2, 2, None),
        (1, 0, 0),
        (1, 1, None),
        (0, 0, None),
    ])
    def test_positional_pick(self, count, index, expected):
        assert FieldStrategy("textarea", "textarea").pick(count, index) == expected

    def test_strategy_order(self):
        assert [s.name for s in ANSWER_FIELD_STRATEGIES] == [
            "named", "cover_letter", "form_control", "textarea",
        ]


class TestFormFiller:

    @pytest.mark.asyncio
    async def test_answer_i_goes_to_field_i(self):
        fields = [FakeElement(), FakeElement(), FakeElement()]
        page = FakePage(elements={"textarea": fields})
        answers = [AnswerTemplate("q1", "a1"), AnswerTemplate("q2", "a2"), AnswerTemplate("q3", "a3")]

        result = await FormFiller().fill_answers(page, answers)

        assert [f.value for f in fields] == ["a1", "a2", "a3"]
        assert result.filled_count == 3
        assert result.missed == []

    @pytest.mark.asyncio
    async def test_index_qualified_field_wins(self):
        named = FakeElement()
        generic = [FakeElement(), FakeElement()]
        page = FakePage(elements={'textarea[name="answer_1"]': [named], "textarea": generic})
        answers = [AnswerTemplate("q1", "first"), AnswerTemplate("q2", "second")]

        result = await FormFiller().fill_answers(page, answers)

        assert generic[0].value == "first"
        assert named.value == "second"
        assert generic[1].value is None
        assert [f.strategy for f in result.filled] == ["textarea", "named"]

    @pytest.mark.asyncio
    async def test_cover_letter_before_generic_fields(self):
        cover = FakeElement()
        other = FakeElement()
        page = FakePage(elements={"#cover_letter_holder textarea": [cover], ".form-control": [other]})

        await FormFiller().fill_answers(page, [AnswerTemplate("Why?", "Because.")])

        assert cover.value == "Because."
        assert other.value is None

    @pytest.mark.asyncio
    async def test_unmatched_answer_is_skipped(self):
        only = FakeElement()
        page = FakePage(elements={"textarea": [only]})
        answers = [AnswerTemplate("q1", "a1"), AnswerTemplate("q2", "a2")]

        result = await FormFiller().fill_answers(page, answers)

        assert only.value == "a1"
        assert result.missed == [1]

    @pytest.mark.asyncio
    async def test_empty_answers_are_skipped(self):
        fields = [FakeElement(), FakeElement()]
        page = FakePage(elements={"textarea": fields})
        answers = [AnswerTemplate("q1", ""), AnswerTemplate("q2", "a2")]

        result = await FormFiller().fill_answers(page, answers)

        assert fields[0].value is None
        assert fields[1].value == "a2"
        assert result.skipped_empty == [0]

    @pytest.mark.asyncio
    async def test_value_set_in_page_with_events(self):
        field = FakeElement()
        page = FakePage(elements={"textarea": [field]})

        await FormFiller().fill_answers(page, [AnswerTemplate("q", "text")])

        assert field.scripts == [SET_VALUE_SCRIPT]
        assert "'input'" in SET_VALUE_SCRIPT and "'change'" in SET_VALUE_SCRIPT
        assert SET_VALUE_SCRIPT.count("bubbles: true") == 2

    @pytest.mark.asyncio
    async def test_failing_strategy_falls_through(self):
        class FlakyPage(FakePage):
            async def query_selector_all(self, selector):
                if selector.startswith("textarea[name="):
                    raise PlaywrightError("Unsupported selector")
                return await super().query_selector_all(selector)

        field = FakeElement()
        page = FlakyPage(elements={".form-control": [field]})

        result = await FormFiller().fill_answers(page, [AnswerTemplate("q", "a")])

        assert field.value == "a"
        assert result.filled[0].strategy == "form_control"
