"""Tests for the radio-button rule engine."""
from __future__ import annotations

import pytest

from autofiller.filler import FieldFiller
from autofiller.radio import GenericRadioRule, RadioRuleEngine, RadioRuleStore, is_affirmative
from autofiller.storage import MemoryStorage

from .helpers import make_context

DIRECTORY_FORM = """
<form>
  <input type="radio" name="productType" value="001">
  <input type="radio" name="productType" value="002" checked>
</form>
"""

CONSENT_FORM = """
<form>
  <input type="radio" name="agree_terms" value="yes">
  <input type="radio" name="agree_terms" value="no">
</form>
"""


def build_engine(html: str, url: str = "https://example.com/form", storage: MemoryStorage | None = None, **kwargs):
    context = make_context(html, url=url)
    filler = FieldFiller(context)
    store = RadioRuleStore(storage if storage is not None else MemoryStorage())
    return context, RadioRuleEngine(context, filler, store, **kwargs)


async def checked_values(context, name: str) -> list[str]:
    values = []
    for element in await context.document.query_selector_all(f'input[name="{name}"]'):
        info = await element.describe()
        if info.checked:
            values.append(info.value)
    return values


@pytest.mark.asyncio
async def test_origin_rule_applies_on_matching_origin_only() -> None:
    context, engine = build_engine(DIRECTORY_FORM, url="https://www.allstatesusadirectory.com/submit.php")
    other_context, other_engine = build_engine(DIRECTORY_FORM, url="https://example.com/submit.php")

    assert await engine.apply() == 1
    assert await other_engine.apply() == 0
    assert await checked_values(context, "productType") == ["001"]
    assert await checked_values(other_context, "productType") == ["002"]
    await engine.filler.wait_for_highlights()


@pytest.mark.asyncio
async def test_reapplying_to_checked_radio_is_a_no_op() -> None:
    context, engine = build_engine(DIRECTORY_FORM, url="https://www.hitwebdirectory.com/submit.php")
    target = context.document.select_one('input[value="001"]')

    assert await engine.apply() == 1
    events_after_first = list(target.events)
    assert await engine.apply() == 0

    assert target.events == events_after_first == ["input", "change", "blur"]
    await engine.filler.wait_for_highlights()


@pytest.mark.asyncio
async def test_generic_rule_checks_affirmative_consent_radio() -> None:
    context, engine = build_engine(CONSENT_FORM)

    assert await engine.apply() == 1
    assert await engine.apply() == 0
    assert await checked_values(context, "agree_terms") == ["yes"]
    await engine.filler.wait_for_highlights()


@pytest.mark.asyncio
async def test_generic_rule_leaves_existing_choice_alone() -> None:
    context, engine = build_engine(CONSENT_FORM.replace('value="no"', 'value="no" checked'))

    assert await engine.apply() == 0
    assert await checked_values(context, "agree_terms") == ["no"]


@pytest.mark.asyncio
async def test_persisted_user_rules_apply_when_enabled() -> None:
    storage = MemoryStorage(
        {
            "radioButtonSelections": {
                'input[name="plan"][value="pro"]': True,
                'input[name="billing"][value="yearly"]': False,
            }
        }
    )
    context, engine = build_engine(
        """
        <input type="radio" name="plan" value="free">
        <input type="radio" name="plan" value="pro">
        <input type="radio" name="billing" value="monthly">
        <input type="radio" name="billing" value="yearly">
        """,
        storage=storage,
    )

    await engine.load_rules()

    assert await engine.apply() == 1
    assert await checked_values(context, "plan") == ["pro"]
    assert await checked_values(context, "billing") == []
    await engine.filler.wait_for_highlights()


@pytest.mark.asyncio
async def test_add_rule_persists_without_applying() -> None:
    storage = MemoryStorage()
    context, engine = build_engine('<input type="radio" name="plan" value="pro">', storage=storage)

    await engine.add_rule('input[name="plan"][value="pro"]')

    assert storage.snapshot()["radioButtonSelections"] == {'input[name="plan"][value="pro"]': True}
    assert await checked_values(context, "plan") == []

    assert await engine.apply() == 1
    assert await engine.remove_rule('input[name="plan"][value="pro"]')
    assert not await engine.remove_rule('input[name="plan"][value="pro"]')
    assert storage.snapshot()["radioButtonSelections"] == {}
    await engine.filler.wait_for_highlights()


@pytest.mark.asyncio
async def test_malformed_pattern_does_not_block_other_rules() -> None:
    storage = MemoryStorage({"radioButtonSelections": {"input[": True, 'input[value="pro"]': True}})
    context, engine = build_engine('<input type="radio" name="plan" value="pro">', storage=storage)
    await engine.load_rules()

    assert await engine.apply() == 1
    await engine.filler.wait_for_highlights()


@pytest.mark.asyncio
async def test_disabled_engine_applies_nothing() -> None:
    context, engine = build_engine(CONSENT_FORM)
    engine.set_enabled(False)

    assert await engine.apply() == 0
    assert await checked_values(context, "agree_terms") == []


@pytest.mark.asyncio
async def test_select_by_value_matches_label_case_insensitively() -> None:
    context, engine = build_engine(
        """
        <label><input type="radio" name="size" value="s"> Small</label>
        <label><input type="radio" name="size" value="l"> Large</label>
        """,
        generic_rules=(),
    )

    assert await engine.select_by_value("size", "large")
    assert not await engine.select_by_value("size", "medium")
    assert await checked_values(context, "size") == ["l"]
    await engine.filler.wait_for_highlights()


@pytest.mark.asyncio
async def test_store_round_trips_rules() -> None:
    store = RadioRuleStore(MemoryStorage())

    await store.add("#opt-in", should_apply=False)
    rules = await store.load()

    assert rules["#opt-in"].should_apply is False
    assert await store.remove("#opt-in")
    assert await store.load() == {}


def test_affirmative_tokens() -> None:
    assert is_affirmative("yes")
    assert is_affirmative("I_Agree")
    assert is_affirmative("accepted")
    assert not is_affirmative("no")
    assert not is_affirmative("do_not_agree")
    assert not is_affirmative("")


def test_generic_rule_requires_keyword_in_name_or_id() -> None:
    from autofiller.page.base import ControlInfo

    rule = GenericRadioRule()

    assert rule.matches(ControlInfo(tag="input", type="radio", element_id="consent-yes", value="yes"))
    assert not rule.matches(ControlInfo(tag="input", type="radio", name="newsletter", value="yes"))
