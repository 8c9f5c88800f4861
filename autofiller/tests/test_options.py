"""Tests for the two-phase option matcher."""
from __future__ import annotations

import pytest

from autofiller.filler import FieldFiller
from autofiller.options import OptionSelector, closest_option, match_option, select_best_option
from autofiller.page.base import OptionInfo

from .helpers import make_context

CATEGORIES = ["Select category", "Plumbing", "Plumbing Services", "Electrical"]

CATEGORY_SELECT = """
<select name="CATEGORY_ID">
  <option value="">Select category</option>
  <option value="10">Plumbing</option>
  <option value="11">Plumbing Services</option>
  <option value="12">Electrical</option>
</select>
"""


def test_exact_text_beats_longer_option() -> None:
    match = match_option(CATEGORIES, "Plumbing")

    assert match.index == 1
    assert match.phase == "exact"


def test_partial_target_picks_first_option_in_list_order() -> None:
    assert select_best_option(CATEGORIES, "Plumb") == 1


def test_no_match_returns_none() -> None:
    assert select_best_option(CATEGORIES, "Roofing") is None


def test_case_sensitive_exact_phase_falls_through_to_fuzzy() -> None:
    options = ["Home Services", "Plumbing"]

    sensitive = match_option(options, "plumbing", case_sensitive=True)
    insensitive = match_option(options, "plumbing", case_sensitive=False)

    assert (sensitive.index, sensitive.phase) == (1, "fuzzy")
    assert (insensitive.index, insensitive.phase) == (1, "exact")


def test_fuzzy_phase_matches_option_contained_in_target() -> None:
    match = match_option(["Choose", "Canada", "Mexico"], "Toronto, Canada")

    assert (match.index, match.phase) == (1, "fuzzy")


def test_blank_options_and_targets_never_match() -> None:
    assert select_best_option(["", "   ", "Electrical"], "Roof") is None
    assert select_best_option(CATEGORIES, "   ") is None


def test_option_info_matches_on_display_text() -> None:
    options = [OptionInfo(text="United States", value="US"), OptionInfo(text="Canada", value="CA")]

    match = match_option(options, "canada", case_sensitive=False)

    assert match.option.value == "CA"


def test_closest_option_is_diagnostic_only() -> None:
    closest = closest_option(CATEGORIES, "Electricl")

    assert closest is not None
    assert closest[0] == "Electrical"
    assert closest_option([], "Electrical") is None


@pytest.mark.asyncio
async def test_selection_uses_option_value_and_notifies() -> None:
    context = make_context(CATEGORY_SELECT)
    filler = FieldFiller(context)
    selector = OptionSelector(context, filler)
    element = context.document.select_one("select")

    selected = await selector.select_option_in(element, "Plumbing", case_sensitive=True)

    assert selected
    assert (await element.describe()).value == "10"
    assert element.events == ["input", "change", "blur"]
    assert ("select", "CATEGORY_ID", "") in filler.filled
    await filler.wait_for_highlights()


@pytest.mark.asyncio
async def test_unmatched_target_leaves_selection_untouched() -> None:
    context = make_context(CATEGORY_SELECT.replace('value="12"', 'value="12" selected'))
    filler = FieldFiller(context)
    selector = OptionSelector(context, filler)
    element = context.document.select_one("select")

    selected = await selector.select_option_in(element, "Roofing")

    assert not selected
    assert (await element.describe()).value == "12"
    assert element.events == []
    assert filler.filled == set()


@pytest.mark.asyncio
async def test_disabled_select_is_not_changed() -> None:
    context = make_context(CATEGORY_SELECT.replace("<select ", "<select disabled "))
    selector = OptionSelector(context, FieldFiller(context))
    element = context.document.select_one("select")

    assert not await selector.select_option_in(element, "Electrical")
    assert (await element.describe()).value == ""
