"""Tests for candidate detection and scoring."""
from __future__ import annotations

import pytest

from autofiller.detection import DetectionCache, FieldDetector, score_control
from autofiller.page.base import ControlInfo
from autofiller.selectors import DEFAULT_SELECTORS

from .helpers import make_context

EMAIL_FORM = """
<form>
  <input type="email" name="email" id="email">
  <input type="text" name="contact_email" placeholder="you@example.com">
  <input type="hidden" name="email_token" value="x">
  <input type="text" name="backup_email" disabled>
</form>
"""


@pytest.mark.asyncio
async def test_candidates_are_ranked_and_unique() -> None:
    context = make_context(EMAIL_FORM)
    detector = FieldDetector(context)

    candidates = await detector.find_candidates(DEFAULT_SELECTORS["EMAIL"], "EMAIL")

    assert [candidate.info.name for candidate in candidates] == [
        "email",
        "contact_email",
        "backup_email",
        "email_token",
    ]
    assert [candidate.score for candidate in candidates] == [40, 40, 15, 10]
    assert len({candidate.key for candidate in candidates}) == len(candidates)
    assert candidates[0].matched_selector == 'input[type="email"]'


@pytest.mark.asyncio
async def test_equal_scores_keep_discovery_order() -> None:
    context = make_context(
        """
        <input class="x" name="first">
        <input class="x" name="second">
        <input class="x" name="third">
        <input class="x" name="email">
        """
    )
    detector = FieldDetector(context)

    candidates = await detector.find_candidates(["input.x"], "EMAIL")

    assert [candidate.info.name for candidate in candidates] == ["email", "first", "second", "third"]


@pytest.mark.asyncio
async def test_scores_never_go_negative() -> None:
    context = make_context('<input type="hidden" name="x" value="1" disabled readonly>')
    detector = FieldDetector(context)

    candidates = await detector.find_candidates(["input"], "PHONE")

    assert len(candidates) == 1
    assert candidates[0].score == 0


@pytest.mark.asyncio
async def test_malformed_selector_does_not_abort_detection() -> None:
    context = make_context(EMAIL_FORM)
    detector = FieldDetector(context)

    candidates = await detector.find_candidates(["input[", "input:unknown-pseudo", 'input[name="email"]'], "EMAIL")

    assert [candidate.info.name for candidate in candidates] == ["email"]


@pytest.mark.asyncio
async def test_results_are_cached_until_cleared() -> None:
    context = make_context('<input name="email">')
    detector = FieldDetector(context)
    selectors = ['input[name*="email" i]']

    first = await detector.find_candidates(selectors, "EMAIL")
    context.document.insert_html('<input name="work_email">')
    cached = await detector.find_candidates(selectors, "EMAIL")
    detector.clear_cache()
    fresh = await detector.find_candidates(selectors, "EMAIL")

    assert len(first) == len(cached) == 1
    assert len(fresh) == 2
    assert len(detector.cache) == 1


def test_cache_key_includes_field_type_and_selectors() -> None:
    cache = DetectionCache()
    cache.set(DetectionCache.make_key("EMAIL", ["a", "b"]), [])

    assert cache.get(DetectionCache.make_key("EMAIL", ["a", "b"])) == []
    assert cache.get(DetectionCache.make_key("PHONE", ["a", "b"])) is None
    assert cache.get(DetectionCache.make_key("EMAIL", ["b", "a"])) is None

    cache.clear()
    assert len(cache) == 0


def test_prefix_match_scores_lower_than_full_name() -> None:
    full = score_control(ControlInfo(tag="input", type="text", name="phone_number"), "PHONE")
    prefix = score_control(ControlInfo(tag="input", type="text", name="photo"), "PHONE")
    unrelated = score_control(ControlInfo(tag="input", type="text", name="zip"), "PHONE")

    assert (full, prefix, unrelated) == (40, 30, 20)


def test_value_equal_to_placeholder_counts_as_empty() -> None:
    info = ControlInfo(tag="input", type="text", name="city", placeholder="City", value="City")

    assert score_control(info, "CITY") == 40
