"""Tests for the field filler."""
from __future__ import annotations

import asyncio
import dataclasses
import logging
import time

import pytest

from autofiller.context import EngineContext
from autofiller.filler import FieldFiller, INTERACTION_EVENTS

from .helpers import FAST, FreshHandleDocument, RecordingElement, candidate, make_context, stub_candidate


@pytest.mark.asyncio
async def test_fill_sets_value_and_emits_events_in_order() -> None:
    context = make_context('<input name="email">')
    filler = FieldFiller(context)
    element = context.document.select_one("input")

    filled = await filler.fill(await candidate(element, "EMAIL"), "jane@example.com")

    assert filled
    assert (await element.describe()).value == "jane@example.com"
    assert element.events == list(INTERACTION_EVENTS) == ["input", "change", "blur"]
    assert ("input", "email", "") in filler.filled
    await filler.wait_for_highlights()


@pytest.mark.asyncio
async def test_highlight_reverts_to_previous_style() -> None:
    timing = dataclasses.replace(FAST, highlight_duration=0.05)
    context = make_context('<input name="email" style="box-shadow: 1px 1px red">', timing=timing)
    filler = FieldFiller(context)
    element = context.document.select_one("input")

    await filler.fill(await candidate(element), "jane@example.com")
    assert await element.get_style("box-shadow") == "0 0 5px green"

    await filler.wait_for_highlights()
    assert await element.get_style("box-shadow") == "1px 1px red"


@pytest.mark.asyncio
async def test_refill_during_highlight_still_restores_original_style() -> None:
    timing = dataclasses.replace(FAST, highlight_duration=0.05)
    context = make_context('<input name="email">', timing=timing)
    filler = FieldFiller(context)
    element = context.document.select_one("input")

    await filler.fill(await candidate(element), "first")
    await filler.fill(await candidate(element), "second")
    await filler.wait_for_highlights()

    assert await element.get_style("box-shadow") == ""
    assert (await element.describe()).value == "second"


@pytest.mark.asyncio
async def test_highlight_is_not_reverted_after_invalidation() -> None:
    timing = dataclasses.replace(FAST, highlight_duration=0.05)
    context = make_context('<input name="email">', timing=timing)
    filler = FieldFiller(context)
    element = context.document.select_one("input")

    await filler.fill(await candidate(element), "jane@example.com")
    context.invalidate()
    await filler.wait_for_highlights()

    assert await element.get_style("box-shadow") == "0 0 5px green"


@pytest.mark.asyncio
@pytest.mark.parametrize("attribute", ["disabled", "readonly"])
async def test_disabled_or_read_only_controls_are_never_written(attribute: str) -> None:
    context = make_context(f'<input name="email" value="old" {attribute}>')
    filler = FieldFiller(context)
    element = context.document.select_one("input")

    filled = await filler.fill(await candidate(element), "new")
    count = await filler.fill_many([await candidate(element)], "new")

    assert not filled and count == 0
    assert (await element.describe()).value == "old"
    assert element.events == []


@pytest.mark.asyncio
async def test_empty_value_or_missing_candidate_is_a_no_op() -> None:
    context = make_context('<input name="email">')
    filler = FieldFiller(context)
    element = context.document.select_one("input")

    assert not await filler.fill(await candidate(element), "")
    assert not await filler.fill(None, "value")
    assert await filler.fill_many([await candidate(element)], "") == 0
    assert element.events == []


@pytest.mark.asyncio
async def test_fill_many_writes_in_order_with_delay() -> None:
    timing = dataclasses.replace(FAST, fill_delay=0.05)
    context = make_context("".join(f'<input name="field{index}">' for index in range(4)), timing=timing)
    filler = FieldFiller(context)
    elements = await context.document.query_selector_all("input")
    candidates = [await candidate(element) for element in elements]

    started = time.perf_counter()
    count = await filler.fill_many(candidates, "value")
    elapsed = time.perf_counter() - started

    assert count == 4
    assert [element for element, event in context.document.dispatched if event == "input"] == elements
    assert elapsed >= 3 * 0.05 - 0.005
    await filler.wait_for_highlights()


@pytest.mark.asyncio
async def test_fill_many_skips_failures_and_continues() -> None:
    context = make_context("")
    filler = FieldFiller(context)
    first = RecordingElement("first")
    broken = RecordingElement("broken", fail=True)
    last = RecordingElement("last")

    count = await filler.fill_many([stub_candidate(first), stub_candidate(broken), stub_candidate(last)], "v")

    assert count == 2
    assert first.writes == ["v"] and last.writes == ["v"]
    assert broken.events == []
    assert filler.failures == 1
    await filler.wait_for_highlights()


@pytest.mark.asyncio
async def test_fill_many_stops_once_context_is_invalidated() -> None:
    context = make_context("")
    filler = FieldFiller(context)
    first = RecordingElement("first", on_write=context.invalidate)
    second = RecordingElement("second")

    count = await filler.fill_many([stub_candidate(first), stub_candidate(second)], "v")

    assert count == 1
    assert second.writes == []
    await filler.wait_for_highlights()


@pytest.mark.asyncio
async def test_password_values_are_masked_in_logs(caplog) -> None:
    caplog.set_level(logging.INFO, logger="autofiller")
    context = make_context('<input type="password" name="pass">')
    filler = FieldFiller(context)

    await filler.fill(await candidate(context.document.select_one("input"), "PASSWORD"), "s3cret-value")
    await filler.wait_for_highlights()

    assert "s3cret-value" not in caplog.text
    assert "********" in caplog.text


@pytest.mark.asyncio
async def test_refill_through_new_handle_still_reverts_highlight() -> None:
    timing = dataclasses.replace(FAST, highlight_duration=0.05)
    document = FreshHandleDocument('<html><body><input name="email"></body></html>', url="https://example.com/form")
    filler = FieldFiller(EngineContext(document, timing=timing))

    first = document.select_one("input")
    await filler.fill(await candidate(first), "first")
    await asyncio.sleep(0.02)
    second = document.select_one("input")
    assert second is not first
    await filler.fill(await candidate(second), "second")
    await filler.wait_for_highlights()

    assert await document.select_one("input").get_style("box-shadow") == ""
    assert (await document.select_one("input").describe()).value == "second"
