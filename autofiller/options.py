"""Matching free-text targets against finite option lists.

The same two-phase matcher backs category, location and radio selection:

1. exact phase: trimmed option text equals the target, otherwise the option
   text contains the target. Case sensitivity is chosen by the caller.
2. fuzzy phase: case-insensitive substring test in both directions.

The first option in list order wins within a phase. Options with empty text
never match. When nothing matches the caller's control is left untouched.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

from rapidfuzz import fuzz, process

from .context import EngineContext
from .detection import CandidateField
from .errors import FillError
from .filler import FieldFiller
from .page.base import Element, OptionInfo

logger = logging.getLogger(__name__)

OptionLike = Union[str, OptionInfo]


@dataclass(frozen=True)
class OptionMatch:
    index: int
    option: OptionInfo
    phase: str


def _as_option(option: OptionLike) -> OptionInfo:
    if isinstance(option, OptionInfo):
        return option
    return OptionInfo(text=option, value=option)


def match_option(
    options: Sequence[OptionLike],
    target: str,
    *,
    case_sensitive: bool = True,
) -> Optional[OptionMatch]:
    """Return the best :class:`OptionMatch` for ``target`` or ``None``."""

    needle = (target or "").strip()
    if not needle:
        return None

    entries: List[Tuple[int, OptionInfo, str]] = []
    for index, raw in enumerate(options):
        option = _as_option(raw)
        text = option.text.strip()
        if text:
            entries.append((index, option, text))

    folded_needle = needle if case_sensitive else needle.lower()

    def fold(text: str) -> str:
        return text if case_sensitive else text.lower()

    for index, option, text in entries:
        if fold(text) == folded_needle:
            return OptionMatch(index, option, "exact")
    for index, option, text in entries:
        if folded_needle in fold(text):
            return OptionMatch(index, option, "contains")

    lowered = needle.lower()
    for index, option, text in entries:
        lowered_text = text.lower()
        if lowered in lowered_text or lowered_text in lowered:
            return OptionMatch(index, option, "fuzzy")
    return None


def select_best_option(options: Sequence[OptionLike], target: str, *, case_sensitive: bool = True) -> Optional[int]:
    """Index of the option chosen for ``target``, or ``None`` when nothing matches."""

    match = match_option(options, target, case_sensitive=case_sensitive)
    return match.index if match else None


def closest_option(options: Sequence[OptionLike], target: str) -> Optional[Tuple[str, float]]:
    """Most similar option text by RapidFuzz ratio. Diagnostic only."""

    choices = [_as_option(option).text.strip() for option in options]
    choices = [choice for choice in choices if choice]
    if not choices or not target:
        return None
    result = process.extractOne(target, choices, scorer=fuzz.WRatio)
    if result is None:
        return None
    choice, score, _ = result
    return choice, float(score)


class OptionSelector:
    """Applies :func:`match_option` to selection controls in the document."""

    def __init__(self, context: EngineContext, filler: FieldFiller) -> None:
        self.context = context
        self.filler = filler

    async def select_option_in(self, element: Element, target: str, *, case_sensitive: bool = True) -> bool:
        if not target or not self.context.valid:
            return False
        try:
            info = await element.describe()
            options = await element.options()
        except Exception as exc:
            logger.warning(f"Could not read options for {target!r}: {exc}")
            return False
        if not info.is_writable:
            logger.debug(f"Not selecting in {info.describe()}: control is disabled or read-only")
            return False

        match = match_option(options, target, case_sensitive=case_sensitive)
        if match is None:
            closest = closest_option(options, target)
            if closest:
                logger.debug(f"No option for {target!r} in {info.describe()}; closest is {closest[0]!r} ({closest[1]:.0f})")
            else:
                logger.debug(f"No option for {target!r} in {info.describe()}")
            return False

        try:
            await element.select_value(match.option.value)
            await self.filler.emit_notifications(element)
        except Exception as exc:
            self.filler.failures += 1
            error = FillError(f"Failed to select {match.option.text!r} in {info.describe()}: {exc}", data={"key": info.key})
            logger.warning(str(error))
            return False

        self.filler.filled.add(info.key)
        await self.filler.highlight(element, info)
        logger.info(f"Selected {match.option.text!r} in {info.describe()} ({match.phase} match for {target!r})")
        return True

    async def select_many(
        self,
        candidates: Sequence[CandidateField],
        target: str,
        *,
        case_sensitive: bool = True,
    ) -> int:
        """Select ``target`` in every ``<select>`` candidate, paced like :meth:`FieldFiller.fill_many`."""

        selects = [candidate for candidate in candidates if candidate.info.tag == "select"]
        selected = 0
        last = len(selects) - 1
        for index, candidate in enumerate(selects):
            if not self.context.valid:
                break
            if await self.select_option_in(candidate.element, target, case_sensitive=case_sensitive):
                selected += 1
                if index < last:
                    await asyncio.sleep(self.context.timing.fill_delay)
        return selected


__all__ = [
    "OptionMatch",
    "OptionSelector",
    "closest_option",
    "match_option",
    "select_best_option",
]
