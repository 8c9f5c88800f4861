"""Writes values into controls the way a typing user would."""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional, Sequence, Set, Tuple

from .context import EngineContext
from .detection import CandidateField
from .errors import FillError
from .page.base import ControlInfo, ControlKey, Element

logger = logging.getLogger(__name__)

INTERACTION_EVENTS = ("input", "change", "blur")
"""Notifications dispatched after every write, in this order."""

HIGHLIGHT_PROPERTY = "box-shadow"

HighlightKey = Tuple[str, ...]


def _highlight_key(info: ControlInfo) -> HighlightKey:
    # Radios and checkboxes share a name within a group.
    if info.type in ("radio", "checkbox"):
        return info.key + (info.value,)
    return info.key


def _display_value(info: ControlInfo, value: str) -> str:
    if info.type == "password":
        return "********"
    if len(value) > 40:
        return repr(value[:37] + "...")
    return repr(value)


class FieldFiller:
    """Fills controls, emits interaction events and applies the highlight.

    ``filled`` records the key of every control written during the page
    lifetime. It is bookkeeping only; controls may be filled again.
    """

    def __init__(self, context: EngineContext) -> None:
        self.context = context
        self.filled: Set[ControlKey] = set()
        self.failures = 0
        self._reverts: Set[asyncio.Task] = set()
        self._saved_styles: Dict[HighlightKey, str] = {}
        self._pending_reverts: Dict[HighlightKey, int] = {}

    async def fill(self, candidate: Optional[CandidateField], value: str) -> bool:
        if candidate is None or not value:
            return False
        if not self.context.valid:
            logger.debug("Context invalid, skipping fill")
            return False

        element = candidate.element
        try:
            info = await element.describe()
        except Exception as exc:
            self.failures += 1
            logger.warning(f"Could not inspect {candidate.info.describe()} before filling: {exc}")
            return False
        if not info.is_writable:
            logger.debug(f"Not filling {info.describe()}: control is disabled or read-only")
            return False

        try:
            await element.set_value(value)
            await self.emit_notifications(element)
        except Exception as exc:
            self.failures += 1
            error = FillError(f"Failed to fill {info.describe()}: {exc}", data={"key": info.key})
            logger.warning(str(error))
            return False

        self.filled.add(info.key)
        await self.highlight(element, info)
        logger.info(f"Filled {candidate.field_type} field {info.describe()} with {_display_value(info, value)}")
        return True

    async def fill_many(self, candidates: Sequence[CandidateField], value: str) -> int:
        """Fill ``candidates`` in order, pausing ``fill_delay`` after each success.

        Returns the number of controls written. The batch stops early once the
        context is invalidated.
        """

        if not value:
            return 0
        filled = 0
        last = len(candidates) - 1
        for index, candidate in enumerate(candidates):
            if not self.context.valid:
                logger.info(f"Context invalidated, stopping batch after {filled} fill(s)")
                break
            if await self.fill(candidate, value):
                filled += 1
                if index < last:
                    await asyncio.sleep(self.context.timing.fill_delay)
        return filled

    async def emit_notifications(self, element: Element) -> None:
        for event_type in INTERACTION_EVENTS:
            await element.dispatch_event(event_type)

    async def highlight(self, element: Element, info: ControlInfo) -> None:
        """Apply the highlight and schedule its revert after ``highlight_duration``.

        Saved styles are keyed by the control rather than the handle.
        """

        key = _highlight_key(info)
        try:
            previous = await element.get_style(HIGHLIGHT_PROPERTY)
            await element.set_style(HIGHLIGHT_PROPERTY, self.context.highlight_style)
        except Exception as exc:
            logger.debug(f"Could not highlight control: {exc}")
            return

        self._saved_styles.setdefault(key, previous)
        self._pending_reverts[key] = self._pending_reverts.get(key, 0) + 1
        task = asyncio.get_running_loop().create_task(self._revert(element, key))
        self._reverts.add(task)
        task.add_done_callback(self._reverts.discard)

    async def _revert(self, element: Element, key: HighlightKey) -> None:
        await asyncio.sleep(self.context.timing.highlight_duration)
        original = self._saved_styles.get(key, "")
        self._pending_reverts[key] = self._pending_reverts.get(key, 1) - 1
        if self._pending_reverts[key] <= 0:
            self._pending_reverts.pop(key, None)
            self._saved_styles.pop(key, None)
        if not self.context.valid:
            return
        try:
            await element.set_style(HIGHLIGHT_PROPERTY, original or None)
        except Exception as exc:
            logger.debug(f"Could not revert highlight: {exc}")

    @property
    def pending_highlights(self) -> int:
        return len(self._reverts)

    async def wait_for_highlights(self) -> None:
        if self._reverts:
            await asyncio.gather(*list(self._reverts), return_exceptions=True)

    def cancel_highlights(self) -> None:
        for task in list(self._reverts):
            task.cancel()


__all__ = ["FieldFiller", "INTERACTION_EVENTS"]
