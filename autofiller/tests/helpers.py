"""Shared builders for the autofiller tests."""
from __future__ import annotations

from typing import List, Optional

from autofiller.config import EngineTiming
from autofiller.context import EngineContext
from autofiller.detection import CandidateField
from autofiller.page.base import ControlInfo, OptionInfo
from autofiller.page.soup_document import SoupDocument, SoupElement

FAST = EngineTiming(
    fill_delay=0.0,
    highlight_duration=0.0,
    form_debounce=0.05,
    radio_debounce=0.05,
    signal_delay=0.01,
)


def make_context(html: str, url: str = "https://example.com/form", timing: Optional[EngineTiming] = None) -> EngineContext:
    return EngineContext(SoupDocument(f"<html><body>{html}</body></html>", url=url), timing=timing or FAST)


async def candidate(element: SoupElement, field_type: str = "TEST", score: int = 10) -> CandidateField:
    return CandidateField(
        element=element,
        info=await element.describe(),
        score=score,
        matched_selector="input",
        field_type=field_type,
    )


class RecordingElement:
    """Element stub that records writes and can fail on demand."""

    def __init__(self, name: str, fail: bool = False, on_write=None) -> None:
        self.info = ControlInfo(tag="input", type="text", name=name)
        self.fail = fail
        self.on_write = on_write
        self.writes: List[str] = []
        self.events: List[str] = []
        self.style = ""

    async def describe(self) -> ControlInfo:
        return self.info

    async def set_value(self, value: str) -> None:
        if self.fail:
            raise RuntimeError("detached from document")
        self.writes.append(value)
        if self.on_write is not None:
            self.on_write()

    async def options(self) -> List[OptionInfo]:
        return []

    async def select_value(self, value: str) -> None:
        raise ValueError(value)

    async def set_checked(self, checked: bool) -> None:
        return None

    async def dispatch_event(self, event_type: str) -> None:
        self.events.append(event_type)

    async def get_style(self, prop: str) -> str:
        return self.style

    async def set_style(self, prop: str, value: Optional[str]) -> None:
        self.style = value or ""


def stub_candidate(element: RecordingElement) -> CandidateField:
    return CandidateField(element=element, info=element.info, score=10, matched_selector="input", field_type="TEST")


class FreshHandleDocument(SoupDocument):
    """Hands out a new wrapper on every lookup, like a live page does."""

    def _wrap(self, tag) -> SoupElement:
        return SoupElement(self, tag)
