"""Document provider protocols shared by the engine and its page adapters.

The engine never talks to a browser API directly. It works against the small
async surface declared here, which :class:`~autofiller.page.playwright_document.PlaywrightDocument`
implements for live pages and :class:`~autofiller.page.soup_document.SoupDocument`
implements for static HTML.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Protocol, Tuple
from urllib.parse import urlsplit

ControlKey = Tuple[str, str, str]
"""Identity of a control: ``(tag, name, id)``."""

FORM_CONTROL_TAGS = frozenset({"input", "select", "textarea"})
FORM_BEARING_TAGS = FORM_CONTROL_TAGS | {"form"}


@dataclass(frozen=True)
class ControlInfo:
    """Snapshot of a form control, read in one round trip."""

    tag: str
    type: str = ""
    name: str = ""
    element_id: str = ""
    placeholder: str = ""
    value: str = ""
    disabled: bool = False
    read_only: bool = False
    visible: bool = True
    checked: bool = False
    label: str = ""

    @property
    def key(self) -> ControlKey:
        return (self.tag, self.name, self.element_id)

    @property
    def is_empty(self) -> bool:
        return not self.value or self.value == self.placeholder

    @property
    def is_writable(self) -> bool:
        return not (self.disabled or self.read_only)

    @property
    def is_hidden_input(self) -> bool:
        return self.tag == "input" and self.type == "hidden"

    def describe(self) -> str:
        """Short human-readable identifier used in log lines."""

        return self.element_id or self.name or f"<{self.tag}>"


@dataclass(frozen=True)
class OptionInfo:
    """One entry of a finite choice list."""

    text: str
    value: str


@dataclass(frozen=True)
class InsertedNode:
    """Summary of an element subtree inserted into the document."""

    tag: str
    input_type: str = ""
    form_control_count: int = 0
    radio_count: int = 0


InsertionCallback = Callable[[InsertedNode], None]
Unsubscribe = Callable[[], Awaitable[None]]


class Element(Protocol):
    """Async handle to one element of a :class:`Document`."""

    async def describe(self) -> ControlInfo:
        ...

    async def set_value(self, value: str) -> None:
        ...

    async def options(self) -> List[OptionInfo]:
        ...

    async def select_value(self, value: str) -> None:
        ...

    async def set_checked(self, checked: bool) -> None:
        ...

    async def dispatch_event(self, event_type: str) -> None:
        ...

    async def get_style(self, prop: str) -> str:
        ...

    async def set_style(self, prop: str, value: Optional[str]) -> None:
        ...


class Document(Protocol):
    """Queryable page tree owned by the host."""

    @property
    def url(self) -> str:
        ...

    async def query_selector_all(self, selector: str) -> List[Element]:
        ...

    async def observe_insertions(self, callback: InsertionCallback) -> Unsubscribe:
        ...


def origin_of(url: str) -> str:
    """Return ``scheme://host[:port]`` for ``url`` in lowercase, or ``""``."""

    parts = urlsplit(url or "")
    if not parts.scheme or not parts.netloc:
        return ""
    return f"{parts.scheme}://{parts.netloc}".lower()


__all__ = [
    "ControlInfo",
    "ControlKey",
    "Document",
    "Element",
    "FORM_BEARING_TAGS",
    "FORM_CONTROL_TAGS",
    "InsertedNode",
    "InsertionCallback",
    "OptionInfo",
    "Unsubscribe",
    "origin_of",
]
