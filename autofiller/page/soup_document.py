"""Static HTML document provider backed by BeautifulSoup.

Used to fill saved HTML forms offline and as the document model in tests.
Values, selection and ``checked`` state are written back into attributes so
:meth:`SoupDocument.to_html` exports the filled form. Dispatched events are
recorded rather than executed.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from .base import (
    FORM_CONTROL_TAGS,
    ControlInfo,
    InsertedNode,
    InsertionCallback,
    OptionInfo,
    Unsubscribe,
)

logger = logging.getLogger(__name__)

_PARSER = "html.parser"


def _parse_style(style: str) -> Dict[str, str]:
    declarations: Dict[str, str] = {}
    for chunk in (style or "").split(";"):
        if ":" not in chunk:
            continue
        prop, _, value = chunk.partition(":")
        prop = prop.strip().lower()
        if prop:
            declarations[prop] = value.strip()
    return declarations


def _format_style(declarations: Dict[str, str]) -> str:
    return "; ".join(f"{prop}: {value}" for prop, value in declarations.items())


def _option_value(option: Tag) -> str:
    value = option.get("value")
    if value is None:
        return option.get_text(strip=True)
    return str(value)


def _is_hidden(tag: Tag) -> bool:
    for node in [tag, *tag.parents]:
        if not isinstance(node, Tag) or node.name == "[document]":
            continue
        if node.has_attr("hidden"):
            return True
        style = _parse_style(str(node.get("style") or ""))
        if style.get("display", "").lower() == "none":
            return True
        if style.get("visibility", "").lower() == "hidden":
            return True
    return False


def _summarize(node: Tag) -> InsertedNode:
    tag_name = node.name.lower()
    input_type = str(node.get("type") or "").lower() if tag_name == "input" else ""
    controls = node.find_all(list(FORM_CONTROL_TAGS))
    radios = [
        control
        for control in controls
        if control.name == "input" and str(control.get("type") or "").lower() == "radio"
    ]
    return InsertedNode(
        tag=tag_name,
        input_type=input_type,
        form_control_count=len(controls),
        radio_count=len(radios),
    )


class SoupElement:
    """Element handle over a BeautifulSoup :class:`~bs4.Tag`."""

    def __init__(self, document: "SoupDocument", tag: Tag) -> None:
        self.document = document
        self.tag = tag
        self.events: List[str] = []

    def __repr__(self) -> str:
        return f"SoupElement({self.tag.name}, name={self.tag.get('name')!r}, id={self.tag.get('id')!r})"

    @property
    def tag_name(self) -> str:
        return self.tag.name.lower()

    def _label_text(self) -> str:
        parts: List[str] = []
        element_id = self.tag.get("id")
        if element_id:
            label = self.document.soup.find("label", attrs={"for": element_id})
            if label is not None:
                parts.append(label.get_text(" ", strip=True))
        parent_label = self.tag.find_parent("label")
        if parent_label is not None:
            parts.append(parent_label.get_text(" ", strip=True))
        return " ".join(part for part in parts if part).strip()

    def _current_value(self) -> str:
        if self.tag_name == "textarea":
            return self.tag.get_text()
        if self.tag_name == "select":
            options = self.tag.find_all("option")
            for option in options:
                if option.has_attr("selected"):
                    return _option_value(option)
            return _option_value(options[0]) if options else ""
        return str(self.tag.get("value") or "")

    async def describe(self) -> ControlInfo:
        tag_name = self.tag_name
        default_type = "text" if tag_name == "input" else ""
        return ControlInfo(
            tag=tag_name,
            type=str(self.tag.get("type") or default_type).lower(),
            name=str(self.tag.get("name") or ""),
            element_id=str(self.tag.get("id") or ""),
            placeholder=str(self.tag.get("placeholder") or ""),
            value=self._current_value(),
            disabled=self.tag.has_attr("disabled"),
            read_only=self.tag.has_attr("readonly"),
            visible=not (_is_hidden(self.tag) or str(self.tag.get("type") or "").lower() == "hidden"),
            checked=self.tag.has_attr("checked"),
            label=self._label_text(),
        )

    async def set_value(self, value: str) -> None:
        if self.tag_name == "select":
            await self.select_value(value)
        elif self.tag_name == "textarea":
            self.tag.string = value
        else:
            self.tag["value"] = value

    async def options(self) -> List[OptionInfo]:
        return [
            OptionInfo(text=option.get_text(" ", strip=True), value=_option_value(option))
            for option in self.tag.find_all("option")
        ]

    async def select_value(self, value: str) -> None:
        options = self.tag.find_all("option")
        target: Optional[Tag] = next((option for option in options if _option_value(option) == value), None)
        if target is None:
            raise ValueError(f"No option with value {value!r}")
        for option in options:
            if option.has_attr("selected"):
                del option["selected"]
        target["selected"] = "selected"

    async def set_checked(self, checked: bool) -> None:
        is_radio = str(self.tag.get("type") or "").lower() == "radio"
        name = self.tag.get("name")
        if checked and is_radio and name:
            for other in self.document.soup.find_all("input", attrs={"name": name}):
                if str(other.get("type") or "").lower() == "radio" and other.has_attr("checked"):
                    del other["checked"]
        if checked:
            self.tag["checked"] = "checked"
        elif self.tag.has_attr("checked"):
            del self.tag["checked"]

    async def dispatch_event(self, event_type: str) -> None:
        self.events.append(event_type)
        self.document.dispatched.append((self, event_type))

    async def get_style(self, prop: str) -> str:
        return _parse_style(str(self.tag.get("style") or "")).get(prop.lower(), "")

    async def set_style(self, prop: str, value: Optional[str]) -> None:
        declarations = _parse_style(str(self.tag.get("style") or ""))
        if value:
            declarations[prop.lower()] = value
        else:
            declarations.pop(prop.lower(), None)
        if declarations:
            self.tag["style"] = _format_style(declarations)
        elif self.tag.has_attr("style"):
            del self.tag["style"]


class SoupDocument:
    """In-memory document parsed from an HTML string."""

    def __init__(self, html: str, url: str = "about:blank") -> None:
        self.soup = BeautifulSoup(html, _PARSER)
        self._url = url
        self._wrappers: Dict[int, SoupElement] = {}
        self._observers: List[InsertionCallback] = []
        self.dispatched: List[Tuple[SoupElement, str]] = []

    @property
    def url(self) -> str:
        return self._url

    def _wrap(self, tag: Tag) -> SoupElement:
        wrapper = self._wrappers.get(id(tag))
        if wrapper is None or wrapper.tag is not tag:
            wrapper = SoupElement(self, tag)
            self._wrappers[id(tag)] = wrapper
        return wrapper

    async def query_selector_all(self, selector: str) -> List[SoupElement]:
        return [self._wrap(tag) for tag in self.soup.select(selector)]

    def select_one(self, selector: str) -> Optional[SoupElement]:
        """Synchronous lookup helper for callers outside the engine."""

        tag = self.soup.select_one(selector)
        return self._wrap(tag) if tag is not None else None

    async def observe_insertions(self, callback: InsertionCallback) -> Unsubscribe:
        self._observers.append(callback)

        async def unsubscribe() -> None:
            if callback in self._observers:
                self._observers.remove(callback)

        return unsubscribe

    def insert_html(self, html: str, parent_selector: str = "body") -> List[SoupElement]:
        """Append ``html`` under ``parent_selector`` and notify insertion observers."""

        parent = self.soup.select_one(parent_selector) or self.soup.body or self.soup
        fragment = BeautifulSoup(html, _PARSER)
        inserted: List[SoupElement] = []
        for node in list(fragment.contents):
            parent.append(node)
            if isinstance(node, Tag):
                inserted.append(self._wrap(node))
                summary = _summarize(node)
                logger.debug(f"Inserted <{summary.tag}> with {summary.form_control_count} control(s)")
                for observer in list(self._observers):
                    observer(summary)
        return inserted

    def to_html(self) -> str:
        return str(self.soup)
