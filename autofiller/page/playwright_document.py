"""Live document provider backed by Playwright's async API."""
from __future__ import annotations

import itertools
import logging
from typing import Any, Dict, List, Optional

from playwright.async_api import ElementHandle, Page

from .base import ControlInfo, InsertedNode, InsertionCallback, OptionInfo, Unsubscribe

logger = logging.getLogger(__name__)

_binding_ids = itertools.count(1)

_DESCRIBE_SCRIPT = """
(el) => {
    const style = window.getComputedStyle(el);
    const rendered = !!(el.offsetWidth || el.offsetHeight || el.getClientRects().length);
    const parts = [];
    if (el.labels) {
        for (const label of el.labels) {
            const text = (label.innerText || label.textContent || "").trim();
            if (text) {
                parts.push(text);
            }
        }
    }
    const tag = el.tagName.toLowerCase();
    return {
        tag,
        type: (el.getAttribute("type") || (tag === "input" ? "text" : "")).toLowerCase(),
        name: el.getAttribute("name") || "",
        id: el.id || "",
        placeholder: el.getAttribute("placeholder") || "",
        value: el.value === undefined || el.value === null ? "" : String(el.value),
        disabled: !!el.disabled,
        readOnly: !!el.readOnly,
        visible: rendered && style.display !== "none" && style.visibility !== "hidden",
        checked: !!el.checked,
        label: parts.join(" "),
    };
}
"""

_SET_VALUE_SCRIPT = """
(el, value) => {
    let proto = HTMLInputElement.prototype;
    if (el instanceof HTMLTextAreaElement) {
        proto = HTMLTextAreaElement.prototype;
    } else if (el instanceof HTMLSelectElement) {
        proto = HTMLSelectElement.prototype;
    }
    const descriptor = Object.getOwnPropertyDescriptor(proto, "value");
    if (descriptor && descriptor.set) {
        descriptor.set.call(el, value);
    } else {
        el.value = value;
    }
}
"""

_OPTIONS_SCRIPT = """
(el) => Array.from(el.options || []).map((option) => ({
    text: (option.text || "").trim(),
    value: option.value,
}))
"""

_SELECT_VALUE_SCRIPT = """
(el, value) => {
    const options = Array.from(el.options || []);
    if (!options.some((option) => option.value === value)) {
        throw new Error(`No option with value ${value}`);
    }
    el.value = value;
}
"""

_OBSERVE_SCRIPT = """
([binding, key]) => {
    const FORM_TAGS = ["input", "select", "textarea", "form"];
    const observer = new MutationObserver((mutations) => {
        for (const mutation of mutations) {
            for (const node of mutation.addedNodes) {
                if (node.nodeType !== Node.ELEMENT_NODE) {
                    continue;
                }
                const tag = node.tagName.toLowerCase();
                const controls = node.querySelectorAll("input, select, textarea");
                if (!FORM_TAGS.includes(tag) && controls.length === 0) {
                    continue;
                }
                window[binding]({
                    tag,
                    inputType: tag === "input" ? (node.getAttribute("type") || "").toLowerCase() : "",
                    formControlCount: controls.length,
                    radioCount: node.querySelectorAll('input[type="radio"]').length,
                });
            }
        }
    });
    observer.observe(document.documentElement, { childList: true, subtree: true });
    window[key] = observer;
}
"""

_DISCONNECT_SCRIPT = """
(key) => {
    if (window[key]) {
        window[key].disconnect();
        delete window[key];
    }
}
"""


class PlaywrightElement:
    """Element handle wrapper; every operation is one ``evaluate`` round trip."""

    def __init__(self, handle: ElementHandle) -> None:
        self.handle = handle

    async def describe(self) -> ControlInfo:
        data: Dict[str, Any] = await self.handle.evaluate(_DESCRIBE_SCRIPT)
        return ControlInfo(
            tag=data.get("tag", ""),
            type=data.get("type", ""),
            name=data.get("name", ""),
            element_id=data.get("id", ""),
            placeholder=data.get("placeholder", ""),
            value=data.get("value", ""),
            disabled=bool(data.get("disabled")),
            read_only=bool(data.get("readOnly")),
            visible=bool(data.get("visible")),
            checked=bool(data.get("checked")),
            label=data.get("label", ""),
        )

    async def set_value(self, value: str) -> None:
        await self.handle.evaluate(_SET_VALUE_SCRIPT, value)

    async def options(self) -> List[OptionInfo]:
        raw = await self.handle.evaluate(_OPTIONS_SCRIPT)
        return [OptionInfo(text=item.get("text", ""), value=item.get("value", "")) for item in raw or []]

    async def select_value(self, value: str) -> None:
        await self.handle.evaluate(_SELECT_VALUE_SCRIPT, value)

    async def set_checked(self, checked: bool) -> None:
        await self.handle.evaluate("(el, checked) => { el.checked = checked; }", checked)

    async def dispatch_event(self, event_type: str) -> None:
        await self.handle.dispatch_event(event_type)

    async def get_style(self, prop: str) -> str:
        return await self.handle.evaluate("(el, prop) => el.style.getPropertyValue(prop)", prop)

    async def set_style(self, prop: str, value: Optional[str]) -> None:
        await self.handle.evaluate(
            """
            (el, [prop, value]) => {
                if (value) {
                    el.style.setProperty(prop, value);
                } else {
                    el.style.removeProperty(prop);
                }
            }
            """,
            [prop, value],
        )


class PlaywrightDocument:
    """Document provider for a live Playwright :class:`~playwright.async_api.Page`."""

    def __init__(self, page: Page) -> None:
        self.page = page

    @property
    def url(self) -> str:
        return self.page.url

    async def query_selector_all(self, selector: str) -> List[PlaywrightElement]:
        handles = await self.page.query_selector_all(selector)
        return [PlaywrightElement(handle) for handle in handles]

    async def observe_insertions(self, callback: InsertionCallback) -> Unsubscribe:
        """Bridge an in-page ``MutationObserver`` to ``callback``.

        Only element insertions that are or contain form controls cross the
        bridge; filtering by the caller's predicate happens on the Python side.
        """

        index = next(_binding_ids)
        binding = f"__autofillerInsertion{index}"
        key = f"__autofillerObserver{index}"
        active = True

        def on_insert(source: Dict[str, Any], payload: Dict[str, Any]) -> None:
            if not active:
                return
            callback(
                InsertedNode(
                    tag=payload.get("tag", ""),
                    input_type=payload.get("inputType", ""),
                    form_control_count=int(payload.get("formControlCount", 0)),
                    radio_count=int(payload.get("radioCount", 0)),
                )
            )

        await self.page.expose_binding(binding, on_insert)
        await self.page.evaluate(_OBSERVE_SCRIPT, [binding, key])
        logger.debug(f"Insertion observer {key} attached to {self.page.url}")

        async def unsubscribe() -> None:
            nonlocal active
            if not active:
                return
            active = False
            if self.page.is_closed():
                return
            await self.page.evaluate(_DISCONNECT_SCRIPT, key)
            logger.debug(f"Insertion observer {key} disconnected")

        return unsubscribe
