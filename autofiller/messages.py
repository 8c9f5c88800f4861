"""Update signals pushed to the orchestrator by the host."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Protocol, Union

logger = logging.getLogger(__name__)


class MessageKind(str, Enum):
    CONTEXT_INVALID = "CONTEXT_INVALID"
    SERVICES_UPDATED = "SERVICES_UPDATED"
    UNIVERSAL_FORM_DATA_UPDATED = "UNIVERSAL_FORM_DATA_UPDATED"
    CATEGORY_UPDATED = "CATEGORY_UPDATED"
    LOCATION_UPDATED = "LOCATION_UPDATED"
    SETTINGS_UPDATED = "SETTINGS_UPDATED"


@dataclass(frozen=True)
class ContextInvalid:
    kind = MessageKind.CONTEXT_INVALID


@dataclass(frozen=True)
class ServicesUpdated:
    kind = MessageKind.SERVICES_UPDATED


@dataclass(frozen=True)
class UniversalFormDataUpdated:
    data: Dict[str, Any] = field(default_factory=dict)
    kind = MessageKind.UNIVERSAL_FORM_DATA_UPDATED


@dataclass(frozen=True)
class CategoryUpdated:
    kind = MessageKind.CATEGORY_UPDATED


@dataclass(frozen=True)
class LocationUpdated:
    kind = MessageKind.LOCATION_UPDATED


@dataclass(frozen=True)
class SettingsUpdated:
    settings: Dict[str, Any] = field(default_factory=dict)
    kind = MessageKind.SETTINGS_UPDATED


Message = Union[
    ContextInvalid,
    ServicesUpdated,
    UniversalFormDataUpdated,
    CategoryUpdated,
    LocationUpdated,
    SettingsUpdated,
]
WireMessage = Mapping[str, Any]
MessageHandler = Callable[[Union[Message, WireMessage]], Awaitable[None]]
Unsubscribe = Callable[[], None]


def parse_message(payload: WireMessage) -> Message:
    """Build a message from its ``{"type", "data", "settings"}`` wire form.

    Raises ``ValueError`` for an unknown or missing ``type``.
    """

    raw_kind = payload.get("type")
    try:
        kind = MessageKind(raw_kind)
    except ValueError:
        raise ValueError(f"Unknown message type: {raw_kind!r}") from None

    if kind is MessageKind.UNIVERSAL_FORM_DATA_UPDATED:
        return UniversalFormDataUpdated(data=dict(payload.get("data") or {}))
    if kind is MessageKind.SETTINGS_UPDATED:
        return SettingsUpdated(settings=dict(payload.get("settings") or {}))
    return {
        MessageKind.CONTEXT_INVALID: ContextInvalid,
        MessageKind.SERVICES_UPDATED: ServicesUpdated,
        MessageKind.CATEGORY_UPDATED: CategoryUpdated,
        MessageKind.LOCATION_UPDATED: LocationUpdated,
    }[kind]()


def to_wire(message: Message) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"type": message.kind.value}
    if isinstance(message, UniversalFormDataUpdated):
        payload["data"] = dict(message.data)
    elif isinstance(message, SettingsUpdated):
        payload["settings"] = dict(message.settings)
    return payload


class MessageTransport(Protocol):
    def subscribe(self, handler: MessageHandler) -> Unsubscribe:
        ...


class LocalMessageBus:
    """In-process transport: ``publish`` awaits every subscribed handler in turn."""

    def __init__(self) -> None:
        self._handlers: List[MessageHandler] = []

    def subscribe(self, handler: MessageHandler) -> Unsubscribe:
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    async def publish(self, message: Union[Message, WireMessage]) -> None:
        for handler in list(self._handlers):
            await handler(message)

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)


__all__ = [
    "CategoryUpdated",
    "ContextInvalid",
    "LocalMessageBus",
    "LocationUpdated",
    "Message",
    "MessageKind",
    "MessageTransport",
    "ServicesUpdated",
    "SettingsUpdated",
    "UniversalFormDataUpdated",
    "parse_message",
    "to_wire",
]
