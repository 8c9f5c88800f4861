"""Debounced reaction to form markup inserted into the document."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from .context import EngineContext
from .page.base import FORM_BEARING_TAGS, InsertedNode, Unsubscribe

logger = logging.getLogger(__name__)

InsertionPredicate = Callable[[InsertedNode], bool]
Trigger = Callable[[], Awaitable[None]]


def contains_form_controls(node: InsertedNode) -> bool:
    return node.tag in FORM_BEARING_TAGS or node.form_control_count > 0


def contains_radio(node: InsertedNode) -> bool:
    return (node.tag == "input" and node.input_type == "radio") or node.radio_count > 0


class Subscription:
    """Handle for one ``watch`` registration.

    The first qualifying insertion schedules the trigger ``window`` seconds
    later. Insertions that arrive while a trigger is pending are absorbed and
    do not move the timer.
    """

    def __init__(
        self,
        context: EngineContext,
        predicate: InsertionPredicate,
        window: float,
        on_trigger: Trigger,
        name: str = "watcher",
    ) -> None:
        self.context = context
        self.predicate = predicate
        self.window = window
        self.on_trigger = on_trigger
        self.name = name
        self.trigger_count = 0
        self.absorbed_count = 0
        self.closed = False
        self._handle: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Task] = None
        self._unsubscribe: Optional[Unsubscribe] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def notify(self, node: InsertedNode) -> None:
        if self.closed or not self.context.valid or not self.predicate(node):
            return
        if self._handle is not None:
            self.absorbed_count += 1
            return
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.window, self._fire)
        logger.debug(f"{self.name}: <{node.tag}> inserted, re-run scheduled in {self.window:.2f}s")

    def _fire(self) -> None:
        self._handle = None
        if self.closed or not self.context.valid:
            return
        self.trigger_count += 1
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        try:
            await self.on_trigger()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(f"{self.name}: triggered pass failed")

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self._task is not None and not self._task.done():
            self._task.cancel()
        if self._unsubscribe is not None:
            await self._unsubscribe()
            self._unsubscribe = None

    async def wait(self) -> None:
        """Wait for a trigger that has already started running."""

        if self._task is not None and not self._task.done():
            await asyncio.gather(self._task, return_exceptions=True)


class MutationWatcher:
    """Creates :class:`Subscription` objects against the context's document."""

    def __init__(self, context: EngineContext) -> None:
        self.context = context
        self.subscriptions: List[Subscription] = []

    async def watch(
        self,
        predicate: InsertionPredicate,
        debounce_window: float,
        on_trigger: Trigger,
        *,
        name: str = "watcher",
    ) -> Subscription:
        subscription = Subscription(self.context, predicate, debounce_window, on_trigger, name=name)
        subscription._unsubscribe = await self.context.document.observe_insertions(subscription.notify)
        self.subscriptions.append(subscription)
        return subscription

    async def close_all(self) -> None:
        for subscription in self.subscriptions:
            await subscription.close()
        self.subscriptions.clear()


__all__ = [
    "MutationWatcher",
    "Subscription",
    "contains_form_controls",
    "contains_radio",
]
