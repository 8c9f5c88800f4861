"""Top-level coordinator for one page lifetime.

The orchestrator is the only component that talks to storage and messaging.
It owns the :class:`~autofiller.context.EngineContext` and hands it to the
detector, filler, option selector, radio engine and mutation watcher.
"""
from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Set, Tuple, Union

from .config import EngineTiming
from .context import DEFAULT_HIGHLIGHT_STYLE, EngineContext
from .detection import CandidateField, FieldDetector
from .errors import StorageError
from .filler import FieldFiller
from .logging_setup import set_debug_mode
from .messages import (
    CategoryUpdated,
    ContextInvalid,
    LocationUpdated,
    Message,
    MessageTransport,
    ServicesUpdated,
    SettingsUpdated,
    UniversalFormDataUpdated,
    WireMessage,
    parse_message,
)
from .options import OptionSelector
from .page.base import ControlInfo, ControlKey, Document
from .radio import RadioRuleEngine, RadioRuleStore
from .selectors import DEFAULT_SELECTORS, SelectorSet, keyword_selectors
from . import storage as keys
from .storage import StorageProvider
from .watcher import MutationWatcher, Subscription, contains_form_controls, contains_radio

logger = logging.getLogger(__name__)

UNIVERSAL_FIELDS: Dict[str, str] = {
    "email": "EMAIL",
    "phone": "PHONE",
    "name": "NAME",
    "company": "COMPANY",
    "address": "ADDRESS",
    "city": "CITY",
    "state": "STATE",
    "zip": "ZIP",
    "title": "TITLE",
    "website": "WEBSITE",
    "facebook": "FACEBOOK",
    "instagram": "INSTAGRAM",
    "twitter": "TWITTER",
    "youtube": "YOUTUBE",
    "description": "DESCRIPTION",
    "keywords": "KEYWORDS",
}
"""Universal form data keys and the field type each one fills, in fill order."""

SOCIAL_FALLBACK_KEYS = ("website", "facebook", "instagram", "twitter", "youtube")
"""Universal keys that fall back to the social link of the same platform."""

DEFAULT_SERVICES: Dict[str, Dict[str, Any]] = {
    "facebook": {"keywords": ["facebook", "fb"]},
    "instagram": {"keywords": ["instagram", "insta"]},
    "twitter": {"keywords": ["twitter"]},
    "youtube": {"keywords": ["youtube"]},
    "linkedin": {"keywords": ["linkedin"]},
    "pinterest": {"keywords": ["pinterest"]},
    "tiktok": {"keywords": ["tiktok"]},
    "snapchat": {"keywords": ["snapchat"]},
    "website": {"keywords": ["website", "homepage"]},
}

LOCATION_FIELDS = (("country", "COUNTRY"), ("region", "REGION"), ("city", "CITY"))


class OrchestratorState(Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    INVALIDATED = "invalidated"


@dataclass
class ExtensionState:
    """Profile data and settings loaded for the current page."""

    context_valid: bool = True
    services: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    universal_form_data: Dict[str, str] = field(default_factory=dict)
    social_links: Dict[str, str] = field(default_factory=dict)
    fill_password: str = ""
    selected_category: str = ""
    selected_location: Dict[str, str] = field(default_factory=dict)
    settings: Dict[str, Any] = field(default_factory=dict)


def normalize_social_links(raw: Any) -> Dict[str, str]:
    """Accept ``{platform: url}`` or ``[{platform, url, isActive}]`` and return active links."""

    links: Dict[str, str] = {}
    if isinstance(raw, Mapping):
        for platform, url in raw.items():
            if isinstance(url, str) and url.strip():
                links[str(platform).lower()] = url.strip()
    elif isinstance(raw, list):
        for entry in raw:
            if not isinstance(entry, Mapping) or not entry.get("isActive", True):
                continue
            platform = str(entry.get("platform") or "").lower()
            url = entry.get("url")
            if platform and isinstance(url, str) and url.strip():
                links.setdefault(platform, url.strip())
    return links


def _is_fillable(info: ControlInfo) -> bool:
    return info.visible and info.is_writable and not info.is_hidden_input


class FillOrchestrator:
    """Runs the detection and fill passes for one document."""

    def __init__(
        self,
        document: Document,
        storage: StorageProvider,
        transport: Optional[MessageTransport] = None,
        *,
        selectors: SelectorSet = DEFAULT_SELECTORS,
        timing: Optional[EngineTiming] = None,
        highlight_style: str = DEFAULT_HIGHLIGHT_STYLE,
        origin_rules: Optional[Mapping[str, Mapping[str, bool]]] = None,
    ) -> None:
        self.storage = storage
        self.transport = transport
        self.selectors = selectors
        self.context = EngineContext(document, timing=timing, highlight_style=highlight_style)
        self.detector = FieldDetector(self.context)
        self.filler = FieldFiller(self.context)
        self.option_selector = OptionSelector(self.context, self.filler)
        self.radio = RadioRuleEngine(
            self.context,
            self.filler,
            RadioRuleStore(storage),
            origin_rules=origin_rules,
        )
        self.watcher = MutationWatcher(self.context)
        self.state = ExtensionState()
        self.status = OrchestratorState.UNINITIALIZED
        self.results: Counter = Counter()
        self._scheduled: Set[asyncio.Task] = set()
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._form_subscription: Optional[Subscription] = None
        self._radio_subscription: Optional[Subscription] = None

    @property
    def timing(self) -> EngineTiming:
        return self.context.timing

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def start(self) -> None:
        """Load the profile, arm the watchers and run the initial passes."""

        if self.status is not OrchestratorState.UNINITIALIZED:
            logger.debug(f"start() ignored in state {self.status.value}")
            return
        self.status = OrchestratorState.INITIALIZING
        logger.info(f"Initializing autofill for {self.context.document.url}")

        if self.transport is not None:
            self._unsubscribe = self.transport.subscribe(self.handle_message)
        await self.load_profile()
        await self.radio.load_rules()

        self._form_subscription = await self.watcher.watch(
            contains_form_controls,
            self.timing.form_debounce,
            self._on_form_inserted,
            name="form-watcher",
        )
        self._radio_subscription = await self.watcher.watch(
            contains_radio,
            self.timing.radio_debounce,
            self._on_radio_inserted,
            name="radio-watcher",
        )

        for name, run in (
            ("fill", self.run_fill_pass),
            ("category", self.run_category_pass),
            ("location", self.run_location_pass),
            ("radio", self.run_radio_pass),
        ):
            await self._run_safely(name, run)

        if self.status is OrchestratorState.INITIALIZING:
            self.status = OrchestratorState.READY
            logger.info(f"Autofill ready: {dict(self.results)}")

    async def stop(self) -> None:
        """Detach from messaging and the document without invalidating the context."""

        self._detach_transport()
        self._cancel_scheduled()
        await self.watcher.close_all()

    async def invalidate(self) -> None:
        if self.status is OrchestratorState.INVALIDATED:
            return
        self.context.invalidate()
        self.state.context_valid = False
        self.status = OrchestratorState.INVALIDATED
        self._detach_transport()
        self._cancel_scheduled()
        await self.watcher.close_all()
        logger.warning("Context invalidated by host, autofill stopped. Reload the page to resume.")

    async def wait_idle(self) -> None:
        """Wait for scheduled passes, running watcher triggers and highlight reverts."""

        while self._scheduled:
            await asyncio.gather(*list(self._scheduled), return_exceptions=True)
        for subscription in (self._form_subscription, self._radio_subscription):
            if subscription is not None:
                await subscription.wait()
        await self.filler.wait_for_highlights()

    def _detach_transport(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _cancel_scheduled(self) -> None:
        for task in list(self._scheduled):
            task.cancel()

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------
    async def _load(self, key: str, default: Any, expected: Union[type, Tuple[type, ...]]) -> Any:
        try:
            value = await self.storage.get(key, default)
        except StorageError as exc:
            logger.error(f"Could not load {key}: {exc}")
            return default
        if value is None:
            return default
        if not isinstance(value, expected):
            logger.warning(f"Ignoring {key}: unexpected {type(value).__name__} value")
            return default
        return value

    async def load_profile(self) -> None:
        await self.load_services()
        self.state.universal_form_data = {
            str(key): str(value)
            for key, value in (await self._load(keys.UNIVERSAL_FORM_DATA, {}, dict)).items()
            if value
        }
        self.state.social_links = normalize_social_links(await self._load(keys.SOCIAL_LINKS, {}, (dict, list)))
        self.state.fill_password = await self._load(keys.FILL_PASSWORD, "", str)
        self.state.selected_category = await self._load(keys.SELECTED_CATEGORY, "", str)
        self.state.selected_location = dict(await self._load(keys.SELECTED_LOCATION, {}, dict))
        self.apply_settings(await self._load(keys.SETTINGS, {}, dict))
        logger.debug(
            f"Profile loaded: {len(self.state.universal_form_data)} form value(s), "
            f"{len(self.state.social_links)} social link(s), "
            f"password {'present' if self.state.fill_password else 'absent'}"
        )

    async def load_services(self) -> None:
        services = await self._load(keys.SERVICES, {}, dict)
        self.state.services = services or dict(DEFAULT_SERVICES)

    def apply_settings(self, settings: Dict[str, Any]) -> None:
        self.state.settings = dict(settings)
        if "debugMode" in self.state.settings:
            set_debug_mode(bool(self.state.settings["debugMode"]))
        if "radioRulesEnabled" in self.state.settings:
            self.radio.set_enabled(bool(self.state.settings["radioRulesEnabled"]))

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------
    async def handle_message(self, message: Union[Message, WireMessage]) -> None:
        if isinstance(message, Mapping):
            try:
                message = parse_message(message)
            except ValueError as exc:
                logger.warning(f"Ignoring message: {exc}")
                return
        if self.status is OrchestratorState.INVALIDATED:
            logger.debug(f"Ignoring {message.kind.value} after invalidation")
            return

        logger.debug(f"Received {message.kind.value}")
        if isinstance(message, ContextInvalid):
            await self.invalidate()
        elif isinstance(message, ServicesUpdated):
            await self.load_services()
            self._schedule("fill", self.run_fill_pass)
        elif isinstance(message, UniversalFormDataUpdated):
            self.state.universal_form_data = {str(key): str(value) for key, value in message.data.items() if value}
            self._schedule("fill", self.run_fill_pass)
        elif isinstance(message, CategoryUpdated):
            self._schedule("category", lambda: self.run_category_pass(reload=True))
        elif isinstance(message, LocationUpdated):
            self._schedule("location", lambda: self.run_location_pass(reload=True))
        elif isinstance(message, SettingsUpdated):
            self.apply_settings(message.settings)

    def _schedule(self, name: str, run: Callable[[], Awaitable[int]]) -> None:
        async def delayed() -> None:
            await asyncio.sleep(self.timing.signal_delay)
            if not self.context.valid:
                return
            await self._run_safely(name, run)

        task = asyncio.get_running_loop().create_task(delayed())
        self._scheduled.add(task)
        task.add_done_callback(self._scheduled.discard)

    async def _run_safely(self, name: str, run: Callable[[], Awaitable[int]]) -> int:
        try:
            count = await run()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(f"{name} pass failed")
            return 0
        self.results[name] += count
        return count

    async def _on_form_inserted(self) -> None:
        self.detector.clear_cache()
        for name, run in (
            ("fill", self.run_fill_pass),
            ("category", self.run_category_pass),
            ("location", self.run_location_pass),
        ):
            if not self.context.valid:
                return
            await self._run_safely(name, run)

    async def _on_radio_inserted(self) -> None:
        await self._run_safely("radio", self.run_radio_pass)

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------
    async def _candidates(self, field_type: str, extra: Optional[List[str]] = None) -> List[CandidateField]:
        selectors = list(self.selectors.selectors_for(field_type))
        for selector in extra or ():
            if selector not in selectors:
                selectors.append(selector)
        if not selectors:
            return []
        return await self.detector.find_candidates(selectors, field_type)

    async def _fillable(self, candidates: List[CandidateField]) -> List[CandidateField]:
        usable: List[CandidateField] = []
        for candidate in candidates:
            try:
                info = await candidate.element.describe()
            except Exception as exc:
                logger.debug(f"Dropping candidate {candidate.info.describe()}: {exc}")
                continue
            if _is_fillable(info):
                candidate.info = info
                usable.append(candidate)
        return usable

    async def run_fill_pass(self) -> int:
        """Universal form data, then social links, then passwords."""

        if not self.context.valid:
            return 0
        filled = await self.run_universal_pass()
        filled += await self.run_social_pass()
        filled += await self.run_password_pass()
        return filled

    def _service(self, platform: str) -> Mapping[str, Any]:
        service = self.state.services.get(platform, {})
        return service if isinstance(service, Mapping) else {}

    def _social_fallback(self, key: str) -> str:
        if key not in SOCIAL_FALLBACK_KEYS or not self._service(key).get("enabled", True):
            return ""
        return self.state.social_links.get(key, "")

    async def run_universal_pass(self) -> int:
        """Fill the best unclaimed control for each universal key.

        A control written for one key is not offered to later keys in the same
        pass, so ``email_address`` filled as EMAIL is not overwritten as ADDRESS.
        """

        data = self.state.universal_form_data
        claimed: Set[ControlKey] = set()
        filled = 0
        for key, field_type in UNIVERSAL_FIELDS.items():
            if not self.context.valid:
                break
            value = data.get(key) or self._social_fallback(key)
            if not value:
                continue
            extra = list(keyword_selectors(self._service(key).get("keywords", []))) if key in SOCIAL_FALLBACK_KEYS else None
            candidates = await self._fillable(await self._candidates(field_type, extra))
            best = next(
                (candidate for candidate in candidates if candidate.score > 0 and candidate.info.key not in claimed),
                None,
            )
            if best is None:
                logger.debug(f"No field found for {key}")
                continue
            claimed.add(best.info.key)
            if best.info.value == value:
                logger.debug(f"Field for {key} already holds the value")
                continue
            if best.info.tag == "select":
                filled += await self.option_selector.select_many([best], value, case_sensitive=False)
            elif await self.filler.fill(best, value):
                filled += 1
                await asyncio.sleep(self.timing.fill_delay)
        if filled:
            logger.info(f"Universal form pass filled {filled} field(s)")
        return filled

    async def run_social_pass(self) -> int:
        filled = 0
        for platform, url in self.state.social_links.items():
            if not self.context.valid:
                break
            if self.state.universal_form_data.get(platform):
                continue
            service = self._service(platform)
            if not service.get("enabled", True):
                logger.debug(f"Service {platform} disabled, skipping")
                continue
            candidates = await self._fillable(
                await self._candidates(platform.upper(), list(keyword_selectors(service.get("keywords", []))))
            )
            best = next((candidate for candidate in candidates if candidate.score > 0), None)
            if best is None:
                logger.debug(f"No field found for {platform}")
                continue
            if best.info.value == url:
                logger.debug(f"Field for {platform} already holds the link")
                continue
            if await self.filler.fill(best, url):
                filled += 1
                await asyncio.sleep(self.timing.fill_delay)
        return filled

    async def run_password_pass(self) -> int:
        password = self.state.fill_password
        if not password or not self.context.valid:
            return 0
        candidates = await self._fillable(await self._candidates("PASSWORD"))
        pending = [candidate for candidate in candidates if candidate.info.value != password]
        logger.debug(f"Found {len(candidates)} password field(s), {len(pending)} to fill")
        return await self.filler.fill_many(pending, password)

    async def run_category_pass(self, reload: bool = False) -> int:
        """Select the stored category. The exact phase is case-sensitive here."""

        if not self.context.valid:
            return 0
        if reload:
            self.state.selected_category = await self._load(keys.SELECTED_CATEGORY, "", str)
        category = self.state.selected_category
        if not category:
            return 0
        candidates = await self._fillable(await self._candidates("CATEGORY"))
        selected = await self.option_selector.select_many(candidates, category, case_sensitive=True)
        if selected:
            logger.info(f"Selected category {category!r} in {selected} dropdown(s)")
        return selected

    async def run_location_pass(self, reload: bool = False) -> int:
        if not self.context.valid:
            return 0
        if reload:
            self.state.selected_location = dict(await self._load(keys.SELECTED_LOCATION, {}, dict))
        location = self.state.selected_location
        if not location:
            return 0

        filled = 0
        for key, field_type in LOCATION_FIELDS:
            value = location.get(key)
            if not value or not self.context.valid:
                continue
            candidates = await self._fillable(await self._candidates(field_type))
            filled += await self.option_selector.select_many(candidates, value, case_sensitive=False)

        address = location.get("address")
        if address and self.context.valid:
            candidates = await self._fillable(await self._candidates("ADDRESS"))
            texts = [candidate for candidate in candidates if candidate.info.tag in ("input", "textarea")]
            filled += await self.filler.fill_many(texts, address)
        if filled:
            logger.info(f"Location pass filled {filled} field(s)")
        return filled

    async def run_radio_pass(self) -> int:
        if not self.context.valid:
            return 0
        return await self.radio.apply()


__all__ = [
    "DEFAULT_SERVICES",
    "ExtensionState",
    "FillOrchestrator",
    "OrchestratorState",
    "UNIVERSAL_FIELDS",
    "normalize_social_links",
]
