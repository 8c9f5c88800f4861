"""Radio-button rule engine.

Three rule sources are applied in order on every pass:

* origin rules, a static table of selectors for known sites;
* user rules persisted under ``radioButtonSelections``;
* generic consent heuristics that apply on every site.

Checking is idempotent. A radio that is already checked is left alone and not
counted, so re-running a pass over a stable page does nothing.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple

from .context import EngineContext
from .errors import FillError, SelectorError, StorageError
from .filler import FieldFiller
from .options import match_option
from .page.base import ControlInfo, Element, OptionInfo
from .storage import RADIO_SELECTIONS, StorageProvider

logger = logging.getLogger(__name__)

RADIO_SELECTOR = 'input[type="radio"]'

ORIGIN_RULES: Dict[str, Dict[str, bool]] = {
    "https://www.allstatesusadirectory.com": {
        'input[type="radio"][name="productType"][value="001"]': True,
    },
    "https://www.hitwebdirectory.com": {
        'input[type="radio"][name="productType"][value="001"]': True,
    },
}
"""Selectors enforced on specific origins (free listing tier on directory sites)."""

AFFIRMATIVE_TOKENS = frozenset({"yes", "true", "agree", "accept", "consent", "1", "on", "ok", "y"})
NEGATIVE_TOKENS = frozenset({"no", "false", "disagree", "decline", "reject", "not", "0", "off"})


def is_affirmative(value: str) -> bool:
    tokens = [token for token in re.split(r"[^a-z0-9]+", (value or "").lower()) if token]
    if any(token in NEGATIVE_TOKENS for token in tokens):
        return False
    if any(token in AFFIRMATIVE_TOKENS for token in tokens):
        return True
    lowered = (value or "").lower()
    return any(word in lowered for word in ("agree", "accept", "yes", "true"))


@dataclass(frozen=True)
class EnforcedSelectionRule:
    selector_pattern: str
    should_apply: bool = True


@dataclass(frozen=True)
class GenericRadioRule:
    """Consent heuristic: keyword in name or id plus an affirmative value."""

    attribute_keywords: Tuple[str, ...] = ("agree", "terms", "accept", "consent")

    def matches(self, info: ControlInfo) -> bool:
        haystack = f"{info.name} {info.element_id}".lower()
        if not any(keyword in haystack for keyword in self.attribute_keywords):
            return False
        return is_affirmative(info.value)


DEFAULT_GENERIC_RULES: Tuple[GenericRadioRule, ...] = (GenericRadioRule(),)


class RadioRuleStore:
    """Reads and writes the persisted ``radioButtonSelections`` map."""

    def __init__(self, storage: StorageProvider) -> None:
        self.storage = storage

    async def load(self) -> Dict[str, EnforcedSelectionRule]:
        raw = await self.storage.get(RADIO_SELECTIONS, {})
        if not isinstance(raw, dict):
            logger.warning(f"Ignoring malformed {RADIO_SELECTIONS}: expected an object")
            return {}
        return {
            str(pattern): EnforcedSelectionRule(str(pattern), bool(should_apply))
            for pattern, should_apply in raw.items()
        }

    async def save(self, rules: Mapping[str, EnforcedSelectionRule]) -> None:
        await self.storage.set(RADIO_SELECTIONS, {pattern: rule.should_apply for pattern, rule in rules.items()})

    async def add(self, pattern: str, should_apply: bool = True) -> Dict[str, EnforcedSelectionRule]:
        rules = await self.load()
        rules[pattern] = EnforcedSelectionRule(pattern, should_apply)
        await self.save(rules)
        return rules

    async def remove(self, pattern: str) -> bool:
        rules = await self.load()
        if rules.pop(pattern, None) is None:
            return False
        await self.save(rules)
        return True


class RadioRuleEngine:
    """Decides which radios to check and checks them through the filler."""

    def __init__(
        self,
        context: EngineContext,
        filler: FieldFiller,
        store: Optional[RadioRuleStore] = None,
        *,
        origin_rules: Optional[Mapping[str, Mapping[str, bool]]] = None,
        generic_rules: Sequence[GenericRadioRule] = DEFAULT_GENERIC_RULES,
        enabled: bool = True,
    ) -> None:
        self.context = context
        self.filler = filler
        self.store = store
        self.origin_rules = ORIGIN_RULES if origin_rules is None else origin_rules
        self.generic_rules = tuple(generic_rules)
        self.enabled = enabled
        self.rules: Dict[str, EnforcedSelectionRule] = {}

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled
        logger.info(f"Radio rule engine {'enabled' if enabled else 'disabled'}")

    async def load_rules(self) -> None:
        if self.store is None:
            return
        try:
            self.rules = await self.store.load()
        except StorageError as exc:
            logger.error(f"Could not load radio rules: {exc}")
            self.rules = {}
        logger.debug(f"Loaded {len(self.rules)} radio rule(s)")

    async def add_rule(self, pattern: str, should_apply: bool = True) -> None:
        """Record a rule and persist it. Call :meth:`apply` to act on it."""

        self.rules[pattern] = EnforcedSelectionRule(pattern, should_apply)
        if self.store is not None:
            await self.store.save(self.rules)

    async def remove_rule(self, pattern: str) -> bool:
        if self.rules.pop(pattern, None) is None:
            return False
        if self.store is not None:
            await self.store.save(self.rules)
        return True

    async def apply(self) -> int:
        """Run every rule source once and return the number of radios checked."""

        if not self.enabled:
            logger.debug("Radio rule engine disabled, nothing applied")
            return 0
        if not self.context.valid:
            return 0

        checked = 0
        for pattern, should_apply in self.origin_rules.get(self.context.origin, {}).items():
            if should_apply:
                checked += await self._apply_pattern(pattern)
        for rule in list(self.rules.values()):
            if rule.should_apply:
                checked += await self._apply_pattern(rule.selector_pattern)
        if self.generic_rules:
            checked += await self._apply_generic()
        if checked:
            logger.info(f"Radio rules checked {checked} radio(s)")
        return checked

    async def _apply_pattern(self, pattern: str) -> int:
        if not self.context.valid:
            return 0
        try:
            elements = await self.context.document.query_selector_all(pattern)
        except Exception as exc:
            logger.warning(f"Skipping radio rule: {SelectorError(pattern, exc)}")
            return 0
        if not elements:
            return 0
        return 1 if await self.check(elements[0]) else 0

    async def _apply_generic(self) -> int:
        radios = await self._radios()
        claimed: Set[str] = {info.name for _, info in radios if info.checked and info.name}
        checked = 0
        for element, info in radios:
            if not self.context.valid:
                break
            if info.name and info.name in claimed:
                continue
            if any(rule.matches(info) for rule in self.generic_rules):
                if await self.check(element):
                    checked += 1
                if info.name:
                    claimed.add(info.name)
        return checked

    async def _radios(self) -> List[Tuple[Element, ControlInfo]]:
        radios: List[Tuple[Element, ControlInfo]] = []
        for element in await self.context.document.query_selector_all(RADIO_SELECTOR):
            try:
                radios.append((element, await element.describe()))
            except Exception as exc:
                logger.debug(f"Could not inspect radio: {exc}")
        return radios

    async def check(self, element: Element) -> bool:
        """Check ``element`` unless it is already checked. Returns True on a change."""

        if not self.context.valid:
            return False
        try:
            info = await element.describe()
        except Exception as exc:
            logger.debug(f"Could not inspect radio: {exc}")
            return False
        if info.checked:
            logger.debug(f"Radio {info.describe()} already checked")
            return False
        if not info.is_writable:
            logger.debug(f"Radio {info.describe()} is disabled or read-only")
            return False
        try:
            await element.set_checked(True)
            await self.filler.emit_notifications(element)
        except Exception as exc:
            self.filler.failures += 1
            logger.warning(str(FillError(f"Failed to check radio {info.describe()}: {exc}", data={"key": info.key})))
            return False
        self.filler.filled.add(info.key)
        await self.filler.highlight(element, info)
        logger.info(f"Checked radio {info.describe()} (value={info.value!r})")
        return True

    async def select_by_value(self, group_name: str, target: str) -> bool:
        """Check the radio in ``group_name`` whose label or value best matches ``target``."""

        if not self.enabled or not self.context.valid:
            return False
        group = [(element, info) for element, info in await self._radios() if info.name == group_name]
        options = [OptionInfo(text=info.label or info.value, value=info.value) for _, info in group]
        match = match_option(options, target, case_sensitive=False)
        if match is None:
            logger.debug(f"No radio in group {group_name!r} matches {target!r}")
            return False
        return await self.check(group[match.index][0])


__all__ = [
    "DEFAULT_GENERIC_RULES",
    "EnforcedSelectionRule",
    "GenericRadioRule",
    "ORIGIN_RULES",
    "RadioRuleEngine",
    "RadioRuleStore",
    "is_affirmative",
]
