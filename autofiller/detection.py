"""Candidate discovery and relevance scoring for semantic field types."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .context import EngineContext
from .errors import SelectorError
from .page.base import ControlInfo, ControlKey, Element

logger = logging.getLogger(__name__)

BASE_SCORE = 10
NAME_MATCH_SCORE = 20
PREFIX_MATCH_SCORE = 10
USABLE_SCORE = 5
EMPTY_SCORE = 5
UNFILLABLE_PENALTY = 20

CacheKey = Tuple[str, str]


@dataclass
class CandidateField:
    """A detected control considered for filling."""

    element: Element
    info: ControlInfo
    score: int
    matched_selector: str
    field_type: str

    @property
    def key(self) -> ControlKey:
        return self.info.key


def score_control(info: ControlInfo, field_type: str) -> int:
    """Score ``info`` for relevance to ``field_type``; never negative."""

    semantic = field_type.lower()
    haystack = " ".join((info.name, info.element_id, info.placeholder)).lower()
    score = BASE_SCORE
    if semantic and semantic in haystack:
        score += NAME_MATCH_SCORE
    elif len(semantic) >= 3 and semantic[:3] in haystack:
        score += PREFIX_MATCH_SCORE
    if info.visible and info.is_writable:
        score += USABLE_SCORE
    if info.is_empty:
        score += EMPTY_SCORE
    if info.is_hidden_input or not info.is_writable:
        score -= UNFILLABLE_PENALTY
    return max(score, 0)


class DetectionCache:
    """Detection results keyed by field type and selector list.

    Entries live until :meth:`clear` is called; there is no expiry.
    """

    def __init__(self) -> None:
        self._entries: Dict[CacheKey, List[CandidateField]] = {}

    @staticmethod
    def make_key(field_type: str, selectors: Sequence[str]) -> CacheKey:
        return (field_type, "\n".join(selectors))

    def get(self, key: CacheKey) -> Optional[List[CandidateField]]:
        return self._entries.get(key)

    def set(self, key: CacheKey, candidates: List[CandidateField]) -> None:
        self._entries[key] = list(candidates)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class FieldDetector:
    """Enumerates, scores, deduplicates and caches candidate controls."""

    def __init__(self, context: EngineContext, cache: Optional[DetectionCache] = None) -> None:
        self.context = context
        self.cache = cache if cache is not None else DetectionCache()

    async def find_candidates(self, selectors: Sequence[str], field_type: str) -> List[CandidateField]:
        """Return candidates for ``field_type`` ordered by descending score.

        Each selector is queried on its own; a failing selector is logged and
        skipped. Controls matched by several selectors are reported once, under
        the first selector that found them. Equal scores keep discovery order.
        """

        key = DetectionCache.make_key(field_type, selectors)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Detection cache hit for {field_type} ({len(cached)} candidate(s))")
            return list(cached)

        discovered: List[CandidateField] = []
        seen: Set[ControlKey] = set()
        for selector in selectors:
            try:
                elements = await self.context.document.query_selector_all(selector)
            except Exception as exc:
                error = SelectorError(selector, exc)
                logger.warning(f"Skipping selector for {field_type}: {error}")
                continue

            for element in elements:
                try:
                    info = await element.describe()
                except Exception as exc:
                    logger.debug(f"Could not inspect control matched by {selector!r}: {exc}")
                    continue
                if info.key in seen:
                    continue
                seen.add(info.key)
                discovered.append(
                    CandidateField(
                        element=element,
                        info=info,
                        score=score_control(info, field_type),
                        matched_selector=selector,
                        field_type=field_type,
                    )
                )

        ranked = sorted(discovered, key=lambda candidate: -candidate.score)
        self.cache.set(key, ranked)
        logger.debug(f"Detected {len(ranked)} candidate(s) for {field_type}")
        return list(ranked)

    def clear_cache(self) -> None:
        self.cache.clear()


__all__ = [
    "CandidateField",
    "DetectionCache",
    "FieldDetector",
    "score_control",
]
