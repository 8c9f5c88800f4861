"""Registry of CSS selector patterns per semantic field type.

Patterns are plain CSS understood by both soupsieve and browsers. Attribute
substring matches use the ``i`` flag so ``name="UserEmail"`` matches the
``email`` pattern. Order matters: the detector discovers controls in pattern
order and uses that order to break score ties.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, Sequence, Tuple


def _attribute_patterns(tag: str, keywords: Sequence[str], attributes: Sequence[str] = ("name", "id", "placeholder")) -> Tuple[str, ...]:
    return tuple(f'{tag}[{attribute}*="{keyword}" i]' for keyword in keywords for attribute in attributes)


SOCIAL_PLATFORMS: Tuple[str, ...] = (
    "facebook",
    "instagram",
    "twitter",
    "youtube",
    "linkedin",
    "pinterest",
    "tiktok",
    "snapchat",
)
"""Platforms understood by the social-link pass, in fill order."""

_SOCIAL_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "facebook": ("facebook", "fb_"),
    "instagram": ("instagram", "insta"),
    "twitter": ("twitter",),
    "youtube": ("youtube",),
    "linkedin": ("linkedin",),
    "pinterest": ("pinterest",),
    "tiktok": ("tiktok",),
    "snapchat": ("snapchat",),
}

SELECTOR_REGISTRY: Dict[str, Tuple[str, ...]] = {
    "EMAIL": ('input[type="email"]',) + _attribute_patterns("input", ("email", "e-mail")),
    "PHONE": ('input[type="tel"]',) + _attribute_patterns("input", ("phone", "mobile", "tel")),
    "NAME": ('input[name="name" i]', 'input[id="name" i]')
    + _attribute_patterns("input", ("full_name", "fullname", "your_name", "yourname", "contact_name")),
    "COMPANY": _attribute_patterns("input", ("company", "business", "organization")),
    "ADDRESS": _attribute_patterns("input", ("address", "street")) + _attribute_patterns("textarea", ("address",)),
    "CITY": _attribute_patterns("input", ("city", "town")) + _attribute_patterns("select", ("city",), ("name", "id")),
    "STATE": _attribute_patterns("input", ("state", "province")) + _attribute_patterns("select", ("state", "province"), ("name", "id")),
    "REGION": _attribute_patterns("select", ("region", "state", "province"), ("name", "id")),
    "COUNTRY": _attribute_patterns("select", ("country",), ("name", "id")) + _attribute_patterns("input", ("country",)),
    "ZIP": _attribute_patterns("input", ("zip", "postal", "postcode")),
    "TITLE": _attribute_patterns("input", ("title", "subject", "heading")),
    "WEBSITE": ('input[type="url"]', 'input[name="url" i]', 'input[id="url" i]')
    + _attribute_patterns("input", ("website", "homepage")),
    "DESCRIPTION": _attribute_patterns("textarea", ("description", "content", "details", "message", "body")),
    "KEYWORDS": _attribute_patterns("input", ("keyword", "tags")),
    "PASSWORD": ('input[type="password"]',),
    "CATEGORY": (
        'select[name="CATEGORY_ID"]',
        'select[name*="category" i]',
        'select[id*="category" i]',
        'select[name*="cat_id" i]',
    ),
}
SELECTOR_REGISTRY.update(
    {platform.upper(): _attribute_patterns("input", keywords) for platform, keywords in _SOCIAL_KEYWORDS.items()}
)


class SelectorSet(Mapping[str, Tuple[str, ...]]):
    """Immutable mapping of field type to ordered selector patterns."""

    def __init__(self, entries: Mapping[str, Iterable[str]]) -> None:
        self._entries = MappingProxyType({key.upper(): tuple(value) for key, value in entries.items()})

    def __getitem__(self, field_type: str) -> Tuple[str, ...]:
        return self._entries[field_type.upper()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def selectors_for(self, field_type: str) -> Tuple[str, ...]:
        """Return the patterns for ``field_type`` or an empty tuple."""

        return self._entries.get(field_type.upper(), ())

    @property
    def field_types(self) -> Tuple[str, ...]:
        return tuple(self._entries)

    def with_extra(self, field_type: str, selectors: Iterable[str]) -> "SelectorSet":
        """Return a new set with ``selectors`` appended to ``field_type``'s patterns."""

        merged = dict(self._entries)
        current = list(merged.get(field_type.upper(), ()))
        for selector in selectors:
            if selector not in current:
                current.append(selector)
        merged[field_type.upper()] = tuple(current)
        return SelectorSet(merged)


DEFAULT_SELECTORS = SelectorSet(SELECTOR_REGISTRY)


def keyword_selectors(keywords: Iterable[str]) -> Tuple[str, ...]:
    """Build text-input patterns for free-form service keywords."""

    cleaned = [keyword.strip().replace('"', "") for keyword in keywords if keyword and keyword.strip()]
    return _attribute_patterns("input", cleaned)


__all__ = [
    "DEFAULT_SELECTORS",
    "SELECTOR_REGISTRY",
    "SOCIAL_PLATFORMS",
    "SelectorSet",
    "keyword_selectors",
]
