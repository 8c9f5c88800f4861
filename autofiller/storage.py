"""Key-value storage providers for the user profile."""
from __future__ import annotations

import asyncio
import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

from .errors import StorageError

logger = logging.getLogger(__name__)

SELECTED_CATEGORY = "selectedCategory"
SELECTED_LOCATION = "selectedLocation"
SOCIAL_LINKS = "socialLinks"
UNIVERSAL_FORM_DATA = "universalFormData"
FILL_PASSWORD = "fillPassword"
RADIO_SELECTIONS = "radioButtonSelections"
SETTINGS = "settings"
SERVICES = "services"

PROFILE_KEYS = (
    SELECTED_CATEGORY,
    SELECTED_LOCATION,
    SOCIAL_LINKS,
    UNIVERSAL_FORM_DATA,
    FILL_PASSWORD,
    RADIO_SELECTIONS,
    SETTINGS,
    SERVICES,
)


class StorageProvider(Protocol):
    async def get(self, key: str, default: Any = None) -> Any:
        ...

    async def set(self, key: str, value: Any) -> None:
        ...


class MemoryStorage:
    """Dictionary-backed storage. Values are copied on the way in and out."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = copy.deepcopy(initial or {})

    async def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)


class JsonFileStorage:
    """Profile stored as one JSON object on disk, read and written whole."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageError(f"Failed to read profile {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StorageError(f"Profile {self.path} must contain a JSON object")
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Failed to write profile {self.path}: {exc}") from exc

    async def get(self, key: str, default: Any = None) -> Any:
        data = await asyncio.to_thread(self._read)
        return data.get(key, default)

    async def set(self, key: str, value: Any) -> None:
        def update() -> None:
            data = self._read()
            data[key] = value
            self._write(data)

        try:
            await asyncio.to_thread(update)
        except StorageError as exc:
            exc.key = key
            exc.data["key"] = key
            raise
        logger.debug(f"Stored {key} in {self.path}")


__all__ = [
    "JsonFileStorage",
    "MemoryStorage",
    "PROFILE_KEYS",
    "StorageProvider",
]
