"""Error taxonomy shared by the autofill engine."""
from __future__ import annotations

from typing import Any, Dict, Optional


class AutofillError(RuntimeError):
    """Base class for engine errors."""

    def __init__(self, message: str, *, recoverable: bool = True, data: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.recoverable = recoverable
        self.data = data or {}


class SelectorError(AutofillError):
    """Raised when a selector pattern is malformed or unsupported by the document."""

    def __init__(self, selector: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"Invalid selector {selector!r}: {cause}", data={"selector": selector})
        self.selector = selector


class FillError(AutofillError):
    """Raised when writing a value or dispatching a notification fails."""


class StorageError(AutofillError):
    """Raised when the storage provider cannot read or write a key."""

    def __init__(self, message: str, *, key: Optional[str] = None) -> None:
        super().__init__(message, data={"key": key} if key else None)
        self.key = key


class ContextInvalidError(AutofillError):
    """Raised once the host has torn down the page context."""

    def __init__(self, message: str = "Page context has been invalidated") -> None:
        super().__init__(message, recoverable=False)


__all__ = [
    "AutofillError",
    "ContextInvalidError",
    "FillError",
    "SelectorError",
    "StorageError",
]
