"""Per-page engine context shared by every component."""
from __future__ import annotations

import logging
from typing import Optional

from .config import EngineTiming
from .errors import ContextInvalidError
from .page.base import Document, origin_of

logger = logging.getLogger(__name__)

DEFAULT_HIGHLIGHT_STYLE = "0 0 5px green"


class EngineContext:
    """Holds the document, timing and validity flag for one page lifetime.

    Delayed callbacks consult :attr:`valid` before touching the document; once
    :meth:`invalidate` has been called the flag never flips back.
    """

    def __init__(
        self,
        document: Document,
        timing: Optional[EngineTiming] = None,
        highlight_style: str = DEFAULT_HIGHLIGHT_STYLE,
    ) -> None:
        self.document = document
        self.timing = timing or EngineTiming()
        self.highlight_style = highlight_style
        self._valid = True

    @property
    def valid(self) -> bool:
        return self._valid

    @property
    def origin(self) -> str:
        return origin_of(self.document.url)

    def invalidate(self) -> None:
        if self._valid:
            logger.info(f"Context invalidated for {self.document.url}")
        self._valid = False

    def ensure_valid(self) -> None:
        if not self._valid:
            raise ContextInvalidError()
