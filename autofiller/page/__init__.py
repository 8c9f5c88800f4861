"""Document providers the engine can run against."""

from .base import (
    ControlInfo,
    ControlKey,
    Document,
    Element,
    InsertedNode,
    OptionInfo,
    origin_of,
)
from .soup_document import SoupDocument, SoupElement

__all__ = [
    "ControlInfo",
    "ControlKey",
    "Document",
    "Element",
    "InsertedNode",
    "OptionInfo",
    "SoupDocument",
    "SoupElement",
    "origin_of",
]
