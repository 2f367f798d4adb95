"""Anchoring engine: serialize live ranges, index documents, resolve descriptors."""

from spanmark.anchoring.descriptor import PositionDescriptor
from spanmark.anchoring.resolver import resolve_position
from spanmark.anchoring.serializer import (
    CONTEXT_WINDOW,
    extract_context,
    serialize_position,
)
from spanmark.anchoring.text_index import Segment, TextIndex, build_text_index
from spanmark.anchoring.text_range import TextRange

__all__ = [
    "CONTEXT_WINDOW",
    "PositionDescriptor",
    "Segment",
    "TextIndex",
    "TextRange",
    "build_text_index",
    "extract_context",
    "resolve_position",
    "serialize_position",
]
