"""Resolve a PositionDescriptor back into a live range.

The descriptor's context-plus-selection pattern is searched for in a
freshly built text index.  The leftmost occurrence always wins: identical
repeated passages may therefore resolve to the earlier copy.  That is a
known precision limit of context matching and is kept deliberately simple.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from spanmark.errors import ResolutionFailed

if TYPE_CHECKING:
    from spanmark.anchoring.descriptor import PositionDescriptor
    from spanmark.anchoring.text_index import TextIndex
    from spanmark.anchoring.text_range import TextRange

logger = logging.getLogger(__name__)


def locate(descriptor: PositionDescriptor, index: TextIndex) -> TextRange:
    """Find the range for *descriptor* in *index*.

    Raises:
        ResolutionFailed: The pattern is absent, its offsets cannot be mapped
            onto text nodes, or the mapped range does not read back as the
            selected text.
    """
    match_index = index.find(descriptor.pattern)
    if match_index == -1:
        msg = f"Pattern not found for {descriptor.selected_text[:40]!r}"
        raise ResolutionFailed(msg)

    target_start = match_index + len(descriptor.before_text)
    target_end = target_start + len(descriptor.selected_text)

    text_range = index.range_for(target_start, target_end)
    if text_range is None:
        msg = f"Offsets {target_start}-{target_end} fall outside the index"
        raise ResolutionFailed(msg)

    # Segment mapping can land awkwardly on node boundaries; never hand back
    # a range that reads differently from what was annotated.
    if text_range.text != descriptor.selected_text:
        msg = (
            f"Range text mismatch at {target_start}-{target_end}: "
            f"expected {descriptor.selected_text[:40]!r}"
        )
        raise ResolutionFailed(msg)

    return text_range


def resolve_position(
    descriptor: PositionDescriptor, index: TextIndex
) -> TextRange | None:
    """Resolve *descriptor* against *index*, or return None when it no longer matches.

    A None result is an expected outcome (the surrounding content changed
    too much) and is only logged at debug level.
    """
    try:
        return locate(descriptor, index)
    except ResolutionFailed as exc:
        logger.debug("Resolution failed: %s", exc)
        return None
