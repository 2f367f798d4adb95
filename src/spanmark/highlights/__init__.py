"""Highlight lifecycle: decorations, the annotation store and its manager."""

from spanmark.highlights.decoration import AttachResult, attach_highlight
from spanmark.highlights.editor import EditorSurface
from spanmark.highlights.manager import HighlightManager, RestoreSummary
from spanmark.highlights.store import Annotation, AnnotationStore, generate_id

__all__ = [
    "Annotation",
    "AnnotationStore",
    "AttachResult",
    "EditorSurface",
    "HighlightManager",
    "RestoreSummary",
    "attach_highlight",
    "generate_id",
]
