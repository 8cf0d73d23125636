"""
Services for the Knowledge IDE.

High-level business logic services:
- KnowledgeWorkspace: Unified interface for a user's active project
- CanvasController / ViewTransform: Canvas interaction state and geometry
- analyze_blocks: Heuristic insights over a block set
- render_export: Markdown, article and presentation renderings
"""

from knowledge_ide.services.canvas import (
    CanvasController,
    CanvasIntent,
    Connecting,
    CreateBlockIntent,
    CreateRelationshipIntent,
    EdgeSegment,
    Idle,
    PlacingMenuOpen,
    ViewTransform,
)
from knowledge_ide.services.export_renderer import (
    export_filename,
    parse_format,
    render_article,
    render_export,
    render_markdown,
    render_presentation,
)
from knowledge_ide.services.insight_analyzer import analyze_blocks, top_tags
from knowledge_ide.services.workspace import FALLBACK_RESPONSE, KnowledgeWorkspace

__all__ = [
    "KnowledgeWorkspace",
    "FALLBACK_RESPONSE",
    "CanvasController",
    "CanvasIntent",
    "ViewTransform",
    "Idle",
    "Connecting",
    "PlacingMenuOpen",
    "CreateBlockIntent",
    "CreateRelationshipIntent",
    "EdgeSegment",
    "analyze_blocks",
    "top_tags",
    "render_export",
    "render_markdown",
    "render_article",
    "render_presentation",
    "parse_format",
    "export_filename",
]
