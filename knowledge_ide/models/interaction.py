"""
Persona interaction and export archive records.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class AIPersona(str, Enum):
    """Thinking partners available in the AI panel."""

    CRITIC = "critic"
    EDITOR = "editor"
    RESEARCHER = "researcher"
    SYNTHESIZER = "synthesizer"


class ExportFormat(str, Enum):
    """Text encodings produced by the export renderer."""

    MARKDOWN = "markdown"
    ARTICLE = "article"
    PRESENTATION = "presentation"


class AIInteraction(BaseModel):
    """Archived persona request/response pair."""

    id: str
    project_id: str
    user_id: str
    persona: AIPersona
    prompt: str
    response: str
    context_blocks: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)


class ExportRecord(BaseModel):
    """Archived export, stored verbatim before download."""

    id: str
    project_id: str
    creator_id: str
    format: ExportFormat
    audience: str = ""
    content: str
    created_at: datetime = Field(default_factory=datetime.now)


class ExportResult(BaseModel):
    """Rendered export ready for download."""

    filename: str
    content: str
    format: ExportFormat
    record_id: str | None = None
