"""
Knowledge block model with versioning and canvas placement.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

PLACEHOLDER_CONTENT = "New block - click to edit"
INITIAL_VERSION = 1


class BlockType(str, Enum):
    """Kinds of knowledge a block can hold."""

    ARGUMENT = "argument"
    EVIDENCE = "evidence"
    QUOTE = "quote"
    HYPOTHESIS = "hypothesis"
    DATA = "data"
    QUESTION = "question"


class Position(BaseModel):
    """2D coordinate in canvas space."""

    x: float = 0.0
    y: float = 0.0


class BlockMetadata(BaseModel):
    """Auxiliary block fields. Only ``tags`` is read by the derived views."""

    model_config = ConfigDict(extra="allow")

    tags: list[str] = Field(default_factory=list, description="Display-ordered tags")
    sources: list[str] = Field(default_factory=list, description="Citations or links")
    confidence: float | None = Field(default=None, description="Author confidence")


class KnowledgeBlock(BaseModel):
    """
    A typed note placed on the project canvas.

    The first line of ``content`` doubles as the block title in exports.
    ``version`` starts at 1 and grows by exactly one per update.
    """

    model_config = ConfigDict(json_encoders={datetime: lambda v: v.isoformat()})

    # Core identity
    id: str = Field(..., description="Unique block ID (blk_xxx)")
    project_id: str = Field(..., description="Owning project ID")
    creator_id: str = Field(..., description="User that created the block")

    # Content
    block_type: BlockType = Field(..., description="Kind of knowledge")
    content: str = Field(default=PLACEHOLDER_CONTENT, description="Free text, first line is the title")
    metadata: BlockMetadata = Field(default_factory=BlockMetadata)

    # Canvas placement
    position: Position = Field(default_factory=Position)

    # Versioning
    version: int = Field(default=INITIAL_VERSION, ge=0, description="Monotonic version number")

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=datetime.now, description="Last update timestamp")

    @property
    def title(self) -> str:
        """First line of the content."""
        return self.content.split("\n")[0]

    @property
    def tags(self) -> list[str]:
        return self.metadata.tags


class BlockUpdate(BaseModel):
    """Partial update for a block. Only fields that are set (and not None) are applied."""

    block_type: BlockType | None = None
    content: str | None = None
    metadata: BlockMetadata | None = None
    position: Position | None = None

    def changes(self) -> dict[str, Any]:
        """Return the supplied fields as model values."""
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if getattr(self, name) is not None
        }


class BlockVersion(BaseModel):
    """
    Immutable history entry.

    Captures the block as it was *before* an update: ``version`` and
    ``content`` are the pre-update values.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique version record ID (ver_xxx)")
    block_id: str
    version: int
    content: str
    change_summary: str = ""
    changed_by: str
    created_at: datetime = Field(default_factory=datetime.now)
