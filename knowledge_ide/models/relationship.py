"""
Directed relationships between knowledge blocks.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class RelationshipType(str, Enum):
    """Types of relationships between blocks."""

    SUPPORTS = "supports"
    CONTRADICTS = "contradicts"
    CAUSES = "causes"
    REQUIRES = "requires"
    ELABORATES = "elaborates"


class BlockRelationship(BaseModel):
    """Directed edge from ``source_block_id`` to ``target_block_id``.

    Several relationships may join the same pair of blocks.
    """

    model_config = ConfigDict(json_encoders={datetime: lambda v: v.isoformat()})

    id: str = Field(..., description="Unique relationship ID (rel_xxx)")
    project_id: str
    source_block_id: str
    target_block_id: str
    relationship_type: RelationshipType
    strength: float = 1.0
    notes: str = ""
    created_at: datetime = Field(default_factory=datetime.now)

    def touches(self, block_id: str) -> bool:
        """True when the block is either endpoint."""
        return self.source_block_id == block_id or self.target_block_id == block_id
