"""
Read-only copy of a project's graph.
"""

from pydantic import BaseModel, ConfigDict, Field

from knowledge_ide.models.block import KnowledgeBlock
from knowledge_ide.models.relationship import BlockRelationship


class GraphSnapshot(BaseModel):
    """Blocks and relationships copied out of the store at one point in time."""

    model_config = ConfigDict(frozen=True)

    project_id: str
    blocks: tuple[KnowledgeBlock, ...] = Field(default_factory=tuple)
    relationships: tuple[BlockRelationship, ...] = Field(default_factory=tuple)
