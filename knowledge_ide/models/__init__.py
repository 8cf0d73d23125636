"""
Data models for the Knowledge IDE.

Core models:
- KnowledgeBlock, BlockType, Position, BlockMetadata, BlockUpdate: canvas notes
- BlockVersion: append-only pre-update history
- BlockRelationship, RelationshipType: directed multigraph edges
- Project, ProjectMetadata, WorkMode, SessionContext: containers and context
- Insight, InsightType: analyzer output
- AIPersona, AIInteraction, ExportFormat, ExportRecord, ExportResult: collaborator records
- GraphSnapshot: copy-out view of a project graph
"""

from knowledge_ide.models.block import (
    INITIAL_VERSION,
    PLACEHOLDER_CONTENT,
    BlockMetadata,
    BlockType,
    BlockUpdate,
    BlockVersion,
    KnowledgeBlock,
    Position,
)
from knowledge_ide.models.insight import Insight, InsightType
from knowledge_ide.models.interaction import (
    AIInteraction,
    AIPersona,
    ExportFormat,
    ExportRecord,
    ExportResult,
)
from knowledge_ide.models.project import Project, ProjectMetadata, SessionContext, WorkMode
from knowledge_ide.models.relationship import BlockRelationship, RelationshipType
from knowledge_ide.models.snapshot import GraphSnapshot

__all__ = [
    # Block models
    "KnowledgeBlock",
    "BlockType",
    "BlockMetadata",
    "BlockUpdate",
    "BlockVersion",
    "Position",
    "INITIAL_VERSION",
    "PLACEHOLDER_CONTENT",
    # Relationship models
    "BlockRelationship",
    "RelationshipType",
    # Project models
    "Project",
    "ProjectMetadata",
    "WorkMode",
    "SessionContext",
    # Derived views
    "Insight",
    "InsightType",
    "GraphSnapshot",
    # Collaborator records
    "AIPersona",
    "AIInteraction",
    "ExportFormat",
    "ExportRecord",
    "ExportResult",
]
