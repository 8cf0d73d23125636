"""
Project container and session models.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ProjectMetadata(BaseModel):
    """Project classification."""

    model_config = ConfigDict(extra="allow")

    tags: list[str] = Field(default_factory=list)
    category: str | None = None


class Project(BaseModel):
    """Container owning the blocks and relationships scoped by ``project_id``."""

    id: str = Field(..., description="Unique project ID (proj_xxx)")
    owner_id: str
    title: str
    description: str = ""
    metadata: ProjectMetadata = Field(default_factory=ProjectMetadata)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class WorkMode(str, Enum):
    """Canvas working modes. Each mode surfaces different derived panels."""

    EXPLORATION = "exploration"
    SYNTHESIS = "synthesis"
    COMPOSITION = "composition"


class SessionContext(BaseModel):
    """Explicit identity of the user driving a workspace."""

    model_config = ConfigDict(frozen=True)

    user_id: str
