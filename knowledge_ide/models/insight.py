"""
Heuristic observations derived from a block collection.
"""

from enum import Enum

from pydantic import BaseModel, Field


class InsightType(str, Enum):
    """Insight categories. No current rule emits CONTRADICTION."""

    PATTERN = "pattern"
    GAP = "gap"
    CONTRADICTION = "contradiction"
    OPPORTUNITY = "opportunity"


class Insight(BaseModel):
    """A single observation about the knowledge graph."""

    type: InsightType
    title: str
    description: str
    related_blocks: list[str] = Field(default_factory=list, description="Referenced block IDs")
