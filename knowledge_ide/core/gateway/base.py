"""
Base interface for the persistence gateway.

Table-oriented CRUD over the six record kinds the workspace persists.
Records travel as JSON-compatible dicts.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any


class Table(str, Enum):
    """Record kinds stored by the gateway."""

    PROJECTS = "projects"
    KNOWLEDGE_BLOCKS = "knowledge_blocks"
    BLOCK_RELATIONSHIPS = "block_relationships"
    BLOCK_VERSIONS = "block_versions"
    AI_INTERACTIONS = "ai_interactions"
    EXPORTS = "exports"


class PersistenceGateway(ABC):
    """Abstract base class for persistence gateway implementations."""

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the gateway (create tables/schema)."""
        pass

    @abstractmethod
    async def insert(self, table: Table, record: dict[str, Any]) -> dict[str, Any]:
        """
        Insert a record, filling defaults.

        Missing ``id``, ``created_at`` and ``updated_at`` values are assigned
        by the gateway.

        Args:
            table: Target table
            record: Record fields

        Returns:
            The stored record including assigned defaults

        Raises:
            GatewayError: If the record cannot be stored
        """
        pass

    @abstractmethod
    async def select(
        self,
        table: Table,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        """
        Select records matching equality filters.

        Args:
            table: Table to read
            filters: Field/value equality conditions (e.g., {"project_id": "proj_1"})
            order_by: Optional field to sort by
            descending: Sort direction

        Returns:
            List of matching records
        """
        pass

    @abstractmethod
    async def update(
        self,
        table: Table,
        record_id: str,
        changes: dict[str, Any],
        expected: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Update fields of a record by ID.

        Args:
            table: Target table
            record_id: Record identifier
            changes: Fields to overwrite
            expected: Field values the stored record must still hold
                (e.g., {"version": 3}); checked atomically with the write

        Returns:
            The updated record

        Raises:
            NotFoundError: If no record has this ID
            VersionConflictError: If the record no longer matches ``expected``
        """
        pass

    @abstractmethod
    async def delete(self, table: Table, record_id: str) -> None:
        """
        Delete a record by ID.

        Raises:
            NotFoundError: If no record has this ID
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the connection to the backing store."""
        pass
