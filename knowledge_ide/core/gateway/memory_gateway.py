"""
In-process gateway backed by plain dicts.

Used for local development and tests.
"""

import copy
from datetime import datetime
from typing import Any

from knowledge_ide.core.gateway.base import PersistenceGateway, Table
from knowledge_ide.utils.exceptions import NotFoundError, VersionConflictError
from knowledge_ide.utils.id_generator import ID_GENERATORS
from knowledge_ide.utils.logger import get_logger

logger = get_logger(__name__)


class InMemoryGateway(PersistenceGateway):
    """Dict-backed gateway. Records are copied in and out."""

    def __init__(self):
        self.tables: dict[Table, dict[str, dict[str, Any]]] = {table: {} for table in Table}

    async def initialize(self) -> None:
        logger.debug("In-memory gateway ready")

    async def insert(self, table: Table, record: dict[str, Any]) -> dict[str, Any]:
        table = Table(table)
        stored = copy.deepcopy(record)
        now = datetime.now().isoformat()
        stored.setdefault("id", ID_GENERATORS[table.value]())
        stored.setdefault("created_at", now)
        if table != Table.BLOCK_VERSIONS:
            stored.setdefault("updated_at", now)

        self.tables[table][stored["id"]] = stored
        return copy.deepcopy(stored)

    async def select(
        self,
        table: Table,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        rows = [
            row
            for row in self.tables[Table(table)].values()
            if all(row.get(key) == value for key, value in (filters or {}).items())
        ]
        if order_by:
            rows.sort(key=lambda row: str(row.get(order_by, "")), reverse=descending)
        return copy.deepcopy(rows)

    async def update(
        self,
        table: Table,
        record_id: str,
        changes: dict[str, Any],
        expected: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        table = Table(table)
        rows = self.tables[table]
        if record_id not in rows:
            raise NotFoundError(
                f"Record not found: {table.value}/{record_id}",
                {"table": table.value, "id": record_id},
            )

        current = rows[record_id]
        stale = {
            key: current.get(key)
            for key, value in (expected or {}).items()
            if current.get(key) != value
        }
        if stale:
            raise VersionConflictError(
                f"Record {table.value}/{record_id} changed since it was read",
                {"table": table.value, "id": record_id, "expected": expected, "current": stale},
            )

        current.update(copy.deepcopy(changes))
        return copy.deepcopy(rows[record_id])

    async def delete(self, table: Table, record_id: str) -> None:
        table = Table(table)
        rows = self.tables[table]
        if record_id not in rows:
            raise NotFoundError(
                f"Record not found: {table.value}/{record_id}",
                {"table": table.value, "id": record_id},
            )
        del rows[record_id]

    async def close(self) -> None:
        pass
