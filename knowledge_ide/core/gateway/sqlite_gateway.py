"""
SQLite persistence gateway.

One table per record kind; each row keeps the full record as a JSON
document, with filters and ordering evaluated through json_extract.
"""

import json
import re
from datetime import datetime
from pathlib import Path
from typing import Any

import aiosqlite

from knowledge_ide.core.gateway.base import PersistenceGateway, Table
from knowledge_ide.utils.exceptions import (
    GatewayError,
    NotFoundError,
    ValidationError,
    VersionConflictError,
)
from knowledge_ide.utils.id_generator import ID_GENERATORS
from knowledge_ide.utils.logger import get_logger

logger = get_logger(__name__)

_FIELD_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class SQLiteGateway(PersistenceGateway):
    """
    SQLite-based gateway for projects, blocks and their satellite records.

    Features:
    - Fast local storage
    - JSON documents with indexed id/project columns
    - WAL journaling
    """

    def __init__(self, db_path: str = "data/knowledge_ide.db"):
        """
        Initialize SQLite gateway.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        self.connection: aiosqlite.Connection | None = None

        # Ensure directory exists
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    async def connect(self) -> None:
        """Establish connection to SQLite."""
        if self.connection is None:
            try:
                self.connection = await aiosqlite.connect(self.db_path)
                await self.connection.execute("PRAGMA journal_mode = WAL")
                await self.connection.commit()
            except aiosqlite.Error as e:
                raise GatewayError(f"Cannot open SQLite database: {e}") from e

    async def initialize(self) -> None:
        """Initialize database schema."""
        await self.connect()

        try:
            for table in Table:
                await self.connection.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {table.value} (
                        id TEXT PRIMARY KEY,
                        project_id TEXT,
                        created_at TEXT NOT NULL,
                        data TEXT NOT NULL DEFAULT '{{}}'
                    )
                """
                )
                await self.connection.execute(
                    f"CREATE INDEX IF NOT EXISTS idx_{table.value}_project "
                    f"ON {table.value}(project_id)"
                )
            await self.connection.commit()
        except aiosqlite.Error as e:
            raise GatewayError(f"Failed to initialize schema: {e}") from e

        logger.info(f"SQLite gateway initialized at {self.db_path}")

    # ═══════════════════════════════════════════════════════════
    # RECORD OPERATIONS
    # ═══════════════════════════════════════════════════════════

    async def insert(self, table: Table, record: dict[str, Any]) -> dict[str, Any]:
        """Insert a record, assigning id and timestamps when missing."""
        await self.connect()
        table = Table(table)

        stored = dict(record)
        now = datetime.now().isoformat()
        stored.setdefault("id", ID_GENERATORS[table.value]())
        stored.setdefault("created_at", now)
        if table != Table.BLOCK_VERSIONS:
            stored.setdefault("updated_at", now)

        try:
            await self.connection.execute(
                f"INSERT INTO {table.value} (id, project_id, created_at, data) VALUES (?, ?, ?, ?)",
                (
                    stored["id"],
                    stored.get("project_id"),
                    stored["created_at"],
                    json.dumps(stored),
                ),
            )
            await self.connection.commit()
        except aiosqlite.Error as e:
            logger.error(f"Insert into {table.value} failed: {e}")
            raise GatewayError(
                f"Insert into {table.value} failed: {e}", {"table": table.value}
            ) from e

        return stored

    async def select(
        self,
        table: Table,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        """Select records by field equality, optionally ordered by a field."""
        await self.connect()
        table = Table(table)

        query = f"SELECT data FROM {table.value} WHERE 1=1"
        params: list[Any] = []

        for key, value in (filters or {}).items():
            query += f" AND json_extract(data, '$.{self._field(key)}') = ?"
            params.append(value)

        if order_by:
            direction = "DESC" if descending else "ASC"
            query += f" ORDER BY json_extract(data, '$.{self._field(order_by)}') {direction}"

        try:
            cursor = await self.connection.execute(query, params)
            rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            logger.error(f"Select from {table.value} failed: {e}")
            raise GatewayError(
                f"Select from {table.value} failed: {e}", {"table": table.value}
            ) from e

        return [json.loads(row[0]) for row in rows]

    async def update(
        self,
        table: Table,
        record_id: str,
        changes: dict[str, Any],
        expected: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Merge changes into an existing record.

        The ``expected`` guard is part of the UPDATE's WHERE clause, so a
        concurrent writer that got there first makes this write match no rows.
        """
        table = Table(table)
        current = await self._get(table, record_id)
        current.update(changes)
        current["id"] = record_id

        query = f"UPDATE {table.value} SET data = ?, project_id = ? WHERE id = ?"
        params: list[Any] = [json.dumps(current), current.get("project_id"), record_id]
        for key, value in (expected or {}).items():
            query += f" AND json_extract(data, '$.{self._field(key)}') IS ?"
            params.append(value)

        try:
            cursor = await self.connection.execute(query, params)
            await self.connection.commit()
        except aiosqlite.Error as e:
            logger.error(f"Update of {table.value}/{record_id} failed: {e}")
            raise GatewayError(f"Update failed: {e}", {"id": record_id}) from e

        if cursor.rowcount == 0:
            stored = await self._get(table, record_id)
            raise VersionConflictError(
                f"Record {table.value}/{record_id} changed since it was read",
                {
                    "table": table.value,
                    "id": record_id,
                    "expected": expected,
                    "current": {key: stored.get(key) for key in expected or {}},
                },
            )

        return current

    async def delete(self, table: Table, record_id: str) -> None:
        """Delete a record by ID."""
        await self._get(table, record_id)

        try:
            await self.connection.execute(
                f"DELETE FROM {Table(table).value} WHERE id = ?", (record_id,)
            )
            await self.connection.commit()
        except aiosqlite.Error as e:
            logger.error(f"Delete of {Table(table).value}/{record_id} failed: {e}")
            raise GatewayError(f"Delete failed: {e}", {"id": record_id}) from e

    async def close(self) -> None:
        """Close the connection."""
        if self.connection is not None:
            await self.connection.close()
            self.connection = None

    # ═══════════════════════════════════════════════════════════
    # HELPER METHODS
    # ═══════════════════════════════════════════════════════════

    async def _get(self, table: Table, record_id: str) -> dict[str, Any]:
        await self.connect()
        table = Table(table)

        try:
            cursor = await self.connection.execute(
                f"SELECT data FROM {table.value} WHERE id = ?", (record_id,)
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise GatewayError(f"Lookup failed: {e}", {"id": record_id}) from e

        if not row:
            raise NotFoundError(
                f"Record not found: {table.value}/{record_id}",
                {"table": table.value, "id": record_id},
            )
        return json.loads(row[0])

    @staticmethod
    def _field(name: str) -> str:
        """Guard field names interpolated into JSON paths."""
        if not _FIELD_NAME.match(name):
            raise ValidationError(f"Invalid field name: {name!r}")
        return name
