"""
Persistence gateway implementations.

Available backends:
- SQLiteGateway: Local file-backed storage (aiosqlite)
- InMemoryGateway: Process-local storage for development and tests
"""

from knowledge_ide.core.gateway.base import PersistenceGateway, Table
from knowledge_ide.core.gateway.memory_gateway import InMemoryGateway
from knowledge_ide.core.gateway.sqlite_gateway import SQLiteGateway

__all__ = [
    "PersistenceGateway",
    "Table",
    "InMemoryGateway",
    "SQLiteGateway",
]
