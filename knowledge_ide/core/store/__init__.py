"""
In-memory knowledge graph store for the active project.
"""

from knowledge_ide.core.store.graph_store import KnowledgeGraphStore

__all__ = ["KnowledgeGraphStore"]
