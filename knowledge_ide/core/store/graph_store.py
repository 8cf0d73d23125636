"""
In-memory knowledge graph for one active project.

Authoritative set of blocks, relationships and block history. All reads
copy out so callers never observe later structural changes.
"""

from datetime import datetime
from typing import Any, Iterable

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
from knowledge_ide.models.relationship import BlockRelationship, RelationshipType
from knowledge_ide.models.snapshot import GraphSnapshot
from knowledge_ide.utils.exceptions import NotFoundError, ValidationError, VersionConflictError
from knowledge_ide.utils.id_generator import (
    generate_block_id,
    generate_relationship_id,
    generate_version_id,
)
from knowledge_ide.utils.logger import get_logger

logger = get_logger(__name__)


class KnowledgeGraphStore:
    """
    Blocks and relationships of a single project.

    Invariants:
    - every relationship endpoint references a block in the store
    - a block's version grows by exactly one per update
    - history entries are append-only and record the pre-update state
    """

    def __init__(self, project_id: str):
        """
        Initialize an empty store.

        Args:
            project_id: Project whose graph this store holds
        """
        self.project_id = project_id
        self._blocks: dict[str, KnowledgeBlock] = {}
        self._relationships: dict[str, BlockRelationship] = {}
        self._versions: dict[str, list[BlockVersion]] = {}

    # ═══════════════════════════════════════════════════════════
    # LOADING
    # ═══════════════════════════════════════════════════════════

    def load(
        self,
        blocks: Iterable[KnowledgeBlock],
        relationships: Iterable[BlockRelationship] = (),
        versions: Iterable[BlockVersion] = (),
    ) -> None:
        """
        Replace the store contents with persisted records.

        Relationships whose endpoints are missing are dropped so the
        endpoint invariant holds after loading.
        """
        self._blocks = {block.id: block.model_copy(deep=True) for block in blocks}
        self._relationships = {}
        dropped = 0
        for relationship in relationships:
            if (
                relationship.source_block_id in self._blocks
                and relationship.target_block_id in self._blocks
            ):
                self._relationships[relationship.id] = relationship.model_copy(deep=True)
            else:
                dropped += 1

        self._versions = {}
        for version in sorted(versions, key=lambda v: (v.version, v.created_at)):
            self._versions.setdefault(version.block_id, []).append(version)

        if dropped:
            logger.warning(
                f"Dropped {dropped} dangling relationships while loading project {self.project_id}"
            )
        logger.debug(
            f"Loaded project {self.project_id}: "
            f"{len(self._blocks)} blocks, {len(self._relationships)} relationships"
        )

    def copy(self) -> "KnowledgeGraphStore":
        """Independent copy used to stage mutations before they are committed."""
        clone = KnowledgeGraphStore(self.project_id)
        clone._blocks = {bid: block.model_copy(deep=True) for bid, block in self._blocks.items()}
        clone._relationships = {
            rid: rel.model_copy(deep=True) for rid, rel in self._relationships.items()
        }
        clone._versions = {bid: list(history) for bid, history in self._versions.items()}
        return clone

    # ═══════════════════════════════════════════════════════════
    # BLOCK OPERATIONS
    # ═══════════════════════════════════════════════════════════

    def create_block(
        self,
        block_type: BlockType | str,
        position: Position | dict[str, float],
        *,
        creator_id: str,
        content: str | None = None,
        metadata: BlockMetadata | dict[str, Any] | None = None,
    ) -> KnowledgeBlock:
        """
        Create a block with a fresh ID at the given canvas position.

        Args:
            block_type: Kind of block
            position: Canvas coordinate
            creator_id: User creating the block
            content: Initial content (placeholder text when omitted)
            metadata: Optional tags/sources/confidence

        Returns:
            Copy of the created block

        Raises:
            ValidationError: If explicit content is blank
        """
        if content is not None and not content.strip():
            raise ValidationError("Block content cannot be empty")

        if not isinstance(metadata, BlockMetadata):
            metadata = BlockMetadata.model_validate(metadata or {})
        if not isinstance(position, Position):
            position = Position.model_validate(position)

        now = datetime.now()
        block = KnowledgeBlock(
            id=self._unused_id(generate_block_id, self._blocks),
            project_id=self.project_id,
            creator_id=creator_id,
            block_type=BlockType(block_type),
            content=content if content is not None else PLACEHOLDER_CONTENT,
            metadata=metadata.model_copy(deep=True),
            position=position.model_copy(),
            version=INITIAL_VERSION,
            created_at=now,
            updated_at=now,
        )
        self._blocks[block.id] = block

        logger.debug(f"Created block {block.id} ({block.block_type.value})")
        return block.model_copy(deep=True)

    def get_block(self, block_id: str) -> KnowledgeBlock:
        """
        Get a copy of a block.

        Raises:
            NotFoundError: If the block doesn't exist
        """
        return self._require_block(block_id).model_copy(deep=True)

    def has_block(self, block_id: str) -> bool:
        return block_id in self._blocks

    def update_block(
        self,
        block_id: str,
        changes: BlockUpdate | dict[str, Any],
        *,
        changed_by: str,
        change_summary: str = "Updated content",
        expected_version: int | None = None,
    ) -> KnowledgeBlock:
        """
        Apply a partial update and bump the version.

        A history entry with the pre-update version and content is appended
        before the change is applied. Omitted fields keep their value.

        Args:
            block_id: Block to update
            changes: Fields to change
            changed_by: User making the change
            change_summary: Human-readable summary stored in history
            expected_version: If given, the update only applies when the
                block is still at this version

        Returns:
            Copy of the updated block

        Raises:
            NotFoundError: If the block doesn't exist
            VersionConflictError: If expected_version is stale
            ValidationError: If the new content is blank
        """
        block = self._require_block(block_id)

        if not isinstance(changes, BlockUpdate):
            changes = BlockUpdate.model_validate(changes)
        updates = changes.changes()

        if "content" in updates and not updates["content"].strip():
            raise ValidationError("Block content cannot be empty", {"block_id": block_id})

        if expected_version is not None and expected_version != block.version:
            raise VersionConflictError(
                f"Block {block_id} is at version {block.version}, expected {expected_version}",
                {"block_id": block_id, "current": block.version, "expected": expected_version},
            )

        history_entry = BlockVersion(
            id=generate_version_id(),
            block_id=block.id,
            version=block.version,
            content=block.content,
            change_summary=change_summary,
            changed_by=changed_by,
        )

        for name, value in updates.items():
            if isinstance(value, (BlockMetadata, Position)):
                updates[name] = value.model_copy(deep=True)

        updated = block.model_copy(
            update={
                **updates,
                "version": block.version + 1,
                "updated_at": datetime.now(),
            }
        )

        self._versions.setdefault(block_id, []).append(history_entry)
        self._blocks[block_id] = updated

        logger.debug(f"Updated block {block_id} to version {updated.version}")
        return updated.model_copy(deep=True)

    def delete_block(self, block_id: str) -> None:
        """
        Delete a block and every relationship that references it.

        Raises:
            NotFoundError: If the block doesn't exist
        """
        self._require_block(block_id)

        cascaded = [rid for rid, rel in self._relationships.items() if rel.touches(block_id)]
        for rid in cascaded:
            del self._relationships[rid]
        del self._blocks[block_id]

        logger.debug(f"Deleted block {block_id} and {len(cascaded)} relationships")

    def versions(self, block_id: str) -> list[BlockVersion]:
        """History of a block, oldest first. Kept after the block is deleted."""
        return list(self._versions.get(block_id, []))

    def find_version(self, version_id: str) -> BlockVersion:
        """
        Look up a history entry by its ID.

        Raises:
            NotFoundError: If no entry has this ID
        """
        for history in self._versions.values():
            for entry in history:
                if entry.id == version_id:
                    return entry
        raise NotFoundError(f"Version not found: {version_id}", {"version_id": version_id})

    # ═══════════════════════════════════════════════════════════
    # RELATIONSHIP OPERATIONS
    # ═══════════════════════════════════════════════════════════

    def create_relationship(
        self,
        source_id: str,
        target_id: str,
        relationship_type: RelationshipType | str,
        *,
        strength: float = 1.0,
        notes: str = "",
    ) -> BlockRelationship:
        """
        Create a directed relationship between two existing blocks.

        Duplicates are allowed; creating the same link twice yields two
        distinct relationships.

        Raises:
            NotFoundError: If either endpoint doesn't exist
            ValidationError: If source and target are the same block
        """
        self._require_block(source_id)
        self._require_block(target_id)
        if source_id == target_id:
            raise ValidationError(
                "A block cannot be related to itself", {"block_id": source_id}
            )

        relationship = BlockRelationship(
            id=self._unused_id(generate_relationship_id, self._relationships),
            project_id=self.project_id,
            source_block_id=source_id,
            target_block_id=target_id,
            relationship_type=RelationshipType(relationship_type),
            strength=strength,
            notes=notes,
        )
        self._relationships[relationship.id] = relationship

        logger.debug(
            f"Created relationship {relationship.id}: "
            f"{source_id} -[{relationship.relationship_type.value}]-> {target_id}"
        )
        return relationship.model_copy(deep=True)

    def get_relationship(self, relationship_id: str) -> BlockRelationship:
        """
        Get a copy of a relationship.

        Raises:
            NotFoundError: If the relationship doesn't exist
        """
        return self._require_relationship(relationship_id).model_copy(deep=True)

    def delete_relationship(self, relationship_id: str) -> None:
        """
        Delete a single relationship.

        Raises:
            NotFoundError: If the relationship doesn't exist
        """
        self._require_relationship(relationship_id)
        del self._relationships[relationship_id]
        logger.debug(f"Deleted relationship {relationship_id}")

    def relationships_of(self, block_id: str) -> list[BlockRelationship]:
        """Relationships with the block as source or target."""
        return [
            rel.model_copy(deep=True)
            for rel in self._relationships.values()
            if rel.touches(block_id)
        ]

    # ═══════════════════════════════════════════════════════════
    # SNAPSHOTS
    # ═══════════════════════════════════════════════════════════

    def blocks(self) -> list[KnowledgeBlock]:
        """Copies of all blocks in insertion order."""
        return [block.model_copy(deep=True) for block in self._blocks.values()]

    def relationships(self) -> list[BlockRelationship]:
        """Copies of all relationships."""
        return [rel.model_copy(deep=True) for rel in self._relationships.values()]

    def snapshot(self) -> GraphSnapshot:
        """Frozen copy of the whole graph."""
        return GraphSnapshot(
            project_id=self.project_id,
            blocks=tuple(self.blocks()),
            relationships=tuple(self.relationships()),
        )

    def count_blocks(self) -> int:
        return len(self._blocks)

    def count_relationships(self) -> int:
        return len(self._relationships)

    # ═══════════════════════════════════════════════════════════
    # HELPER METHODS
    # ═══════════════════════════════════════════════════════════

    def _require_block(self, block_id: str) -> KnowledgeBlock:
        block = self._blocks.get(block_id)
        if block is None:
            raise NotFoundError(f"Block not found: {block_id}", {"block_id": block_id})
        return block

    def _require_relationship(self, relationship_id: str) -> BlockRelationship:
        relationship = self._relationships.get(relationship_id)
        if relationship is None:
            raise NotFoundError(
                f"Relationship not found: {relationship_id}",
                {"relationship_id": relationship_id},
            )
        return relationship

    @staticmethod
    def _unused_id(generator, existing: dict[str, Any]) -> str:
        new_id = generator()
        while new_id in existing:
            new_id = generator()
        return new_id
