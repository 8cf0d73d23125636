"""
Knowledge Workspace - orchestrates one user's active project.

Brings together:
- Knowledge graph store (authoritative in-memory state)
- Persistence gateway (remote tables)
- Persona responder
- Insight analyzer and export renderer

Every mutation is staged on a copy of the store, mirrored to the gateway,
and committed locally only after the gateway call succeeds. A gateway
failure leaves local state exactly as it was. Mutations hold the workspace
lock from staging to commit, so overlapping calls run one after another.
"""

import asyncio
from collections.abc import Awaitable
from datetime import datetime
from typing import Any, TypeVar

from knowledge_ide.config import Config
from knowledge_ide.core.gateway.base import PersistenceGateway, Table
from knowledge_ide.core.persona.base import PersonaResponder
from knowledge_ide.core.store.graph_store import KnowledgeGraphStore
from knowledge_ide.models.block import (
    BlockMetadata,
    BlockType,
    BlockUpdate,
    BlockVersion,
    KnowledgeBlock,
    Position,
)
from knowledge_ide.models.insight import Insight
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
from knowledge_ide.services.canvas import CanvasIntent, CreateBlockIntent, CreateRelationshipIntent
from knowledge_ide.services.export_renderer import export_filename, parse_format, render_export
from knowledge_ide.services.insight_analyzer import analyze_blocks
from knowledge_ide.utils.exceptions import (
    GatewayError,
    KnowledgeIDEError,
    NotFoundError,
    ValidationError,
    VersionConflictError,
)
from knowledge_ide.utils.id_generator import generate_export_id, generate_interaction_id
from knowledge_ide.utils.logger import get_logger

T = TypeVar("T")

FALLBACK_RESPONSE = "Error: Could not get response"

MODE_PANELS: dict[WorkMode, list[str]] = {
    WorkMode.EXPLORATION: [],
    WorkMode.SYNTHESIS: ["insights"],
    WorkMode.COMPOSITION: ["export"],
}


class KnowledgeWorkspace:
    """
    Session-scoped workspace over a single active project.

    Features:
    - Project listing, creation and loading
    - Block and relationship CRUD mirrored to the gateway
    - Version history with restore
    - Insights, exports and persona interactions with their archives
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        responder: PersonaResponder,
        session: SessionContext,
        config: Config | None = None,
    ):
        """
        Initialize the workspace.

        Args:
            gateway: Persistence gateway for all records
            responder: Persona responder for AI interactions
            session: Identity of the user driving this workspace
            config: Configuration object
        """
        self.gateway = gateway
        self.responder = responder
        self.session = session
        self.config = config or Config()

        self.project: Project | None = None
        self.store: KnowledgeGraphStore | None = None

        self.logger = get_logger(__name__, user_id=session.user_id)
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Initialize the gateway."""
        await self.gateway.initialize()
        self.logger.info(f"Workspace ready for user {self.session.user_id}")

    async def close(self) -> None:
        """Release gateway and responder resources."""
        await self.gateway.close()
        await self.responder.close()

    # ═══════════════════════════════════════════════════════════
    # PROJECTS
    # ═══════════════════════════════════════════════════════════

    async def list_projects(self) -> list[Project]:
        """Projects owned by the session user, most recently updated first."""
        rows = await self._mirror(
            "list projects",
            self.gateway.select(
                Table.PROJECTS,
                filters={"owner_id": self.session.user_id},
                order_by="updated_at",
                descending=True,
            ),
        )
        return [Project.model_validate(row) for row in rows]

    async def create_project(
        self,
        title: str,
        description: str = "",
        metadata: ProjectMetadata | dict[str, Any] | None = None,
    ) -> Project:
        """
        Create a project and make it the active one.

        Raises:
            ValidationError: If the title is blank
            GatewayError: If the project cannot be stored
        """
        if not title or not title.strip():
            raise ValidationError("Project title cannot be empty")

        if not isinstance(metadata, ProjectMetadata):
            metadata = ProjectMetadata.model_validate(metadata or {})

        async with self._lock:
            row = await self._mirror(
                "create project",
                self.gateway.insert(
                    Table.PROJECTS,
                    {
                        "owner_id": self.session.user_id,
                        "title": title.strip(),
                        "description": description,
                        "metadata": metadata.model_dump(mode="json"),
                    },
                ),
            )
            project = Project.model_validate(row)
            self._activate(project, KnowledgeGraphStore(project.id))

        self.logger.info(f"Created project {project.id}: {project.title}")
        return project

    async def open_project(self, project_id: str) -> GraphSnapshot:
        """
        Load a project's blocks, relationships and history into a fresh store.

        Raises:
            NotFoundError: If the project doesn't exist for this user
            GatewayError: If loading fails
        """
        async with self._lock:
            rows = await self._mirror(
                "load project",
                self.gateway.select(
                    Table.PROJECTS, filters={"id": project_id, "owner_id": self.session.user_id}
                ),
            )
            if not rows:
                raise NotFoundError(f"Project not found: {project_id}", {"project_id": project_id})
            project = Project.model_validate(rows[0])

            block_rows = await self._mirror(
                "load blocks",
                self.gateway.select(
                    Table.KNOWLEDGE_BLOCKS, filters={"project_id": project_id}, order_by="created_at"
                ),
            )
            relationship_rows = await self._mirror(
                "load relationships",
                self.gateway.select(Table.BLOCK_RELATIONSHIPS, filters={"project_id": project_id}),
            )
            version_rows = await self._mirror(
                "load versions",
                self.gateway.select(
                    Table.BLOCK_VERSIONS, filters={"project_id": project_id}, order_by="created_at"
                ),
            )

            store = KnowledgeGraphStore(project_id)
            store.load(
                blocks=[KnowledgeBlock.model_validate(row) for row in block_rows],
                relationships=[BlockRelationship.model_validate(row) for row in relationship_rows],
                versions=[BlockVersion.model_validate(row) for row in version_rows],
            )
            self._activate(project, store)

        self.logger.info(
            f"Opened project: {store.count_blocks()} blocks, "
            f"{store.count_relationships()} relationships"
        )
        return store.snapshot()

    # ═══════════════════════════════════════════════════════════
    # BLOCKS
    # ═══════════════════════════════════════════════════════════

    async def create_block(
        self,
        block_type: BlockType | str,
        position: Position | dict[str, float],
        content: str | None = None,
        metadata: BlockMetadata | dict[str, Any] | None = None,
    ) -> KnowledgeBlock:
        """Create a block at a canvas position (placeholder content unless given)."""
        async with self._lock:
            staged = self._require_store().copy()
            block = staged.create_block(
                block_type,
                position,
                creator_id=self.session.user_id,
                content=content,
                metadata=metadata,
            )

            await self._mirror(
                "create block",
                self.gateway.insert(Table.KNOWLEDGE_BLOCKS, block.model_dump(mode="json")),
            )
            self.store = staged

        self.logger.info(f"Created block {block.id} ({block.block_type.value})")
        return block

    async def update_block(
        self,
        block_id: str,
        changes: BlockUpdate | dict[str, Any],
        expected_version: int | None = None,
        change_summary: str = "Updated content",
    ) -> KnowledgeBlock:
        """
        Update a block, recording the pre-update state in its history.

        The remote write only lands if the stored block is still at the
        version this workspace loaded; otherwise another writer got there
        first and the update is rejected.

        Raises:
            NotFoundError: If the block doesn't exist
            VersionConflictError: If expected_version is stale, or the stored
                block moved on since the project was opened
            ValidationError: If the new content is blank
            GatewayError: If mirroring fails (local state unchanged)
        """
        if not isinstance(changes, BlockUpdate):
            changes = BlockUpdate.model_validate(changes)

        async with self._lock:
            staged = self._require_store().copy()
            updated = staged.update_block(
                block_id,
                changes,
                changed_by=self.session.user_id,
                change_summary=change_summary,
                expected_version=expected_version,
            )
            history_entry = staged.versions(block_id)[-1]

            changed_fields = set(changes.changes()) | {"version", "updated_at"}
            await self._mirror(
                "update block",
                self.gateway.update(
                    Table.KNOWLEDGE_BLOCKS,
                    block_id,
                    updated.model_dump(mode="json", include=changed_fields),
                    expected={"version": history_entry.version},
                ),
            )
            await self._mirror(
                "record block version",
                self.gateway.insert(
                    Table.BLOCK_VERSIONS,
                    {**history_entry.model_dump(mode="json"), "project_id": staged.project_id},
                ),
            )
            self.store = staged

        self.logger.info(f"Updated block {block_id} to version {updated.version}")
        return updated

    async def delete_block(self, block_id: str) -> None:
        """
        Delete a block together with every relationship that references it.

        Raises:
            NotFoundError: If the block doesn't exist
            GatewayError: If mirroring fails (local state unchanged)
        """
        async with self._lock:
            staged = self._require_store().copy()
            cascaded = staged.relationships_of(block_id)
            staged.delete_block(block_id)

            # Relationships go first so an interrupted cascade never leaves dangling edges
            for relationship in cascaded:
                await self._mirror(
                    "delete relationship",
                    self.gateway.delete(Table.BLOCK_RELATIONSHIPS, relationship.id),
                )
            await self._mirror(
                "delete block", self.gateway.delete(Table.KNOWLEDGE_BLOCKS, block_id)
            )
            self.store = staged

        self.logger.info(f"Deleted block {block_id} and {len(cascaded)} relationships")

    async def restore_version(self, version_id: str) -> KnowledgeBlock:
        """
        Restore a block's content from a history entry.

        The restore is itself an update, so it bumps the version and is
        recorded in history.
        """
        entry = self._require_store().find_version(version_id)
        return await self.update_block(
            entry.block_id,
            BlockUpdate(content=entry.content),
            change_summary=f"Restored version {entry.version}",
        )

    def block_history(self, block_id: str) -> list[BlockVersion]:
        """History entries of a block, oldest first."""
        store = self._require_store()
        if not store.has_block(block_id) and not store.versions(block_id):
            raise NotFoundError(f"Block not found: {block_id}", {"block_id": block_id})
        return store.versions(block_id)

    # ═══════════════════════════════════════════════════════════
    # RELATIONSHIPS
    # ═══════════════════════════════════════════════════════════

    async def create_relationship(
        self,
        source_id: str,
        target_id: str,
        relationship_type: RelationshipType | str = RelationshipType.SUPPORTS,
        strength: float = 1.0,
        notes: str = "",
    ) -> BlockRelationship:
        """
        Link two blocks.

        Raises:
            NotFoundError: If either block doesn't exist
            ValidationError: For self-loops
            GatewayError: If mirroring fails (local state unchanged)
        """
        async with self._lock:
            staged = self._require_store().copy()
            relationship = staged.create_relationship(
                source_id, target_id, relationship_type, strength=strength, notes=notes
            )

            await self._mirror(
                "create relationship",
                self.gateway.insert(Table.BLOCK_RELATIONSHIPS, relationship.model_dump(mode="json")),
            )
            self.store = staged

        self.logger.info(
            f"Linked {source_id} -[{relationship.relationship_type.value}]-> {target_id}"
        )
        return relationship

    async def delete_relationship(self, relationship_id: str) -> None:
        """
        Remove a single relationship.

        Raises:
            NotFoundError: If the relationship doesn't exist
        """
        async with self._lock:
            staged = self._require_store().copy()
            staged.delete_relationship(relationship_id)

            await self._mirror(
                "delete relationship",
                self.gateway.delete(Table.BLOCK_RELATIONSHIPS, relationship_id),
            )
            self.store = staged

        self.logger.info(f"Deleted relationship {relationship_id}")

    async def apply_intent(self, intent: CanvasIntent) -> KnowledgeBlock | BlockRelationship:
        """Apply an intent emitted by the canvas controller."""
        if isinstance(intent, CreateBlockIntent):
            return await self.create_block(intent.block_type, intent.position)
        elif isinstance(intent, CreateRelationshipIntent):
            return await self.create_relationship(
                intent.source_block_id, intent.target_block_id, intent.relationship_type
            )
        raise ValidationError(f"Unknown canvas intent: {type(intent).__name__}")

    # ═══════════════════════════════════════════════════════════
    # DERIVED VIEWS
    # ═══════════════════════════════════════════════════════════

    def snapshot(self) -> GraphSnapshot:
        return self._require_store().snapshot()

    def insights(self) -> list[Insight]:
        """Heuristic insights over the current blocks."""
        return analyze_blocks(self._require_store().blocks())

    def render_export(self, export_format: ExportFormat | str) -> str:
        snapshot = self.snapshot()
        return render_export(
            self._require_project().title,
            snapshot.blocks,
            snapshot.relationships,
            export_format,
        )

    async def export(self, export_format: ExportFormat | str, audience: str = "") -> ExportResult:
        """
        Render an export and archive it before handing it out for download.

        Raises:
            UnsupportedFormatError: If the format tag is unknown
            GatewayError: If archiving fails
        """
        export_format = parse_format(export_format)
        project = self._require_project()
        content = self.render_export(export_format)

        record = ExportRecord(
            id=generate_export_id(),
            project_id=project.id,
            creator_id=self.session.user_id,
            format=export_format,
            audience=audience,
            content=content,
        )
        row = await self._mirror(
            "archive export",
            self.gateway.insert(Table.EXPORTS, record.model_dump(mode="json")),
        )
        record = ExportRecord.model_validate(row)

        self.logger.info(f"Exported project as {export_format.value}")
        return ExportResult(
            filename=export_filename(project.title, export_format),
            content=content,
            format=export_format,
            record_id=record.id,
        )

    async def exports(self) -> list[ExportRecord]:
        """Archived exports of the open project, newest first."""
        project = self._require_project()
        rows = await self._mirror(
            "list exports",
            self.gateway.select(
                Table.EXPORTS,
                filters={"project_id": project.id},
                order_by="created_at",
                descending=True,
            ),
        )
        return [ExportRecord.model_validate(row) for row in rows]

    @staticmethod
    def panels_for(mode: WorkMode | str) -> list[str]:
        """
        Derived panels shown in a work mode.

        Raises:
            ValidationError: If the mode is unknown
        """
        try:
            mode = WorkMode(mode)
        except ValueError as e:
            raise ValidationError(f"Unknown work mode: {mode}", {"mode": mode}) from e
        return list(MODE_PANELS[mode])

    # ═══════════════════════════════════════════════════════════
    # PERSONAS
    # ═══════════════════════════════════════════════════════════

    async def ask_persona(self, persona: AIPersona | str, prompt: str) -> str:
        """
        Ask a persona for feedback and archive the exchange.

        A failing responder yields a fixed fallback message instead of an error.

        Raises:
            ValidationError: If the persona is unknown or the prompt is blank
        """
        project = self._require_project()
        persona = self._parse_persona(persona)
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt cannot be empty")

        try:
            response = await self.responder.respond(persona, prompt)
        except Exception as e:
            self.logger.warning(f"Persona {persona.value} failed: {e}")
            return FALLBACK_RESPONSE

        interaction = AIInteraction(
            id=generate_interaction_id(),
            project_id=project.id,
            user_id=self.session.user_id,
            persona=persona,
            prompt=prompt,
            response=response,
        )
        try:
            await self.gateway.insert(Table.AI_INTERACTIONS, interaction.model_dump(mode="json"))
        except Exception as e:
            # The answer is still useful without its archive entry
            self.logger.error(f"Failed to archive {persona.value} interaction: {e}")

        return response

    async def interactions(self, persona: AIPersona | str | None = None) -> list[AIInteraction]:
        """
        Archived persona exchanges of the open project, newest first.

        Args:
            persona: Only return exchanges with this persona
        """
        project = self._require_project()
        filters: dict[str, Any] = {"project_id": project.id}
        if persona is not None:
            filters["persona"] = self._parse_persona(persona).value

        rows = await self._mirror(
            "list interactions",
            self.gateway.select(
                Table.AI_INTERACTIONS, filters=filters, order_by="created_at", descending=True
            ),
        )
        return [AIInteraction.model_validate(row) for row in rows]

    # ═══════════════════════════════════════════════════════════
    # HELPER METHODS
    # ═══════════════════════════════════════════════════════════

    def _activate(self, project: Project, store: KnowledgeGraphStore) -> None:
        self.project = project
        self.store = store
        self.logger = get_logger(__name__, user_id=self.session.user_id, project_id=project.id)

    def _require_project(self) -> Project:
        if self.project is None:
            raise NotFoundError("No project is open")
        return self.project

    def _require_store(self) -> KnowledgeGraphStore:
        self._require_project()
        return self.store

    @staticmethod
    def _parse_persona(persona: AIPersona | str) -> AIPersona:
        try:
            return AIPersona(persona)
        except ValueError as e:
            raise ValidationError(f"Unknown persona: {persona}", {"persona": persona}) from e

    async def _mirror(self, operation: str, call: Awaitable[T]) -> T:
        """Await a gateway call, normalising backend failures to GatewayError."""
        started = datetime.now()
        try:
            result = await call
        except VersionConflictError as e:
            self.logger.warning(f"Rejected {operation}: {e.message}")
            raise
        except KnowledgeIDEError as e:
            self.logger.error(f"Gateway failure during {operation}: {e.message}")
            if isinstance(e, GatewayError):
                raise
            raise GatewayError(f"Failed to {operation}: {e.message}", e.context) from e
        except Exception as e:
            self.logger.bind(operation=operation, error_type=type(e).__name__).error(
                f"Gateway failure during {operation}: {e}"
            )
            raise GatewayError(f"Failed to {operation}: {e}", {"operation": operation}) from e

        elapsed_ms = (datetime.now() - started).total_seconds() * 1000
        self.logger.debug(f"Gateway {operation} took {elapsed_ms:.1f}ms")
        return result
