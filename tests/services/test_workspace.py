"""
Tests for the knowledge workspace.

Tests cover:
1. Project listing, creation and loading
2. Block and relationship mutations mirrored to the gateway
3. Version history and restore
4. Gateway failures leaving local state unchanged
5. Insights, exports and persona interactions with their archives
6. Overlapping and cross-workspace mutations
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from loguru import logger

from knowledge_ide.core.gateway import SQLiteGateway, Table
from knowledge_ide.core.persona import CANNED_RESPONSES, StaticPersonaResponder
from knowledge_ide.models import (
    PLACEHOLDER_CONTENT,
    AIInteraction,
    AIPersona,
    BlockType,
    ExportFormat,
    ExportRecord,
    Position,
    RelationshipType,
    SessionContext,
    WorkMode,
)
from knowledge_ide.services.canvas import CreateBlockIntent, CreateRelationshipIntent
from knowledge_ide.services.workspace import FALLBACK_RESPONSE, KnowledgeWorkspace
from knowledge_ide.utils.exceptions import (
    GatewayError,
    NotFoundError,
    UnsupportedFormatError,
    ValidationError,
    VersionConflictError,
)


async def add_block(workspace, content=None, block_type=BlockType.ARGUMENT, **kwargs):
    return await workspace.create_block(
        block_type, kwargs.pop("position", Position(x=10, y=20)), content=content, **kwargs
    )


@pytest.mark.unit
@pytest.mark.asyncio
class TestProjects:
    """Test project operations."""

    async def test_create_project_opens_it(self, workspace, memory_gateway):
        project = await workspace.create_project("  Climate  ", description="d")

        assert project.id.startswith("proj_")
        assert project.title == "Climate"
        assert project.owner_id == "user_alice"
        assert workspace.project == project
        assert workspace.snapshot().blocks == ()
        assert len(memory_gateway.tables[Table.PROJECTS]) == 1

    async def test_blank_title_rejected(self, workspace):
        with pytest.raises(ValidationError):
            await workspace.create_project("   ")

    async def test_list_projects_only_own(self, workspace, memory_gateway):
        await workspace.create_project("Mine")
        await memory_gateway.insert(Table.PROJECTS, {"owner_id": "user_bob", "title": "Bob's"})

        projects = await workspace.list_projects()

        assert [p.title for p in projects] == ["Mine"]

    async def test_list_projects_newest_first(self, workspace, memory_gateway):
        await memory_gateway.insert(
            Table.PROJECTS,
            {"owner_id": "user_alice", "title": "Old", "updated_at": "2024-01-01T00:00:00"},
        )
        await memory_gateway.insert(
            Table.PROJECTS,
            {"owner_id": "user_alice", "title": "New", "updated_at": "2024-06-01T00:00:00"},
        )

        projects = await workspace.list_projects()

        assert [p.title for p in projects] == ["New", "Old"]

    async def test_open_missing_project(self, workspace):
        with pytest.raises(NotFoundError):
            await workspace.open_project("proj_missing")

    async def test_open_other_users_project(self, workspace, memory_gateway):
        row = await memory_gateway.insert(
            Table.PROJECTS, {"owner_id": "user_bob", "title": "Private"}
        )
        with pytest.raises(NotFoundError):
            await workspace.open_project(row["id"])

    async def test_operations_need_open_project(self, workspace):
        with pytest.raises(NotFoundError):
            await add_block(workspace)
        with pytest.raises(NotFoundError):
            workspace.insights()

    async def test_reopen_restores_graph_and_history(self, project_workspace, memory_gateway):
        first = await add_block(project_workspace, "First")
        second = await add_block(project_workspace, "Second", block_type=BlockType.EVIDENCE)
        await project_workspace.create_relationship(second.id, first.id, RelationshipType.SUPPORTS)
        await project_workspace.update_block(first.id, {"content": "First, revised"})

        reopened = KnowledgeWorkspace(
            memory_gateway, StaticPersonaResponder(), SessionContext(user_id="user_alice")
        )
        snapshot = await reopened.open_project(project_workspace.project.id)

        assert [b.id for b in snapshot.blocks] == [first.id, second.id]
        assert snapshot.blocks[0].content == "First, revised"
        assert snapshot.blocks[0].version == 2
        assert len(snapshot.relationships) == 1
        assert [v.content for v in reopened.block_history(first.id)] == ["First"]
        assert snapshot == project_workspace.snapshot()


@pytest.mark.unit
@pytest.mark.asyncio
class TestBlockMutations:
    """Test block CRUD through the workspace."""

    async def test_create_block_is_persisted(self, project_workspace, memory_gateway):
        block = await add_block(project_workspace)

        assert block.content == PLACEHOLDER_CONTENT
        assert block.version == 1
        assert block.creator_id == "user_alice"
        stored = memory_gateway.tables[Table.KNOWLEDGE_BLOCKS][block.id]
        assert stored["block_type"] == "argument"
        assert stored["position"] == {"x": 10.0, "y": 20.0}

    async def test_update_block_records_version(self, project_workspace, memory_gateway):
        block = await add_block(project_workspace, "Draft")

        updated = await project_workspace.update_block(block.id, {"content": "Final"})

        assert updated.version == 2
        stored = memory_gateway.tables[Table.KNOWLEDGE_BLOCKS][block.id]
        assert stored["content"] == "Final"
        assert stored["version"] == 2
        versions = list(memory_gateway.tables[Table.BLOCK_VERSIONS].values())
        assert len(versions) == 1
        assert versions[0]["content"] == "Draft"
        assert versions[0]["version"] == 1
        assert versions[0]["change_summary"] == "Updated content"
        assert versions[0]["project_id"] == project_workspace.project.id

    async def test_update_version_conflict(self, project_workspace, memory_gateway):
        block = await add_block(project_workspace, "v1")
        await project_workspace.update_block(block.id, {"content": "v2"}, expected_version=1)

        with pytest.raises(VersionConflictError):
            await project_workspace.update_block(block.id, {"content": "v3"}, expected_version=1)

        assert len(memory_gateway.tables[Table.BLOCK_VERSIONS]) == 1

    async def test_delete_block_cascades_remotely(self, project_workspace, memory_gateway):
        a = await add_block(project_workspace, "A")
        b = await add_block(project_workspace, "B")
        c = await add_block(project_workspace, "C")
        await project_workspace.create_relationship(a.id, b.id)
        await project_workspace.create_relationship(c.id, a.id, RelationshipType.CONTRADICTS)
        kept = await project_workspace.create_relationship(b.id, c.id, RelationshipType.CAUSES)

        await project_workspace.delete_block(a.id)

        assert a.id not in memory_gateway.tables[Table.KNOWLEDGE_BLOCKS]
        assert list(memory_gateway.tables[Table.BLOCK_RELATIONSHIPS]) == [kept.id]
        assert [r.id for r in project_workspace.snapshot().relationships] == [kept.id]

    async def test_restore_version(self, project_workspace):
        block = await add_block(project_workspace, "Original")
        await project_workspace.update_block(block.id, {"content": "Rewritten"})
        original = project_workspace.block_history(block.id)[0]

        restored = await project_workspace.restore_version(original.id)

        assert restored.content == "Original"
        assert restored.version == 3
        history = project_workspace.block_history(block.id)
        assert history[-1].change_summary == "Restored version 1"
        assert history[-1].content == "Rewritten"

    async def test_block_history_missing(self, project_workspace):
        with pytest.raises(NotFoundError):
            project_workspace.block_history("blk_missing")


@pytest.mark.unit
@pytest.mark.asyncio
class TestRelationships:
    """Test relationship mutations."""

    async def test_create_and_delete(self, project_workspace, memory_gateway):
        a = await add_block(project_workspace)
        b = await add_block(project_workspace)

        rel = await project_workspace.create_relationship(
            a.id, b.id, "elaborates", strength=0.5, notes="see p.4"
        )
        assert memory_gateway.tables[Table.BLOCK_RELATIONSHIPS][rel.id]["notes"] == "see p.4"

        await project_workspace.delete_relationship(rel.id)
        assert memory_gateway.tables[Table.BLOCK_RELATIONSHIPS] == {}

    async def test_missing_endpoint_writes_nothing(self, project_workspace, memory_gateway):
        a = await add_block(project_workspace)

        with pytest.raises(NotFoundError):
            await project_workspace.create_relationship(a.id, "blk_missing")

        assert memory_gateway.tables[Table.BLOCK_RELATIONSHIPS] == {}

    async def test_apply_intents(self, project_workspace):
        block = await project_workspace.apply_intent(
            CreateBlockIntent(block_type=BlockType.QUESTION, position=Position(x=1, y=2))
        )
        other = await add_block(project_workspace)

        rel = await project_workspace.apply_intent(
            CreateRelationshipIntent(source_block_id=block.id, target_block_id=other.id)
        )

        assert block.block_type == BlockType.QUESTION
        assert rel.relationship_type == RelationshipType.SUPPORTS


@pytest.mark.unit
@pytest.mark.asyncio
class TestGatewayFailures:
    """Local state must not change when the gateway fails."""

    async def test_create_block_failure(self, project_workspace, memory_gateway):
        before = project_workspace.snapshot()

        with patch.object(memory_gateway, "insert", new_callable=AsyncMock) as mock_insert:
            mock_insert.side_effect = RuntimeError("connection reset")

            with pytest.raises(GatewayError):
                await add_block(project_workspace, "Lost")

        assert project_workspace.snapshot() == before

    async def test_update_failure_writes_no_history(self, project_workspace, memory_gateway):
        block = await add_block(project_workspace, "Stable")

        with patch.object(memory_gateway, "update", new_callable=AsyncMock) as mock_update:
            mock_update.side_effect = GatewayError("update rejected")

            with pytest.raises(GatewayError):
                await project_workspace.update_block(block.id, {"content": "Changed"})

        current = project_workspace.snapshot().blocks[0]
        assert current.content == "Stable"
        assert current.version == 1
        assert project_workspace.block_history(block.id) == []
        assert memory_gateway.tables[Table.BLOCK_VERSIONS] == {}

    async def test_history_insert_failure_keeps_local_state(
        self, project_workspace, memory_gateway
    ):
        block = await add_block(project_workspace, "Stable")

        with patch.object(memory_gateway, "insert", new_callable=AsyncMock) as mock_insert:
            mock_insert.side_effect = RuntimeError("disk full")

            with pytest.raises(GatewayError):
                await project_workspace.update_block(block.id, {"content": "Changed"})

        assert project_workspace.snapshot().blocks[0].version == 1
        assert project_workspace.block_history(block.id) == []

    async def test_delete_failure(self, project_workspace, memory_gateway):
        a = await add_block(project_workspace)
        b = await add_block(project_workspace)
        await project_workspace.create_relationship(a.id, b.id)
        before = project_workspace.snapshot()

        with patch.object(memory_gateway, "delete", new_callable=AsyncMock) as mock_delete:
            mock_delete.side_effect = RuntimeError("timeout")

            with pytest.raises(GatewayError):
                await project_workspace.delete_block(a.id)

        assert project_workspace.snapshot() == before

    async def test_export_archive_failure(self, project_workspace, memory_gateway):
        with patch.object(memory_gateway, "insert", new_callable=AsyncMock) as mock_insert:
            mock_insert.side_effect = RuntimeError("disk full")

            with pytest.raises(GatewayError):
                await project_workspace.export("markdown")


@pytest.mark.unit
@pytest.mark.asyncio
class TestDerivedViews:
    """Test insights, exports and panels."""

    async def test_insights(self, project_workspace):
        for _ in range(4):
            await add_block(project_workspace, "Why?", block_type=BlockType.QUESTION)

        titles = [i.title for i in project_workspace.insights()]

        assert titles == ["Research Opportunities"]

    async def test_export_archives_content(self, project_workspace, memory_gateway):
        await add_block(project_workspace, "Trees cool streets", block_type=BlockType.EVIDENCE)

        result = await project_workspace.export("markdown", audience="council")

        assert result.filename == "Climate Research.md"
        assert result.format == ExportFormat.MARKDOWN
        assert result.content.startswith("# Climate Research\n\n## Evidences")
        archived = memory_gateway.tables[Table.EXPORTS][result.record_id]
        assert archived["content"] == result.content
        assert archived["audience"] == "council"
        assert archived["creator_id"] == "user_alice"

    async def test_export_unsupported_format(self, project_workspace, memory_gateway):
        with pytest.raises(UnsupportedFormatError):
            await project_workspace.export("pdf")
        assert memory_gateway.tables[Table.EXPORTS] == {}

    async def test_panels(self):
        assert KnowledgeWorkspace.panels_for(WorkMode.EXPLORATION) == []
        assert KnowledgeWorkspace.panels_for("synthesis") == ["insights"]
        assert KnowledgeWorkspace.panels_for(WorkMode.COMPOSITION) == ["export"]

    async def test_unknown_mode(self):
        with pytest.raises(ValidationError):
            KnowledgeWorkspace.panels_for("drafting")

    async def test_export_archive_listing(self, project_workspace, memory_gateway):
        await add_block(project_workspace, "Shade lowers peaks", block_type=BlockType.EVIDENCE)
        first = await project_workspace.export("markdown")
        memory_gateway.tables[Table.EXPORTS][first.record_id]["created_at"] = "2024-01-01T00:00:00"
        second = await project_workspace.export(ExportFormat.ARTICLE, audience="press")

        records = await project_workspace.exports()

        assert [r.id for r in records] == [second.record_id, first.record_id]
        assert isinstance(records[0], ExportRecord)
        assert records[0].format == ExportFormat.ARTICLE
        assert records[0].audience == "press"
        assert records[1].content == first.content


@pytest.mark.unit
@pytest.mark.asyncio
class TestPersonas:
    """Test persona interactions."""

    async def test_ask_persona_records_interaction(self, project_workspace, memory_gateway):
        response = await project_workspace.ask_persona(AIPersona.CRITIC, "Is this sound?")

        assert response == CANNED_RESPONSES[AIPersona.CRITIC]
        interactions = list(memory_gateway.tables[Table.AI_INTERACTIONS].values())
        assert len(interactions) == 1
        assert interactions[0]["persona"] == "critic"
        assert interactions[0]["prompt"] == "Is this sound?"
        assert interactions[0]["user_id"] == "user_alice"

    async def test_failing_responder_returns_fallback(self, project_workspace, memory_gateway):
        with patch.object(
            project_workspace.responder, "respond", new_callable=AsyncMock
        ) as mock_respond:
            mock_respond.side_effect = RuntimeError("model offline")

            response = await project_workspace.ask_persona("editor", "Tighten this")

        assert response == FALLBACK_RESPONSE
        assert memory_gateway.tables[Table.AI_INTERACTIONS] == {}

    async def test_blank_prompt(self, project_workspace):
        with pytest.raises(ValidationError):
            await project_workspace.ask_persona(AIPersona.EDITOR, " ")

    async def test_unknown_persona(self, project_workspace, memory_gateway):
        with pytest.raises(ValidationError):
            await project_workspace.ask_persona("poet", "Write me a sonnet")
        assert memory_gateway.tables[Table.AI_INTERACTIONS] == {}

    async def test_interaction_history(self, project_workspace, memory_gateway):
        await project_workspace.ask_persona(AIPersona.CRITIC, "First")
        for row in memory_gateway.tables[Table.AI_INTERACTIONS].values():
            row["created_at"] = "2024-01-01T00:00:00"
        await project_workspace.ask_persona(AIPersona.RESEARCHER, "Second")
        await project_workspace.ask_persona(AIPersona.CRITIC, "Third")

        everything = await project_workspace.interactions()
        critic = await project_workspace.interactions("critic")

        assert len(everything) == 3
        assert everything[-1].prompt == "First"
        assert all(isinstance(i, AIInteraction) for i in everything)
        assert [i.prompt for i in critic] == ["Third", "First"]
        assert critic[0].response == CANNED_RESPONSES[AIPersona.CRITIC]
        assert critic[0].project_id == project_workspace.project.id

    async def test_interaction_history_unknown_persona(self, project_workspace):
        with pytest.raises(ValidationError):
            await project_workspace.interactions("poet")


@pytest.mark.integration
@pytest.mark.asyncio
class TestConcurrentMutations:
    """Overlapping mutations against a shared SQLite database."""

    @pytest.fixture
    async def sqlite_gateway(self, tmp_path):
        gateway = SQLiteGateway(db_path=str(tmp_path / "workspace.db"))
        await gateway.initialize()
        yield gateway
        await gateway.close()

    def new_workspace(self, gateway, user_id="user_alice"):
        return KnowledgeWorkspace(
            gateway=gateway,
            responder=StaticPersonaResponder(),
            session=SessionContext(user_id=user_id),
        )

    async def test_overlapping_creates_are_both_kept(self, sqlite_gateway):
        workspace = self.new_workspace(sqlite_gateway)
        project = await workspace.create_project("Heat Islands")

        await asyncio.gather(
            workspace.create_block(BlockType.ARGUMENT, Position(x=0, y=0), content="Claim"),
            workspace.create_block(BlockType.EVIDENCE, Position(x=50, y=0), content="Data"),
        )

        remote = await sqlite_gateway.select(
            Table.KNOWLEDGE_BLOCKS, filters={"project_id": project.id}
        )
        local = workspace.snapshot().blocks
        assert len(remote) == 2
        assert {b.id for b in local} == {row["id"] for row in remote}

    async def test_overlapping_updates_bump_version_in_turn(self, sqlite_gateway):
        workspace = self.new_workspace(sqlite_gateway)
        await workspace.create_project("Heat Islands")
        block = await workspace.create_block(BlockType.ARGUMENT, Position(x=0, y=0), content="a")

        await asyncio.gather(
            workspace.update_block(block.id, {"content": "b"}),
            workspace.update_block(block.id, {"content": "c"}),
        )

        history = [v.version for v in workspace.block_history(block.id)]
        stored = await sqlite_gateway.select(Table.KNOWLEDGE_BLOCKS, filters={"id": block.id})
        assert history == [1, 2]
        assert stored[0]["version"] == 3
        assert workspace.snapshot().blocks[0].version == 3

    async def test_stale_workspace_gets_conflict(self, sqlite_gateway):
        first = self.new_workspace(sqlite_gateway)
        project = await first.create_project("Heat Islands")
        block = await first.create_block(BlockType.ARGUMENT, Position(x=0, y=0), content="v1")
        second = self.new_workspace(sqlite_gateway)
        await second.open_project(project.id)

        await first.update_block(block.id, {"content": "from first"}, expected_version=1)
        with pytest.raises(VersionConflictError):
            await second.update_block(block.id, {"content": "from second"}, expected_version=1)

        stored = await sqlite_gateway.select(Table.KNOWLEDGE_BLOCKS, filters={"id": block.id})
        history = await sqlite_gateway.select(
            Table.BLOCK_VERSIONS, filters={"block_id": block.id}
        )
        assert stored[0]["content"] == "from first"
        assert stored[0]["version"] == 2
        assert [row["version"] for row in history] == [1]
        assert second.snapshot().blocks[0].content == "v1"

    async def test_stale_workspace_without_expected_version(self, sqlite_gateway):
        first = self.new_workspace(sqlite_gateway)
        project = await first.create_project("Heat Islands")
        block = await first.create_block(BlockType.ARGUMENT, Position(x=0, y=0), content="v1")
        second = self.new_workspace(sqlite_gateway)
        await second.open_project(project.id)
        await first.update_block(block.id, {"content": "from first"})

        with pytest.raises(VersionConflictError):
            await second.update_block(block.id, {"content": "from second"})

        await second.open_project(project.id)
        updated = await second.update_block(block.id, {"content": "from second"})
        assert updated.version == 3


@pytest.mark.unit
@pytest.mark.asyncio
class TestWorkspaceLogging:
    """Workspace log lines carry session and project context."""

    async def test_log_context(self, workspace):
        records = []
        sink_id = logger.add(lambda message: records.append(message.record), level="INFO")
        try:
            project = await workspace.create_project("Tagged")
            await add_block(workspace, "Logged")
        finally:
            logger.remove(sink_id)

        block_records = [r for r in records if "Created block" in r["message"]]
        assert block_records[0]["extra"]["user_id"] == "user_alice"
        assert block_records[0]["extra"]["project_id"] == project.id
