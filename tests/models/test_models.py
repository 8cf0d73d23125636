"""
Tests for data models.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from knowledge_ide.models import (
    INITIAL_VERSION,
    PLACEHOLDER_CONTENT,
    BlockMetadata,
    BlockRelationship,
    BlockType,
    BlockUpdate,
    BlockVersion,
    KnowledgeBlock,
    Position,
    RelationshipType,
    SessionContext,
)


@pytest.mark.unit
class TestKnowledgeBlock:
    """Test KnowledgeBlock model."""

    def test_defaults(self):
        block = KnowledgeBlock(
            id="blk_1", project_id="proj_1", creator_id="u1", block_type=BlockType.QUOTE
        )

        assert block.content == PLACEHOLDER_CONTENT
        assert block.version == INITIAL_VERSION
        assert block.position == Position(x=0.0, y=0.0)
        assert block.metadata.tags == []

    def test_title_is_first_line(self):
        block = KnowledgeBlock(
            id="blk_1",
            project_id="proj_1",
            creator_id="u1",
            block_type=BlockType.ARGUMENT,
            content="Heading line\nBody text\nMore",
        )

        assert block.title == "Heading line"

    def test_block_type_from_string(self):
        block = KnowledgeBlock(
            id="blk_1", project_id="proj_1", creator_id="u1", block_type="hypothesis"
        )
        assert block.block_type == BlockType.HYPOTHESIS

    def test_invalid_block_type(self):
        with pytest.raises(PydanticValidationError):
            KnowledgeBlock(id="blk_1", project_id="proj_1", creator_id="u1", block_type="poem")

    def test_metadata_allows_extra_fields(self):
        metadata = BlockMetadata(tags=["a"], colour="red")
        assert metadata.model_dump()["colour"] == "red"

    def test_round_trip_through_json(self):
        block = KnowledgeBlock(
            id="blk_1",
            project_id="proj_1",
            creator_id="u1",
            block_type=BlockType.DATA,
            content="42",
            metadata=BlockMetadata(tags=["numbers"]),
            position=Position(x=10, y=20),
        )

        restored = KnowledgeBlock.model_validate(block.model_dump(mode="json"))
        assert restored == block


@pytest.mark.unit
class TestBlockUpdate:
    """Test partial updates."""

    def test_only_set_fields_are_changes(self):
        update = BlockUpdate(content="New text")
        assert update.changes() == {"content": "New text"}

    def test_none_values_are_ignored(self):
        update = BlockUpdate(content=None, position=Position(x=1, y=2))
        assert update.changes() == {"position": Position(x=1, y=2)}

    def test_empty_update(self):
        assert BlockUpdate().changes() == {}


@pytest.mark.unit
class TestOtherModels:
    """Test relationship, version and session models."""

    def test_relationship_touches(self):
        rel = BlockRelationship(
            id="rel_1",
            project_id="proj_1",
            source_block_id="blk_a",
            target_block_id="blk_b",
            relationship_type=RelationshipType.CAUSES,
        )

        assert rel.touches("blk_a")
        assert rel.touches("blk_b")
        assert not rel.touches("blk_c")
        assert rel.strength == 1.0

    def test_version_is_frozen(self):
        version = BlockVersion(
            id="ver_1", block_id="blk_1", version=1, content="old", changed_by="u1"
        )
        with pytest.raises(PydanticValidationError):
            version.content = "changed"

    def test_session_is_frozen(self):
        session = SessionContext(user_id="u1")
        with pytest.raises(PydanticValidationError):
            session.user_id = "u2"
