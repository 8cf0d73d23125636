"""
Shared test fixtures for all test modules.

Fixtures use function scope so every test gets fresh stores and gateways.
"""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta

import pytest

from knowledge_ide.config import Config, GatewayConfig, LoggingConfig
from knowledge_ide.core.gateway import InMemoryGateway
from knowledge_ide.core.persona import StaticPersonaResponder
from knowledge_ide.core.store import KnowledgeGraphStore
from knowledge_ide.models import BlockMetadata, BlockType, KnowledgeBlock, Position, SessionContext
from knowledge_ide.services.workspace import KnowledgeWorkspace

TEST_USER = "user_alice"


def make_block(
    block_type: BlockType = BlockType.ARGUMENT,
    content: str = "Test block",
    tags: list[str] | None = None,
    block_id: str | None = None,
    project_id: str = "proj_test",
    offset_seconds: int = 0,
) -> KnowledgeBlock:
    """Build a standalone block for pure-function tests."""
    created = datetime(2024, 1, 1, 12, 0, 0) + timedelta(seconds=offset_seconds)
    return KnowledgeBlock(
        id=block_id or f"blk_{block_type.value}_{offset_seconds}",
        project_id=project_id,
        creator_id=TEST_USER,
        block_type=block_type,
        content=content,
        metadata=BlockMetadata(tags=tags or []),
        position=Position(x=0, y=0),
        created_at=created,
        updated_at=created,
    )


@pytest.fixture
def block_factory():
    """Factory for standalone blocks."""
    return make_block


@pytest.fixture
def test_config() -> Config:
    """Config using the in-memory gateway and no log files."""
    return Config(
        gateway=GatewayConfig(backend="memory"),
        logging=LoggingConfig(level="DEBUG", log_to_file=False),
    )


@pytest.fixture
def store() -> KnowledgeGraphStore:
    return KnowledgeGraphStore("proj_test")


@pytest.fixture
def session() -> SessionContext:
    return SessionContext(user_id=TEST_USER)


@pytest.fixture
def memory_gateway() -> InMemoryGateway:
    return InMemoryGateway()


@pytest.fixture
async def workspace(memory_gateway, session, test_config) -> AsyncGenerator:
    """Initialized workspace with the static persona responder."""
    ws = KnowledgeWorkspace(
        gateway=memory_gateway,
        responder=StaticPersonaResponder(),
        session=session,
        config=test_config,
    )
    await ws.initialize()
    yield ws
    await ws.close()


@pytest.fixture
async def project_workspace(workspace) -> KnowledgeWorkspace:
    """Workspace with a freshly created project open."""
    await workspace.create_project("Climate Research", description="Notes on adaptation")
    return workspace
