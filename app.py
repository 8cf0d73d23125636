"""
Knowledge IDE FastAPI Application

A REST API server over the knowledge workspace.
Provides endpoints for projects, blocks, relationships, version history,
insights, exports and persona feedback.
"""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field

from knowledge_ide import __version__
from knowledge_ide.config import Config
from knowledge_ide.core.factory import GatewayFactory, PersonaFactory
from knowledge_ide.models import (
    AIInteraction,
    AIPersona,
    BlockMetadata,
    BlockRelationship,
    BlockType,
    BlockUpdate,
    BlockVersion,
    ExportRecord,
    GraphSnapshot,
    Insight,
    KnowledgeBlock,
    Position,
    Project,
    RelationshipType,
    SessionContext,
    WorkMode,
)
from knowledge_ide.services.workspace import KnowledgeWorkspace
from knowledge_ide.utils.exceptions import (
    GatewayError,
    KnowledgeIDEError,
    NotFoundError,
    UnsupportedFormatError,
    ValidationError,
    VersionConflictError,
)
from knowledge_ide.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

ERROR_STATUS: dict[type[KnowledgeIDEError], int] = {
    NotFoundError: 404,
    ValidationError: 422,
    VersionConflictError: 409,
    UnsupportedFormatError: 400,
    GatewayError: 502,
}


# Pydantic models for API
class CreateProjectRequest(BaseModel):
    """Request model for creating a project."""

    title: str = Field(..., description="Project title")
    description: str = ""
    metadata: dict[str, Any] | None = None


class CreateBlockRequest(BaseModel):
    """Request model for placing a block on the canvas."""

    block_type: BlockType
    position: Position
    content: str | None = Field(default=None, description="Defaults to placeholder text")
    metadata: BlockMetadata | None = None


class UpdateBlockRequest(BlockUpdate):
    """Request model for updating a block."""

    expected_version: int | None = Field(
        default=None, description="Reject the update unless the block is at this version"
    )


class CreateRelationshipRequest(BaseModel):
    """Request model for linking two blocks."""

    source_block_id: str
    target_block_id: str
    relationship_type: RelationshipType = RelationshipType.SUPPORTS
    strength: float = Field(default=1.0, ge=0.0, le=1.0)
    notes: str = ""


class ExportRequest(BaseModel):
    """Request model for exporting a project."""

    format: str = Field(..., description="markdown, article or presentation")
    audience: str = ""


class PersonaRequest(BaseModel):
    """Request model for persona feedback."""

    prompt: str


class PersonaResponse(BaseModel):
    """Persona feedback response."""

    persona: AIPersona
    response: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    workspace_initialized: bool
    gateway: str
    persona_provider: str


# ═══════════════════════════════════════════════════════════
# DEPENDENCIES
# ═══════════════════════════════════════════════════════════


def current_session(
    request: Request, x_user_id: str | None = Header(default=None)
) -> SessionContext:
    """Session identity from the X-User-Id header."""
    return SessionContext(user_id=x_user_id or request.app.state.config.default_user_id)


def get_workspace(
    request: Request, session: SessionContext = Depends(current_session)
) -> KnowledgeWorkspace:
    state = request.app.state
    if getattr(state, "gateway", None) is None:
        raise HTTPException(status_code=503, detail="Workspace not initialized")
    return KnowledgeWorkspace(state.gateway, state.responder, session, state.config)


async def project_workspace(
    project_id: str, workspace: KnowledgeWorkspace = Depends(get_workspace)
) -> KnowledgeWorkspace:
    """Workspace with the requested project loaded."""
    await workspace.open_project(project_id)
    return workspace


# ═══════════════════════════════════════════════════════════
# ROUTES
# ═══════════════════════════════════════════════════════════

router = APIRouter()


@router.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Knowledge IDE API",
        "version": __version__,
        "description": "Visual knowledge canvas with versioned blocks and typed relationships",
        "docs": "/docs",
        "health": "/health",
    }


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """Health check endpoint."""
    state = request.app.state
    initialized = getattr(state, "gateway", None) is not None
    return HealthResponse(
        status="healthy" if initialized else "initializing",
        workspace_initialized=initialized,
        gateway=state.config.gateway.backend,
        persona_provider=state.config.persona.provider,
    )


# Project endpoints
@router.get("/projects", response_model=list[Project])
async def list_projects(workspace: KnowledgeWorkspace = Depends(get_workspace)):
    """List the caller's projects, most recently updated first."""
    return await workspace.list_projects()


@router.post("/projects", response_model=Project, status_code=201)
async def create_project(
    request: CreateProjectRequest, workspace: KnowledgeWorkspace = Depends(get_workspace)
):
    return await workspace.create_project(
        title=request.title,
        description=request.description,
        metadata=request.metadata,
    )


@router.get("/projects/{project_id}", response_model=GraphSnapshot)
async def get_project(workspace: KnowledgeWorkspace = Depends(project_workspace)):
    """Blocks and relationships of a project."""
    return workspace.snapshot()


# Block endpoints
@router.get("/projects/{project_id}/blocks", response_model=list[KnowledgeBlock])
async def list_blocks(workspace: KnowledgeWorkspace = Depends(project_workspace)):
    return list(workspace.snapshot().blocks)


@router.post("/projects/{project_id}/blocks", response_model=KnowledgeBlock, status_code=201)
async def create_block(
    request: CreateBlockRequest, workspace: KnowledgeWorkspace = Depends(project_workspace)
):
    """
    Place a new block on the canvas.

    Without explicit content the block starts with placeholder text.
    """
    return await workspace.create_block(
        block_type=request.block_type,
        position=request.position,
        content=request.content,
        metadata=request.metadata,
    )


@router.patch("/projects/{project_id}/blocks/{block_id}", response_model=KnowledgeBlock)
async def update_block(
    block_id: str,
    request: UpdateBlockRequest,
    workspace: KnowledgeWorkspace = Depends(project_workspace),
):
    """
    Update a block's content, type, metadata or position.

    Every update bumps the version and records the previous content in the
    block's history. Pass expected_version to guard against lost updates.
    """
    changes = BlockUpdate.model_validate(request.model_dump(exclude={"expected_version"}))
    return await workspace.update_block(
        block_id, changes, expected_version=request.expected_version
    )


@router.delete("/projects/{project_id}/blocks/{block_id}")
async def delete_block(block_id: str, workspace: KnowledgeWorkspace = Depends(project_workspace)):
    """Delete a block along with every relationship touching it."""
    await workspace.delete_block(block_id)
    return {"id": block_id, "deleted": True}


@router.get(
    "/projects/{project_id}/blocks/{block_id}/versions", response_model=list[BlockVersion]
)
async def block_versions(block_id: str, workspace: KnowledgeWorkspace = Depends(project_workspace)):
    """History of a block, newest first."""
    return list(reversed(workspace.block_history(block_id)))


@router.post(
    "/projects/{project_id}/versions/{version_id}/restore", response_model=KnowledgeBlock
)
async def restore_version(
    version_id: str, workspace: KnowledgeWorkspace = Depends(project_workspace)
):
    return await workspace.restore_version(version_id)


# Relationship endpoints
@router.get("/projects/{project_id}/relationships", response_model=list[BlockRelationship])
async def list_relationships(workspace: KnowledgeWorkspace = Depends(project_workspace)):
    return list(workspace.snapshot().relationships)


@router.post(
    "/projects/{project_id}/relationships", response_model=BlockRelationship, status_code=201
)
async def create_relationship(
    request: CreateRelationshipRequest,
    workspace: KnowledgeWorkspace = Depends(project_workspace),
):
    return await workspace.create_relationship(
        request.source_block_id,
        request.target_block_id,
        request.relationship_type,
        strength=request.strength,
        notes=request.notes,
    )


@router.delete("/projects/{project_id}/relationships/{relationship_id}")
async def delete_relationship(
    relationship_id: str, workspace: KnowledgeWorkspace = Depends(project_workspace)
):
    await workspace.delete_relationship(relationship_id)
    return {"id": relationship_id, "deleted": True}


# Derived views
@router.get("/projects/{project_id}/insights", response_model=list[Insight])
async def get_insights(workspace: KnowledgeWorkspace = Depends(project_workspace)):
    """Heuristic insights: evidence gaps, open questions, themes, synthesis readiness."""
    return workspace.insights()


@router.get("/projects/{project_id}/panels")
async def get_panels(
    mode: WorkMode = Query(default=WorkMode.EXPLORATION),
    workspace: KnowledgeWorkspace = Depends(project_workspace),
):
    return {"mode": mode.value, "panels": workspace.panels_for(mode)}


@router.get("/projects/{project_id}/exports", response_model=list[ExportRecord])
async def list_exports(workspace: KnowledgeWorkspace = Depends(project_workspace)):
    """Archived exports, newest first."""
    return await workspace.exports()


@router.post("/projects/{project_id}/exports", response_class=PlainTextResponse)
async def export_project(
    request: ExportRequest, workspace: KnowledgeWorkspace = Depends(project_workspace)
):
    """
    Render and archive an export, returned as a plain-text download.
    """
    result = await workspace.export(request.format, audience=request.audience)
    return PlainTextResponse(
        content=result.content,
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )


# Persona endpoints
@router.post("/projects/{project_id}/personas/{persona}", response_model=PersonaResponse)
async def ask_persona(
    persona: AIPersona,
    request: PersonaRequest,
    workspace: KnowledgeWorkspace = Depends(project_workspace),
):
    """Ask a persona (critic, editor, researcher, synthesizer) for feedback."""
    response = await workspace.ask_persona(persona, request.prompt)
    return PersonaResponse(persona=persona, response=response)


@router.get("/projects/{project_id}/interactions", response_model=list[AIInteraction])
async def list_interactions(
    persona: AIPersona | None = Query(default=None),
    workspace: KnowledgeWorkspace = Depends(project_workspace),
):
    """Persona exchange history, newest first, optionally for one persona."""
    return await workspace.interactions(persona)


# ═══════════════════════════════════════════════════════════
# APPLICATION
# ═══════════════════════════════════════════════════════════


async def knowledge_error_handler(request: Request, exc: KnowledgeIDEError) -> JSONResponse:
    status_code = 500
    for error_type, code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            status_code = code
            break

    if status_code >= 500:
        logger.error(f"Error handling {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "context": exc.context},
    )


def create_app(config: Config | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Configuration object (loaded from the environment when omitted)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup/shutdown."""
        config = app.state.config

        setup_logging(
            level=config.logging.level,
            log_to_file=config.logging.log_to_file,
            log_dir=config.logging.log_dir,
            file_rotation=config.logging.file_rotation,
            file_retention=config.logging.file_retention,
            compression=config.logging.compression,
            serialize=config.logging.serialize,
        )

        logger.info("Starting Knowledge IDE server")
        logger.info(
            f"Configuration: persona={config.persona.provider}/{config.persona.model}, "
            f"gateway={config.gateway.backend}"
        )

        gateway = GatewayFactory.create(config.gateway)
        await gateway.initialize()
        app.state.gateway = gateway
        app.state.responder = PersonaFactory.create(config.persona)
        logger.info("Knowledge IDE workspace initialized")

        yield

        logger.info("Shutting down Knowledge IDE server")
        await app.state.responder.close()
        await gateway.close()
        app.state.gateway = None
        logger.info("Cleanup complete")

    app = FastAPI(
        title="Knowledge IDE API",
        description="Visual knowledge canvas with versioned blocks and typed relationships",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config or Config.from_env()
    app.state.gateway = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(KnowledgeIDEError, knowledge_error_handler)
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
