"""
Canvas interaction state and view transform.

The controller turns pointer events into intents (create block, create
relationship) without touching graph data; the workspace applies them.
"""

from collections.abc import Iterable
from typing import Literal

from pydantic import BaseModel, ConfigDict

from knowledge_ide.config import CanvasConfig
from knowledge_ide.models.block import BlockType, KnowledgeBlock, Position
from knowledge_ide.models.relationship import BlockRelationship, RelationshipType
from knowledge_ide.utils.logger import get_logger

logger = get_logger(__name__)


# ═══════════════════════════════════════════════════════════
# STATES & INTENTS
# ═══════════════════════════════════════════════════════════


class Idle(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["idle"] = "idle"


class Connecting(BaseModel):
    """Connect mode; ``from_block_id`` is None until a first block is picked."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["connecting"] = "connecting"
    from_block_id: str | None = None


class PlacingMenuOpen(BaseModel):
    """Block-type menu open at a canvas-space position."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["placing_menu_open"] = "placing_menu_open"
    position: Position


CanvasState = Idle | Connecting | PlacingMenuOpen


class CreateBlockIntent(BaseModel):
    model_config = ConfigDict(frozen=True)

    block_type: BlockType
    position: Position


class CreateRelationshipIntent(BaseModel):
    model_config = ConfigDict(frozen=True)

    source_block_id: str
    target_block_id: str
    relationship_type: RelationshipType = RelationshipType.SUPPORTS


CanvasIntent = CreateBlockIntent | CreateRelationshipIntent


class EdgeSegment(BaseModel):
    """Line between two block anchors in canvas space."""

    relationship_id: str
    x1: float
    y1: float
    x2: float
    y2: float
    dashed: bool = False


# ═══════════════════════════════════════════════════════════
# VIEW TRANSFORM
# ═══════════════════════════════════════════════════════════


class ViewTransform:
    """
    Zoom and pan between screen space and canvas space.

    Zoom is clamped to the configured range; translation is unconstrained.
    """

    def __init__(self, config: CanvasConfig | None = None):
        self.config = config or CanvasConfig()
        self.zoom = 1.0
        self.pan_x = 0.0
        self.pan_y = 0.0

    def set_zoom(self, zoom: float) -> float:
        self.zoom = round(min(self.config.max_zoom, max(self.config.min_zoom, zoom)), 4)
        return self.zoom

    def zoom_in(self) -> float:
        return self.set_zoom(self.zoom + self.config.zoom_step)

    def zoom_out(self) -> float:
        return self.set_zoom(self.zoom - self.config.zoom_step)

    def pan_by(self, dx: float, dy: float) -> None:
        self.pan_x += dx
        self.pan_y += dy

    def reset(self) -> None:
        self.zoom = 1.0
        self.pan_x = 0.0
        self.pan_y = 0.0

    def screen_to_canvas(self, x: float, y: float) -> Position:
        """Map a point relative to the canvas element into canvas space."""
        return Position(x=(x - self.pan_x) / self.zoom, y=(y - self.pan_y) / self.zoom)

    def canvas_to_screen(self, position: Position) -> tuple[float, float]:
        return position.x * self.zoom + self.pan_x, position.y * self.zoom + self.pan_y


# ═══════════════════════════════════════════════════════════
# CONTROLLER
# ═══════════════════════════════════════════════════════════


class CanvasController:
    """
    Pick/connect state machine for the knowledge canvas.

    Transitions:
    - Idle --toggle_connect--> Connecting(None)
    - Idle --select_block(b)--> Connecting(b)
    - Connecting(None) --select_block(b)--> Connecting(b)
    - Connecting(a) --select_block(b), b != a--> Idle, emits CreateRelationshipIntent(a, b)
    - Connecting --toggle_connect--> Idle (cancel)
    - Idle --click_canvas--> PlacingMenuOpen(p)
    - PlacingMenuOpen(p) --choose_block_type(t)--> Idle, emits CreateBlockIntent(t, p)
    - PlacingMenuOpen --dismiss_menu--> Idle
    """

    def __init__(self, config: CanvasConfig | None = None):
        self.config = config or CanvasConfig()
        self.view = ViewTransform(self.config)
        self.state: CanvasState = Idle()

    @property
    def is_connecting(self) -> bool:
        return isinstance(self.state, Connecting)

    def toggle_connect(self) -> None:
        """Enter connect mode, or cancel it without side effect."""
        if isinstance(self.state, Connecting):
            self.state = Idle()
        elif isinstance(self.state, Idle):
            self.state = Connecting()

    def cancel(self) -> None:
        self.state = Idle()

    def select_block(self, block_id: str) -> CreateRelationshipIntent | None:
        """
        Pick a block through its connect handle.

        Returns:
            A relationship intent when a second, distinct block completes a
            connection; otherwise None
        """
        if isinstance(self.state, Idle):
            self.state = Connecting(from_block_id=block_id)
            return None

        if not isinstance(self.state, Connecting):
            return None

        if self.state.from_block_id is None:
            self.state = Connecting(from_block_id=block_id)
            return None

        if self.state.from_block_id == block_id:
            return None

        intent = CreateRelationshipIntent(
            source_block_id=self.state.from_block_id,
            target_block_id=block_id,
            relationship_type=RelationshipType.SUPPORTS,
        )
        self.state = Idle()
        logger.debug(f"Connect intent {intent.source_block_id} -> {intent.target_block_id}")
        return intent

    def click_canvas(self, screen_x: float, screen_y: float) -> None:
        """Open the block menu at the clicked point (empty canvas, idle only)."""
        if isinstance(self.state, Idle):
            self.state = PlacingMenuOpen(position=self.view.screen_to_canvas(screen_x, screen_y))

    def choose_block_type(self, block_type: BlockType | str) -> CreateBlockIntent | None:
        if not isinstance(self.state, PlacingMenuOpen):
            return None

        intent = CreateBlockIntent(block_type=BlockType(block_type), position=self.state.position)
        self.state = Idle()
        return intent

    def dismiss_menu(self) -> None:
        if isinstance(self.state, PlacingMenuOpen):
            self.state = Idle()

    def menu_screen_position(self) -> tuple[float, float] | None:
        """Where the open menu is drawn in screen space."""
        if isinstance(self.state, PlacingMenuOpen):
            return self.view.canvas_to_screen(self.state.position)
        return None

    def edge_segments(
        self,
        blocks: Iterable[KnowledgeBlock],
        relationships: Iterable[BlockRelationship],
    ) -> list[EdgeSegment]:
        """
        Segments for every relationship whose endpoints are both present.

        Contradictions are drawn dashed.
        """
        positions = {block.id: block.position for block in blocks}
        dx, dy = self.config.anchor_offset_x, self.config.anchor_offset_y

        segments = []
        for rel in relationships:
            source = positions.get(rel.source_block_id)
            target = positions.get(rel.target_block_id)
            if source is None or target is None:
                continue
            segments.append(
                EdgeSegment(
                    relationship_id=rel.id,
                    x1=source.x + dx,
                    y1=source.y + dy,
                    x2=target.x + dx,
                    y2=target.y + dy,
                    dashed=rel.relationship_type == RelationshipType.CONTRADICTS,
                )
            )
        return segments
