"""
Render a project graph as markdown, article or presentation text.

Rendering is a pure function of (title, blocks, relationships, format).
"""

from collections.abc import Iterable

from knowledge_ide.models.block import BlockType, KnowledgeBlock
from knowledge_ide.models.interaction import ExportFormat
from knowledge_ide.models.relationship import BlockRelationship, RelationshipType
from knowledge_ide.utils.exceptions import UnsupportedFormatError

EXCERPT_LENGTH = 100
SLIDE_SEPARATOR = "---"


def render_markdown(title: str, blocks: Iterable[KnowledgeBlock]) -> str:
    """Blocks grouped by type, groups in order of first appearance."""
    groups: dict[BlockType, list[KnowledgeBlock]] = {}
    for block in blocks:
        groups.setdefault(block.block_type, []).append(block)

    content = f"# {title}\n\n"
    for block_type, typed_blocks in groups.items():
        name = block_type.value
        content += f"## {name[:1].upper() + name[1:]}s\n\n"
        for block in typed_blocks:
            content += f"### {block.title}\n\n"
            content += f"{block.content}\n\n"
            if block.metadata.tags:
                content += f"*Tags: {', '.join(block.metadata.tags)}*\n\n"

    return content


def render_article(
    title: str,
    blocks: Iterable[KnowledgeBlock],
    relationships: Iterable[BlockRelationship],
) -> str:
    """
    Introduction followed by numbered key arguments.

    Each argument lists the blocks that support it, truncated to an excerpt.
    """
    blocks = list(blocks)
    relationships = list(relationships)
    blocks_by_id = {block.id: block for block in blocks}
    arguments = [block for block in blocks if block.block_type == BlockType.ARGUMENT]

    content = f"# {title}\n\n"
    content += "## Introduction\n\n"
    content += f"This article synthesizes key insights from {len(blocks)} knowledge blocks.\n\n"

    if arguments:
        content += "## Key Arguments\n\n"
        for number, argument in enumerate(arguments, start=1):
            content += f"{number}. **{argument.title}**\n\n"
            content += f"{argument.content}\n\n"

            supporting = [
                blocks_by_id[rel.source_block_id]
                for rel in relationships
                if rel.target_block_id == argument.id
                and rel.relationship_type == RelationshipType.SUPPORTS
                and rel.source_block_id in blocks_by_id
            ]
            if supporting:
                content += "*Supporting evidence:*\n"
                for block in supporting:
                    content += f"- {block.content[:EXCERPT_LENGTH]}...\n"
                content += "\n"

    return content


def render_presentation(title: str, blocks: Iterable[KnowledgeBlock]) -> str:
    """One slide per block in snapshot order."""
    content = f"# {title}\n\n{SLIDE_SEPARATOR}\n\n"

    for number, block in enumerate(blocks, start=1):
        content += f"## Slide {number}: {block.block_type.value}\n\n"
        content += f"{block.content}\n\n"
        if block.metadata.tags:
            content += f"*{' • '.join(block.metadata.tags)}*\n\n"
        content += f"{SLIDE_SEPARATOR}\n\n"

    return content


def parse_format(export_format: ExportFormat | str) -> ExportFormat:
    """
    Normalize a format tag.

    Raises:
        UnsupportedFormatError: If the tag is not a known format
    """
    try:
        return ExportFormat(export_format)
    except ValueError as e:
        raise UnsupportedFormatError(
            f"Unsupported export format: {export_format!r}",
            {"format": str(export_format), "supported": [f.value for f in ExportFormat]},
        ) from e


def render_export(
    title: str,
    blocks: Iterable[KnowledgeBlock],
    relationships: Iterable[BlockRelationship],
    export_format: ExportFormat | str,
) -> str:
    """
    Render blocks and relationships in the requested format.

    Args:
        title: Project title used as the document heading
        blocks: Blocks in snapshot order
        relationships: Relationships between the blocks
        export_format: "markdown", "article" or "presentation"

    Returns:
        Rendered text

    Raises:
        UnsupportedFormatError: If the format tag is unknown
    """
    export_format = parse_format(export_format)

    if export_format == ExportFormat.MARKDOWN:
        return render_markdown(title, blocks)
    elif export_format == ExportFormat.ARTICLE:
        return render_article(title, blocks, relationships)
    else:
        return render_presentation(title, blocks)


def export_filename(title: str, export_format: ExportFormat | str) -> str:
    """Download name: ``.md`` for markdown, ``.txt`` for the other formats."""
    extension = "md" if parse_format(export_format) == ExportFormat.MARKDOWN else "txt"
    return f"{title}.{extension}"
