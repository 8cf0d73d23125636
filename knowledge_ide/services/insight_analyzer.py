"""
Heuristic insights over a block collection.

Rules run in a fixed order and each appends at most one insight:
1. Evidence gap: arguments outnumber evidence more than two to one
2. Research opportunities: more than three questions
3. Emerging themes: the three most frequent tags
4. Synthesis readiness: more than ten blocks
"""

from collections import Counter
from collections.abc import Iterable

from knowledge_ide.models.block import BlockType, KnowledgeBlock
from knowledge_ide.models.insight import Insight, InsightType

QUESTION_THRESHOLD = 3
SYNTHESIS_THRESHOLD = 10
TOP_THEMES = 3


def analyze_blocks(blocks: Iterable[KnowledgeBlock]) -> list[Insight]:
    """
    Derive insights from a snapshot of blocks.

    Pure and total: an empty collection yields an empty list.

    Args:
        blocks: Blocks to analyze

    Returns:
        Triggered insights in rule order
    """
    blocks = list(blocks)
    by_type = Counter(block.block_type for block in blocks)
    insights: list[Insight] = []

    if by_type[BlockType.ARGUMENT] > by_type[BlockType.EVIDENCE] * 2:
        insights.append(
            Insight(
                type=InsightType.GAP,
                title="Evidence Gap Detected",
                description=(
                    "You have many arguments but limited supporting evidence. "
                    "Consider adding more data or citations."
                ),
                related_blocks=_ids_of(blocks, BlockType.ARGUMENT),
            )
        )

    question_count = by_type[BlockType.QUESTION]
    if question_count > QUESTION_THRESHOLD:
        insights.append(
            Insight(
                type=InsightType.OPPORTUNITY,
                title="Research Opportunities",
                description=(
                    f"You have {question_count} unanswered questions. "
                    "These could drive your next research phase."
                ),
                related_blocks=_ids_of(blocks, BlockType.QUESTION),
            )
        )

    themes = top_tags(blocks, TOP_THEMES)
    if themes:
        insights.append(
            Insight(
                type=InsightType.PATTERN,
                title="Emerging Themes",
                description=(
                    f"Key themes: {', '.join(themes)}. "
                    "Consider exploring these connections further."
                ),
            )
        )

    if len(blocks) > SYNTHESIS_THRESHOLD:
        insights.append(
            Insight(
                type=InsightType.OPPORTUNITY,
                title="Ready for Synthesis",
                description=(
                    "You have accumulated significant knowledge. "
                    "Consider switching to Synthesis mode to connect ideas."
                ),
            )
        )

    return insights


def top_tags(blocks: Iterable[KnowledgeBlock], limit: int = TOP_THEMES) -> list[str]:
    """
    Most frequent tags across blocks.

    Ties keep the order in which tags were first encountered.
    """
    counts = Counter(tag for block in blocks for tag in block.metadata.tags)
    # sorted() is stable and Counter keeps first-encounter order
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [tag for tag, _ in ranked[:limit]]


def _ids_of(blocks: list[KnowledgeBlock], block_type: BlockType) -> list[str]:
    return [block.id for block in blocks if block.block_type == block_type]
