"""
ID generation utilities for the Knowledge IDE.

Every record kind gets a short prefixed identifier:
- Projects: proj_xxx
- Blocks: blk_xxx
- Relationships: rel_xxx
- Block versions: ver_xxx
- AI interactions: ai_xxx
- Exports: exp_xxx
"""

from uuid import uuid4


def _short_hex() -> str:
    return uuid4().hex[:12]


def generate_project_id() -> str:
    """
    Generate unique Project ID.

    Returns:
        ID in format "proj_xxx" where xxx is 12 hex characters
    """
    return f"proj_{_short_hex()}"


def generate_block_id() -> str:
    """
    Generate unique KnowledgeBlock ID.

    Returns:
        ID in format "blk_xxx" where xxx is 12 hex characters
    """
    return f"blk_{_short_hex()}"


def generate_relationship_id() -> str:
    """
    Generate unique BlockRelationship ID.

    Returns:
        ID in format "rel_xxx" where xxx is 12 hex characters
    """
    return f"rel_{_short_hex()}"


def generate_version_id() -> str:
    """Generate unique BlockVersion ID ("ver_xxx")."""
    return f"ver_{_short_hex()}"


def generate_interaction_id() -> str:
    """Generate unique AI interaction ID ("ai_xxx")."""
    return f"ai_{_short_hex()}"


def generate_export_id() -> str:
    """Generate unique export record ID ("exp_xxx")."""
    return f"exp_{_short_hex()}"


# Record prefixes used by the gateways when an insert arrives without an id
ID_GENERATORS = {
    "projects": generate_project_id,
    "knowledge_blocks": generate_block_id,
    "block_relationships": generate_relationship_id,
    "block_versions": generate_version_id,
    "ai_interactions": generate_interaction_id,
    "exports": generate_export_id,
}
