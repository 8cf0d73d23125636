"""Utility modules for the Knowledge IDE."""

from knowledge_ide.utils.exceptions import (
    ConfigurationError,
    GatewayError,
    KnowledgeIDEError,
    NotFoundError,
    PersonaError,
    UnsupportedFormatError,
    ValidationError,
    VersionConflictError,
)
from knowledge_ide.utils.id_generator import (
    ID_GENERATORS,
    generate_block_id,
    generate_export_id,
    generate_interaction_id,
    generate_project_id,
    generate_relationship_id,
    generate_version_id,
)
from knowledge_ide.utils.logger import get_logger, setup_logging

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    # ID Generators
    "ID_GENERATORS",
    "generate_project_id",
    "generate_block_id",
    "generate_relationship_id",
    "generate_version_id",
    "generate_interaction_id",
    "generate_export_id",
    # Exceptions
    "KnowledgeIDEError",
    "NotFoundError",
    "ValidationError",
    "VersionConflictError",
    "GatewayError",
    "UnsupportedFormatError",
    "PersonaError",
    "ConfigurationError",
]
