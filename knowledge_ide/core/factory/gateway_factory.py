"""
Factory for creating persistence gateway backends.
"""

from knowledge_ide.config import GatewayConfig
from knowledge_ide.core.gateway.base import PersistenceGateway
from knowledge_ide.core.gateway.memory_gateway import InMemoryGateway
from knowledge_ide.core.gateway.sqlite_gateway import SQLiteGateway
from knowledge_ide.utils.exceptions import ConfigurationError


class GatewayFactory:
    """Factory for creating persistence gateways from configuration."""

    @staticmethod
    def create(config: GatewayConfig) -> PersistenceGateway:
        """
        Create gateway from configuration.

        Args:
            config: Gateway configuration

        Returns:
            Gateway instance

        Raises:
            ConfigurationError: If backend is not supported
        """
        if config.backend == "sqlite":
            return SQLiteGateway(db_path=config.sqlite_path)
        elif config.backend == "memory":
            return InMemoryGateway()
        else:
            raise ConfigurationError(f"Unsupported gateway backend: {config.backend}")
