"""
Factory modules for creating Knowledge IDE components.

Provides factories for persona responders and persistence gateways.
"""

from knowledge_ide.core.factory.gateway_factory import GatewayFactory
from knowledge_ide.core.factory.persona_factory import PersonaFactory

__all__ = [
    "GatewayFactory",
    "PersonaFactory",
]
