"""
Factory for creating persona responders.
"""

from knowledge_ide.config import PersonaConfig
from knowledge_ide.core.persona.base import PersonaResponder
from knowledge_ide.core.persona.ollama import OllamaPersonaResponder
from knowledge_ide.core.persona.openai import OpenAIPersonaResponder
from knowledge_ide.core.persona.static import StaticPersonaResponder
from knowledge_ide.utils.exceptions import ConfigurationError


class PersonaFactory:
    """Factory for creating persona responders from configuration."""

    @staticmethod
    def create(config: PersonaConfig) -> PersonaResponder:
        """
        Create persona responder from configuration.

        Args:
            config: Persona configuration

        Returns:
            Persona responder instance

        Raises:
            ConfigurationError: If provider is not supported or misconfigured
        """
        if config.provider == "static":
            return StaticPersonaResponder()
        elif config.provider == "ollama":
            return OllamaPersonaResponder(
                host=config.base_url or "http://localhost:11434",
                model=config.model,
                temperature=config.temperature,
                max_tokens=config.max_tokens,
                timeout=config.timeout,
            )
        elif config.provider == "openai":
            if not config.api_key:
                raise ConfigurationError("OpenAI API key is required")
            return OpenAIPersonaResponder(
                api_key=config.api_key,
                model=config.model,
                base_url=config.base_url,
                temperature=config.temperature,
                max_tokens=config.max_tokens,
                timeout=config.timeout,
            )
        else:
            raise ConfigurationError(f"Unsupported persona provider: {config.provider}")
