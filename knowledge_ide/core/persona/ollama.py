"""
Ollama persona responder using native ollama-python SDK.
"""

import ollama

from knowledge_ide.core.persona.base import PersonaResponder
from knowledge_ide.models.interaction import AIPersona
from knowledge_ide.utils.exceptions import PersonaError, ValidationError
from knowledge_ide.utils.logger import get_logger

logger = get_logger(__name__)


class OllamaPersonaResponder(PersonaResponder):
    """
    Persona responder backed by a local Ollama model.

    Sends the persona brief as a system message followed by the user prompt.
    """

    def __init__(
        self,
        host: str = "http://localhost:11434",
        model: str = "llama3.1:8b",
        temperature: float = 0.7,
        max_tokens: int = 600,
        timeout: float = 60.0,
    ):
        """
        Initialize Ollama persona responder.

        Args:
            host: Ollama server URL
            model: Model name (e.g., "llama3.1", "mistral")
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            timeout: Request timeout in seconds
        """
        self.host = host
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

        self.client = ollama.AsyncClient(host=host, timeout=timeout)

    async def respond(self, persona: AIPersona, prompt: str) -> str:
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt cannot be empty")

        messages = [
            {"role": "system", "content": self.system_prompt(persona)},
            {"role": "user", "content": prompt},
        ]

        try:
            response = await self.client.chat(
                model=self.model,
                messages=messages,
                options={"temperature": self.temperature, "num_predict": self.max_tokens},
            )
        except Exception as e:
            logger.error(f"Ollama error for persona {AIPersona(persona).value}: {e}")
            raise PersonaError(f"Ollama error: {e}", {"model": self.model}) from e

        content = response["message"]["content"]
        if not content or not content.strip():
            raise PersonaError("Ollama returned empty content", {"model": self.model})

        return content.strip()

    async def close(self):
        """Close client (Ollama SDK handles cleanup internally)."""
        pass
