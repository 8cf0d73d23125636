"""
OpenAI persona responder using official SDK.
"""

from openai import AsyncOpenAI

from knowledge_ide.core.persona.base import PersonaResponder
from knowledge_ide.models.interaction import AIPersona
from knowledge_ide.utils.exceptions import PersonaError, ValidationError
from knowledge_ide.utils.logger import get_logger

logger = get_logger(__name__)


class OpenAIPersonaResponder(PersonaResponder):
    """Persona responder backed by the OpenAI chat completions API."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 600,
        timeout: float = 60.0,
    ):
        """
        Initialize OpenAI persona responder.

        Args:
            api_key: OpenAI API key
            model: Model name (e.g., "gpt-4o", "gpt-4o-mini")
            base_url: Optional custom base URL
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            timeout: Request timeout in seconds
        """
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout)

    async def respond(self, persona: AIPersona, prompt: str) -> str:
        """
        Ask the model to answer as the persona.

        Raises:
            ValidationError: If the prompt is blank
            PersonaError: If the OpenAI API call fails or returns nothing
        """
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt cannot be empty")

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": self.system_prompt(persona)},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except Exception as e:
            logger.bind(model=self.model, error_type=type(e).__name__).error(
                f"OpenAI API error: {e}"
            )
            raise PersonaError(f"OpenAI API error: {e}", {"model": self.model}) from e

        content = response.choices[0].message.content
        if not content:
            raise PersonaError("OpenAI returned empty content", {"model": self.model})

        return content.strip()

    async def close(self):
        """Close OpenAI client."""
        await self.client.close()
