"""
Abstract base class for persona responders.

A responder answers a free-text prompt in the voice of one AI persona.
Backends range from canned strings to hosted or local models; callers only
see ``respond``.
"""

from abc import ABC, abstractmethod

from knowledge_ide.models.interaction import AIPersona

PERSONA_BRIEFS: dict[AIPersona, str] = {
    AIPersona.CRITIC: "Challenge arguments and find logical gaps",
    AIPersona.EDITOR: "Improve structure and coherence",
    AIPersona.RESEARCHER: "Provide evidence and citations",
    AIPersona.SYNTHESIZER: "Connect ideas and reveal patterns",
}


class PersonaResponder(ABC):
    """
    Abstract base for persona responders.

    Responsibilities:
    - Answer a prompt in the voice of a persona
    - Release any client resources on close
    """

    @abstractmethod
    async def respond(self, persona: AIPersona, prompt: str) -> str:
        """
        Produce the persona's response to a prompt.

        Args:
            persona: Thinking partner to answer as
            prompt: User's free-text request

        Returns:
            Response text

        Raises:
            PersonaError: If the backend fails
        """
        pass

    @abstractmethod
    async def close(self):
        """Close any open connections."""

    @staticmethod
    def system_prompt(persona: AIPersona) -> str:
        """Instruction that frames a model as the given persona."""
        persona = AIPersona(persona)
        return (
            f"You are the {persona.value} in a knowledge-building workspace. "
            f"Your role: {PERSONA_BRIEFS[persona]}. "
            "Answer concisely in plain prose addressed to the author."
        )
