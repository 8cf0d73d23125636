"""
Canned persona responses.

Each persona answers with a fixed string regardless of the prompt.
"""

from knowledge_ide.core.persona.base import PersonaResponder
from knowledge_ide.models.interaction import AIPersona

CANNED_RESPONSES: dict[AIPersona, str] = {
    AIPersona.CRITIC: (
        "As a critic, I would challenge your premise by asking: What evidence supports "
        "this claim? Have you considered alternative explanations? Your argument could be "
        "strengthened by addressing potential counterarguments."
    ),
    AIPersona.EDITOR: (
        "From an editorial perspective, I suggest restructuring your argument for better "
        "flow. Consider: 1) Stronger opening statement, 2) Clear supporting points, "
        "3) Logical progression, 4) Powerful conclusion."
    ),
    AIPersona.RESEARCHER: (
        "Based on the context, you might want to explore these sources: Recent studies in "
        "this field show conflicting results. I recommend looking into meta-analyses and "
        "systematic reviews for more comprehensive evidence."
    ),
    AIPersona.SYNTHESIZER: (
        "I see interesting patterns emerging: Your blocks reveal three main themes that "
        "could be connected. Consider how your hypothesis relates to your evidence, and how "
        "your questions might lead to new research directions."
    ),
}


class StaticPersonaResponder(PersonaResponder):
    """Lookup-table responder used when no model backend is configured."""

    def __init__(self, responses: dict[AIPersona, str] | None = None):
        self.responses = dict(CANNED_RESPONSES)
        if responses:
            self.responses.update(responses)

    async def respond(self, persona: AIPersona, prompt: str) -> str:
        return self.responses[AIPersona(persona)]

    async def close(self):
        pass
