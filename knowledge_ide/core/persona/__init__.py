"""
Persona responder abstraction.

Supported backends:
- Static (canned responses)
- Ollama (native SDK)
- OpenAI (official SDK)
"""

from knowledge_ide.core.persona.base import PERSONA_BRIEFS, PersonaResponder
from knowledge_ide.core.persona.ollama import OllamaPersonaResponder
from knowledge_ide.core.persona.openai import OpenAIPersonaResponder
from knowledge_ide.core.persona.static import CANNED_RESPONSES, StaticPersonaResponder

__all__ = [
    "PersonaResponder",
    "PERSONA_BRIEFS",
    "StaticPersonaResponder",
    "CANNED_RESPONSES",
    "OllamaPersonaResponder",
    "OpenAIPersonaResponder",
]
