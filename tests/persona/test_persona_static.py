"""
Tests for the persona responder base and static responder.
"""

import pytest

from knowledge_ide.core.persona import (
    CANNED_RESPONSES,
    PERSONA_BRIEFS,
    PersonaResponder,
    StaticPersonaResponder,
)
from knowledge_ide.models import AIPersona


@pytest.mark.unit
class TestPersonaBase:
    """Test the abstract interface."""

    def test_cannot_instantiate_abstract(self):
        with pytest.raises(TypeError):
            PersonaResponder()

    def test_every_persona_has_a_brief(self):
        assert set(PERSONA_BRIEFS) == set(AIPersona)

    def test_system_prompt_mentions_role(self):
        prompt = PersonaResponder.system_prompt(AIPersona.CRITIC)

        assert "critic" in prompt
        assert PERSONA_BRIEFS[AIPersona.CRITIC] in prompt


@pytest.mark.unit
@pytest.mark.asyncio
class TestStaticPersonaResponder:
    """Test canned responses."""

    async def test_every_persona_answers(self):
        responder = StaticPersonaResponder()

        for persona in AIPersona:
            assert await responder.respond(persona, "anything") == CANNED_RESPONSES[persona]

    async def test_prompt_is_ignored(self):
        responder = StaticPersonaResponder()

        first = await responder.respond(AIPersona.EDITOR, "one")
        second = await responder.respond(AIPersona.EDITOR, "two")

        assert first == second
        assert first.startswith("From an editorial perspective")

    async def test_accepts_string_persona(self):
        responder = StaticPersonaResponder()
        answer = await responder.respond("researcher", "sources?")
        assert answer == CANNED_RESPONSES[AIPersona.RESEARCHER]

    async def test_overrides(self):
        responder = StaticPersonaResponder({AIPersona.CRITIC: "No."})

        assert await responder.respond(AIPersona.CRITIC, "x") == "No."
        assert await responder.respond(AIPersona.SYNTHESIZER, "x") == (
            CANNED_RESPONSES[AIPersona.SYNTHESIZER]
        )
        await responder.close()
