"""Narrator system prompt builder

Renders the Jinja2 templates in ``storyAgent/config/prompt_templates`` with
the turn's narrative configuration.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict

from jinja2.sandbox import SandboxedEnvironment

from .models import NarrativeConfig

DEFAULT_CREATIVITY_LEVEL = 2

# Narrative sampling temperature per creativity tier
CREATIVITY_TEMPERATURES: Dict[int, float] = {1: 0.5, 2: 0.7, 3: 0.9}


def narrative_temperature(creativity_level: int) -> float:
    return CREATIVITY_TEMPERATURES.get(creativity_level, CREATIVITY_TEMPERATURES[DEFAULT_CREATIVITY_LEVEL])


class PromptBuilder:
    """Prompt template builder for the narrator"""

    TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "config" / "prompt_templates"
    BASE_CONTEXT_TEMPLATE = "_base_context.jinja2"
    NARRATOR_TEMPLATE = "narrator.jinja2"
    CREATIVITY_TEMPLATES = {
        1: "creativity_1.jinja2",
        2: "creativity_2.jinja2",
        3: "creativity_3.jinja2",
    }

    MEMORY_LIMIT = 5

    @classmethod
    def _load_template(cls, name: str) -> str:
        """Load template text from the template directory.

        Args:
            name: Template file name

        Returns:
            Template content
        """
        with open(cls.TEMPLATE_DIR / name, "r", encoding="utf-8") as f:
            return f.read()

    @staticmethod
    def _render_template(template: str, params: dict) -> str:
        """Render a template in a sandboxed Jinja2 environment."""
        env = SandboxedEnvironment()
        return env.from_string(template).render(**params)

    @classmethod
    def memory_text(cls, config: NarrativeConfig) -> str:
        descriptions = config.memory_descriptions()[-cls.MEMORY_LIMIT:]
        if not descriptions:
            return ""
        return f"\n\nKey memories: {'; '.join(descriptions)}"

    @staticmethod
    def relationship_text(config: NarrativeConfig) -> str:
        if not config.relationships:
            return ""
        entries = "; ".join(
            f"{r.character_name} ({r.relationship_type}, trust: {r.trust_level}%)"
            for r in config.relationships
        )
        return f"\n\nCurrent relationships: {entries}"

    @staticmethod
    def world_text(config: NarrativeConfig) -> str:
        world = config.world_state
        parts = []
        if world.current_location:
            parts.append(f"location: {world.current_location}")
        if world.time_of_day:
            parts.append(f"time: {world.time_of_day}")
        if world.present_npcs:
            parts.append(f"present: {', '.join(world.present_npcs)}")
        if not parts:
            return ""
        return f"\n\nCurrent scene: {'; '.join(parts)}"

    @classmethod
    def load_creativity_prompt(cls, config: NarrativeConfig) -> str:
        """Tier-specific storyteller personality (unknown tiers use tier 2)."""
        level = config.creativity_level if config.creativity_level in cls.CREATIVITY_TEMPLATES else DEFAULT_CREATIVITY_LEVEL
        params = {
            "story": config.story.model_dump(),
            "character": config.character.model_dump(),
            "context_text": cls.memory_text(config),
            "relationship_text": cls.relationship_text(config),
            "world_text": cls.world_text(config),
        }
        params["base_context"] = cls._render_template(cls._load_template(cls.BASE_CONTEXT_TEMPLATE), params)
        return cls._render_template(cls._load_template(cls.CREATIVITY_TEMPLATES[level]), params)

    @classmethod
    def load_narrator_prompt(cls, config: NarrativeConfig) -> str:
        """Full system instruction for one narrative turn.

        Returns:
            Rendered creativity prompt followed by the structured-output rules
        """
        return cls._render_template(
            cls._load_template(cls.NARRATOR_TEMPLATE),
            {
                "creativity_prompt": cls.load_creativity_prompt(config),
                "character": config.character.model_dump(),
                "creativity_level": config.creativity_level,
            },
        )


def fallback_narrative(config: NarrativeConfig) -> str:
    """Generic narration used when the narrator's text is unusable."""
    return (
        f"The conversation deepens as {config.character.name} finds themselves more immersed in the "
        f"world of {config.story.title}. Each exchange reveals new layers of the story, and the "
        f"characters around them seem to come alive, offering glimpses of {config.story.author}'s "
        f"timeless themes and new paths yet to be explored."
    )
