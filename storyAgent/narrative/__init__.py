"""Narrative configuration, narrator prompts, and response parsing."""

from .models import (
    Character,
    CharacterRelationship,
    MemoryEvent,
    NarrativeConfig,
    Story,
    WorldState,
)
from .cleaner import clean_narrative_text, is_response_valid
from .prompts import PromptBuilder, fallback_narrative, narrative_temperature
from .response_parser import (
    ParsedFallback,
    ParsedOk,
    SuggestedAction,
    default_actions,
    parse_narrative_response,
)

__all__ = [
    "Character",
    "CharacterRelationship",
    "MemoryEvent",
    "NarrativeConfig",
    "Story",
    "WorldState",
    "clean_narrative_text",
    "is_response_valid",
    "PromptBuilder",
    "fallback_narrative",
    "narrative_temperature",
    "ParsedFallback",
    "ParsedOk",
    "SuggestedAction",
    "default_actions",
    "parse_narrative_response",
]
