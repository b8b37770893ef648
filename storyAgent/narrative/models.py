"""Narrative configuration supplied by the caller for each turn."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class Story(BaseModel):
    """The literary work being played."""

    title: str
    author: str = "Unknown"


class Character(BaseModel):
    """The player's character sheet."""

    name: str
    personality_traits: List[str] = Field(default_factory=list)


class MemoryEvent(BaseModel):
    """A notable story fact remembered across turns."""

    id: str = ""
    description: str
    importance: Literal["low", "medium", "high"] = "medium"
    characters_involved: List[str] = Field(default_factory=list)
    location: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class CharacterRelationship(BaseModel):
    character_name: str
    relationship_type: str = "neutral"  # ally | friend | neutral | suspicious | enemy | romantic
    trust_level: int = Field(default=50, ge=0, le=100)
    notes: str = ""


class WorldState(BaseModel):
    current_location: Optional[str] = None
    time_of_day: Optional[str] = None
    weather: Optional[str] = None
    present_npcs: List[str] = Field(default_factory=list)
    mood_atmosphere: Optional[str] = None
    important_objects: List[str] = Field(default_factory=list)


class NarrativeConfig(BaseModel):
    """Per-turn narrative configuration.

    creativity_level: 1 story-focused, 2 flexible exploration, 3 open world.
    """

    story: Story
    character: Character
    creativity_level: int = Field(default=2, ge=1, le=3)
    memories: List[MemoryEvent] = Field(default_factory=list)
    relationships: List[CharacterRelationship] = Field(default_factory=list)
    world_state: WorldState = Field(default_factory=WorldState)

    def memory_descriptions(self) -> List[str]:
        return [m.description for m in self.memories if m.description]
