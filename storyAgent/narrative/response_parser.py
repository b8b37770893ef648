"""Strict parsing of the narrator's structured (JSON) output.

The narrator is asked for a JSON object. Whatever comes back is validated
exactly once here and turned into one of two shapes:

- ``ParsedOk``: a usable narrative plus normalized actions and state updates
- ``ParsedFallback``: the cleaned raw text when no usable JSON was returned

Malformed list items are dropped here and never reach callers.
"""

from __future__ import annotations

import json
import logging
from typing import Annotated, Any, Dict, List, Literal, Optional, Type, TypeVar, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from .cleaner import clean_narrative_text, is_response_valid
from .models import CharacterRelationship, MemoryEvent, WorldState

LOGGER = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

ACTION_TEXT_FALLBACKS = ["Continue forward", "Look around", "Speak up", "Take action", "Wait and see"]


class SuggestedAction(BaseModel):
    id: str = ""
    text: str = ""
    type: str = "dialogue"  # dialogue | action | exploration | introspection


def default_actions() -> List[SuggestedAction]:
    return [
        SuggestedAction(id="dialogue", text="Engage in conversation", type="dialogue"),
        SuggestedAction(id="observe", text="Observe your surroundings", type="exploration"),
        SuggestedAction(id="act", text="Take action", type="action"),
    ]


class ParsedOk(BaseModel):
    kind: Literal["ok"] = "ok"
    narrative: str
    actions: List[SuggestedAction] = Field(default_factory=default_actions)
    memory_updates: List[MemoryEvent] = Field(default_factory=list)
    relationship_updates: List[CharacterRelationship] = Field(default_factory=list)
    world_state_updates: WorldState = Field(default_factory=WorldState)


class ParsedFallback(BaseModel):
    kind: Literal["fallback"] = "fallback"
    raw_text: str

    @property
    def narrative(self) -> str:
        return self.raw_text

    @property
    def actions(self) -> List[SuggestedAction]:
        return default_actions()


ParsedResponse = Annotated[Union[ParsedOk, ParsedFallback], Field(discriminator="kind")]
parsed_response_adapter: TypeAdapter = TypeAdapter(ParsedResponse)


def _validate_items(items: Any, model: Type[T], label: str) -> List[T]:
    if not isinstance(items, list):
        return []
    valid: List[T] = []
    for item in items:
        try:
            valid.append(model.model_validate(item))
        except ValidationError as e:
            LOGGER.warning(f"Dropping malformed {label}: {e.errors()[0].get('msg', e)}")
    return valid


def _normalize_actions(items: Any) -> List[SuggestedAction]:
    actions = _validate_items(items, SuggestedAction, "suggested action")
    if not actions:
        return default_actions()

    normalized = []
    for index, action in enumerate(actions):
        text = action.text.strip() or ACTION_TEXT_FALLBACKS[index % len(ACTION_TEXT_FALLBACKS)]
        normalized.append(SuggestedAction(
            id=action.id or f"action-{index}",
            text=text,
            type=action.type or "dialogue",
        ))
    return normalized


def _world_state(data: Any) -> WorldState:
    if not isinstance(data, dict):
        return WorldState()
    try:
        return WorldState.model_validate(data)
    except ValidationError as e:
        LOGGER.warning(f"Dropping malformed world state update: {e}")
        return WorldState()


def parse_narrative_response(
    raw: Optional[str],
    fallback_narrative: Optional[str] = None,
) -> Union[ParsedOk, ParsedFallback]:
    """Validate the narrator's raw output.

    Args:
        raw: Raw completion text (expected to be a JSON object)
        fallback_narrative: Replacement text when the narrative is unusable

    Returns:
        ParsedOk when a JSON object with a narrative field came back,
        ParsedFallback otherwise
    """
    raw = raw or ""
    try:
        data: Dict[str, Any] = json.loads(raw)
    except json.JSONDecodeError as e:
        LOGGER.error(f"Narrator returned non-JSON output: {e}")
        return _fallback(raw, fallback_narrative)

    if not isinstance(data, dict):
        LOGGER.error(f"Narrator returned JSON {type(data).__name__}, expected object")
        return _fallback(raw, fallback_narrative)

    narrative = data.get("response") or data.get("narration")
    if not isinstance(narrative, str) or not narrative.strip():
        LOGGER.error("Narrator JSON has no narrative field")
        return _fallback(raw, fallback_narrative)

    cleaned = clean_narrative_text(narrative)
    if cleaned != narrative and len(cleaned) > 100:
        narrative = cleaned
    if not is_response_valid(narrative) and fallback_narrative:
        LOGGER.warning("Narrative failed validation, using fallback narrative")
        narrative = fallback_narrative

    parsed = ParsedOk(
        narrative=narrative.strip(),
        actions=_normalize_actions(data.get("suggested_actions")),
        memory_updates=_validate_items(data.get("memory_updates"), MemoryEvent, "memory update"),
        relationship_updates=_validate_items(
            data.get("relationship_updates"), CharacterRelationship, "relationship update"
        ),
        world_state_updates=_world_state(data.get("world_state_updates")),
    )

    LOGGER.debug(
        f"Parsed narrator response: {len(parsed.narrative)} chars, {len(parsed.actions)} actions, "
        f"{len(parsed.memory_updates)} memories, {len(parsed.relationship_updates)} relationships"
    )
    return parsed


def _fallback(raw: str, fallback_narrative: Optional[str]) -> ParsedFallback:
    text = clean_narrative_text(raw) or fallback_narrative or ""
    return ParsedFallback(raw_text=text)
