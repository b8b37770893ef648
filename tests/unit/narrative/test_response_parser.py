"""Unit tests for narrator response parsing and cleaning."""

import json

import pytest

from storyAgent.narrative.cleaner import PLACEHOLDER_NARRATIVE, clean_narrative_text, is_response_valid
from storyAgent.narrative.response_parser import (
    ParsedFallback,
    ParsedOk,
    parse_narrative_response,
    parsed_response_adapter,
)

NARRATIVE = (
    "Elizabeth looks up from her book as you enter the parlour, a curious light in her eyes. "
    "Outside, the rain has begun to fall in earnest."
)
FALLBACK = "The story continues in the quiet of the parlour, and every glance seems to carry a question."


def _reply(**fields):
    data = {"response": NARRATIVE}
    data.update(fields)
    return json.dumps(data)


class TestParsedOk:

    def test_full_reply(self):
        parsed = parse_narrative_response(_reply(
            suggested_actions=[{"id": "a", "text": "Ask about the book", "type": "dialogue"}],
            memory_updates=[{"id": "m1", "description": "Found Elizabeth reading", "importance": "low"}],
            relationship_updates=[{"character_name": "Elizabeth", "trust_level": 60}],
            world_state_updates={"current_location": "Parlour"},
        ))

        assert isinstance(parsed, ParsedOk)
        assert parsed.kind == "ok"
        assert parsed.narrative == NARRATIVE
        assert [a.text for a in parsed.actions] == ["Ask about the book"]
        assert parsed.memory_updates[0].description == "Found Elizabeth reading"
        assert parsed.relationship_updates[0].relationship_type == "neutral"
        assert parsed.world_state_updates.current_location == "Parlour"

    def test_narration_key_accepted(self):
        parsed = parse_narrative_response(json.dumps({"narration": NARRATIVE}))
        assert isinstance(parsed, ParsedOk)
        assert parsed.narrative == NARRATIVE

    def test_missing_actions_get_defaults(self):
        parsed = parse_narrative_response(_reply())
        assert [a.id for a in parsed.actions] == ["dialogue", "observe", "act"]

    def test_action_normalization(self):
        parsed = parse_narrative_response(_reply(suggested_actions=[
            {"text": ""},
            {"id": "x", "text": "Ask her to walk", "type": ""},
        ]))

        first, second = parsed.actions
        assert first.id == "action-0"
        assert first.text == "Continue forward"
        assert first.type == "dialogue"
        assert second.id == "x"
        assert second.type == "dialogue"

    def test_malformed_items_dropped(self):
        parsed = parse_narrative_response(_reply(
            memory_updates=[
                {"description": "Kept"},
                {"description": "Bad importance", "importance": "urgent"},
                {"importance": "high"},
            ],
            relationship_updates=[
                {"character_name": "Jane", "trust_level": 150},
                {"character_name": "Lydia", "trust_level": 20, "relationship_type": "suspicious"},
            ],
        ))

        assert [m.description for m in parsed.memory_updates] == ["Kept"]
        assert [r.character_name for r in parsed.relationship_updates] == ["Lydia"]

    def test_non_list_updates_ignored(self):
        parsed = parse_narrative_response(_reply(memory_updates="none", world_state_updates=["x"]))
        assert parsed.memory_updates == []
        assert parsed.world_state_updates.current_location is None

    def test_short_narrative_replaced_by_fallback(self):
        parsed = parse_narrative_response(json.dumps({"response": "Too short."}), FALLBACK)
        assert parsed.narrative == FALLBACK

    def test_placeholder_without_fallback_kept(self):
        parsed = parse_narrative_response(json.dumps({"response": PLACEHOLDER_NARRATIVE}))
        assert parsed.narrative == PLACEHOLDER_NARRATIVE


class TestParsedFallback:

    def test_plain_text(self):
        parsed = parse_narrative_response(NARRATIVE)

        assert isinstance(parsed, ParsedFallback)
        assert parsed.kind == "fallback"
        assert parsed.narrative == NARRATIVE
        assert len(parsed.actions) == 3

    def test_json_array(self):
        assert isinstance(parse_narrative_response("[1, 2]"), ParsedFallback)

    def test_object_without_narrative(self):
        assert isinstance(parse_narrative_response(json.dumps({"foo": 1})), ParsedFallback)

    @pytest.mark.parametrize("raw", ["", None])
    def test_empty_uses_fallback_text(self, raw):
        parsed = parse_narrative_response(raw, FALLBACK)
        assert parsed.narrative == FALLBACK

    def test_truncated_json_is_cleaned(self):
        raw = '{"response": "The carriage rattles down the lane.", "suggested_actions": [{"id": "a"'
        parsed = parse_narrative_response(raw)

        assert isinstance(parsed, ParsedFallback)
        assert parsed.narrative == "The carriage rattles down the lane."


class TestDiscriminatedUnion:

    def test_validates_by_kind(self):
        ok = parsed_response_adapter.validate_python({"kind": "ok", "narrative": NARRATIVE})
        fallback = parsed_response_adapter.validate_python({"kind": "fallback", "raw_text": "x"})

        assert isinstance(ok, ParsedOk)
        assert isinstance(fallback, ParsedFallback)


class TestCleaner:

    def test_strips_field_wrapper_and_trailing_blocks(self):
        text = '"response": "The hall was quiet.", "suggested_actions": [{"id": "a"}]'
        assert clean_narrative_text(text) == "The hall was quiet."

    def test_unescapes(self):
        text = '{"response": "First line.\\nSecond \\"quoted\\" line."}'
        assert clean_narrative_text(text) == 'First line.\nSecond "quoted" line.'

    def test_plain_text_only_stripped(self):
        assert clean_narrative_text("  A quiet evening.  ") == "A quiet evening."

    def test_empty(self):
        assert clean_narrative_text("") == ""

    def test_validity(self):
        assert is_response_valid(NARRATIVE) is True
        assert is_response_valid("Too short.") is False
        assert is_response_valid("") is False
        assert is_response_valid(f'{NARRATIVE} "suggested_actions"') is False
