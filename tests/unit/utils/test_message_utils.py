"""Unit tests for converting between role dicts and langchain messages."""

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage

from storyAgent.utils.message_utils import (
    message_from_dict,
    message_text,
    message_to_dict,
    messages_from_dicts,
    messages_to_dicts,
    role_of,
)


class TestMessageConversion:

    def test_from_dicts(self):
        messages = messages_from_dicts([
            {"role": "system", "content": "anchor"},
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "hello"},
        ])
        assert [type(m) for m in messages] == [SystemMessage, HumanMessage, AIMessage]

    def test_to_dicts(self):
        assert messages_to_dicts([HumanMessage(content="hi")]) == [{"role": "user", "content": "hi"}]

    def test_round_trip_keeps_order(self):
        items = [
            {"role": "system", "content": "anchor"},
            {"role": "user", "content": "I bow."},
            {"role": "assistant", "content": "Mr. Darcy nods."},
        ]
        assert messages_to_dicts(messages_from_dicts(items)) == items

    def test_unknown_role_rejected(self):
        with pytest.raises(ValueError):
            message_from_dict({"role": "tool", "content": "x"})

    def test_unsupported_message_type_rejected(self):
        with pytest.raises(ValueError):
            role_of(ToolMessage(content="x", tool_call_id="t1"))

    def test_none_content_becomes_empty(self):
        assert message_from_dict({"role": "user", "content": None}).content == ""


class TestMessageText:

    def test_plain_string(self):
        assert message_text(AIMessage(content="The ball begins.")) == "The ball begins."

    def test_multimodal_parts_joined(self):
        message = HumanMessage(content=[{"type": "text", "text": "first"}, {"type": "text", "text": "second"}])
        assert message_text(message) == "first\nsecond"

    def test_to_dict_flattens_parts(self):
        message = AIMessage(content=[{"type": "text", "text": "Netherfield"}])
        assert message_to_dict(message) == {"role": "assistant", "content": "Netherfield"}
