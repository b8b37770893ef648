"""Pytest configuration and fixtures for all tests.

This file is automatically loaded by pytest and ensures proper test environment setup.
"""

import json
import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

# Ensure project root is in PYTHONPATH for imports to work
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from storyAgent.config.settings import (  # noqa: E402
    ContextManagementSettings,
    ModelSettings,
    ObservabilitySettings,
    RuntimeSettings,
    Settings,
)
from storyAgent.context.token_tracker import TokenUsage  # noqa: E402
from storyAgent.models.completion import Completion  # noqa: E402
from storyAgent.narrative.models import Character, NarrativeConfig, Story  # noqa: E402


class FakeCompletionService:
    """Completion service whose ``complete`` is an AsyncMock."""

    def __init__(self):
        self.complete = AsyncMock()


def tokens_text(tokens: int) -> str:
    """Text whose estimate is exactly ``tokens`` (one 4-char chunk per token, a single word)."""
    return "abcd" * tokens


def build_settings(**context_overrides) -> Settings:
    context = {
        "enabled": True,
        "max_context_tokens": 128_000,
        "compression_threshold": 0.70,
        "keep_recent_count": 30,
    }
    context.update(context_overrides)
    return Settings(
        models=ModelSettings(narrator="gpt-4o-mini", api_key="test-key"),
        context=ContextManagementSettings(**context),
        runtime=RuntimeSettings(max_retries=2, retry_base_delay=0.0, retry_max_delay=0.0),
        observability=ObservabilitySettings(),
    )


@pytest.fixture
def text_of_tokens():
    return tokens_text


@pytest.fixture
def settings_factory():
    """Build settings with context overrides, e.g. settings_factory(keep_recent_count=4)."""
    return build_settings


@pytest.fixture
def settings():
    """Settings with default budget and zero retry delays."""
    return build_settings()


@pytest.fixture
def make_transcript():
    """Factory: optional anchor followed by alternating player/narrator turns."""

    def _make(turns: int, tokens_per_turn: int = 10, anchor_tokens: int = None):
        messages = []
        if anchor_tokens is not None:
            messages.append(SystemMessage(content=tokens_text(anchor_tokens)))
        for i in range(turns):
            if i % 2 == 0:
                messages.append(HumanMessage(content=tokens_text(tokens_per_turn)))
            else:
                messages.append(AIMessage(content=tokens_text(tokens_per_turn)))
        return messages

    return _make


@pytest.fixture
def narrative_config():
    return NarrativeConfig(
        story=Story(title="Pride and Prejudice", author="Jane Austen"),
        character=Character(name="Eleanor", personality_traits=["curious", "witty"]),
        creativity_level=2,
    )


NARRATOR_REPLY = {
    "response": (
        "The drawing room at Netherfield falls quiet as you enter. Mr. Darcy glances up from "
        "his letter, his expression unreadable, while Miss Bingley offers a thin smile."
    ),
    "suggested_actions": [
        {"id": "greet", "text": "Greet Mr. Darcy", "type": "dialogue"},
        {"id": "window", "text": "Walk to the window", "type": "exploration"},
        {"id": "sit", "text": "Take a seat by the fire", "type": "action"},
    ],
    "memory_updates": [
        {"id": "mem1", "description": "Arrived at Netherfield", "importance": "medium"},
    ],
    "world_state_updates": {"current_location": "Netherfield", "present_npcs": ["Mr. Darcy", "Miss Bingley"]},
    "relationship_updates": [
        {"character_name": "Mr. Darcy", "relationship_type": "neutral", "trust_level": 50, "notes": "Aloof"},
    ],
}


@pytest.fixture
def narrator_completion():
    return Completion(
        content=json.dumps(NARRATOR_REPLY),
        usage=TokenUsage(prompt_tokens=1200, completion_tokens=300, total_tokens=1500, model_name="gpt-4o-mini"),
        finish_reason="stop",
    )


@pytest.fixture
def narrator(narrator_completion):
    """Mock narrator completion service returning a well-formed JSON reply."""
    service = FakeCompletionService()
    service.complete.return_value = narrator_completion
    return service


@pytest.fixture
def summarizer():
    """Mock summarizer completion service."""
    service = FakeCompletionService()
    service.complete.return_value = Completion(
        content="Eleanor arrived at Netherfield and quarrelled with Mr. Darcy about books.",
        usage=TokenUsage(prompt_tokens=900, completion_tokens=40, total_tokens=940),
    )
    return service
