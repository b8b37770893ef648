"""Conditional routing helpers for the turn graph."""

from __future__ import annotations

import logging
from typing import Literal

from .state import TurnState
from storyAgent.context.manager import ContextManager
from storyAgent.utils.logging_utils import log_routing_decision

LOGGER = logging.getLogger("storyagent.routing")


def build_estimate_route(*, context_manager: ContextManager):
    """Route after the estimate node.

    Returns a router giving:
        "summarization": projected occupancy reached the compression threshold
        "narrate": otherwise (or when context management is disabled)
    """

    def estimate_route(state: TurnState) -> Literal["summarization", "narrate"]:
        status = state.get("status")

        if status is not None and context_manager.should_compress(status):
            decision = "summarization"
            reason = "Projected occupancy at or above compression threshold"
        elif state.get("needs_compression", False):
            decision = "narrate"
            reason = "Compression needed but context management is disabled"
        else:
            decision = "narrate"
            reason = "Within token budget"

        log_routing_decision(LOGGER, "estimate", decision, reason)
        return decision

    return estimate_route
