"""Estimate node: projects the next prompt against the token budget."""

from __future__ import annotations

import logging

from storyAgent.context.manager import ContextManager
from storyAgent.graph.state import TurnState
from storyAgent.utils.logging_utils import log_context_analysis, log_node_entry, log_node_exit

LOGGER = logging.getLogger("storyagent.estimate")


def build_estimate_node(*, context_manager: ContextManager):
    """Build the estimate node (pure, no model calls)."""

    def estimate_node(state: TurnState) -> dict:
        log_node_entry(LOGGER, "estimate", state)

        status = context_manager.check(state.get("transcript", []), state.get("player_input", ""))
        log_context_analysis(LOGGER, status)

        updates = {
            "status": status,
            "needs_compression": status.needs_compression,
            "compression_stats": None,
        }
        log_node_exit(LOGGER, "estimate", updates)
        return updates

    return estimate_node
