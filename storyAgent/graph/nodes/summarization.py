"""Summarization node for automatic context compression."""

from __future__ import annotations

import logging

from storyAgent.context.manager import ContextManager
from storyAgent.graph.state import TurnState
from storyAgent.utils.logging_utils import log_compression, log_node_entry, log_node_exit

LOGGER = logging.getLogger("storyagent.summarization")


def build_summarization_node(*, context_manager: ContextManager, completion_service):
    """Build the summarization node.

    Runs at most once per turn, only when the estimate node flagged the
    transcript. A failed summary leaves the transcript as it was and the turn
    continues to the narrate node.
    """

    async def summarization_node(state: TurnState) -> dict:
        """Collapse the middle of the transcript into one summary turn."""
        log_node_entry(LOGGER, "summarization", state)

        transcript = list(state.get("transcript", []))
        LOGGER.info(f"Starting auto-compression of {len(transcript)} turns")

        result = await context_manager.compress_context(
            transcript,
            completion_service,
            memories=state.get("memories", []),
        )
        log_compression(LOGGER, result.stats)

        updates = {
            "transcript": result.messages,
            "compression_stats": result.stats,
            "needs_compression": False,
        }
        log_node_exit(LOGGER, "summarization", updates)
        return updates

    return summarization_node
