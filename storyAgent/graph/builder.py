"""Factory for assembling the per-turn LangGraph state machine."""

from __future__ import annotations

import logging

from langgraph.graph import END, START, StateGraph

from storyAgent.context.manager import ContextManager
from storyAgent.graph.nodes import (
    build_estimate_node,
    build_narrate_node,
    build_reconcile_node,
    build_summarization_node,
)
from storyAgent.graph.routing import build_estimate_route
from storyAgent.graph.state import TurnState

LOGGER = logging.getLogger(__name__)


def build_turn_graph(
    *,
    settings,
    narrator,
    summarizer=None,
    context_manager: ContextManager = None,
):
    """Compose the turn graph.

        START → estimate ─┬─────────────────→ narrate → reconcile → END
                          └→ summarization ──┘

    - estimate: token projection against the budget (pure)
    - summarization: one compression pass, only when the threshold is crossed;
      failures fall through with the transcript unchanged
    - narrate: prompt assembly + narrator call (retried, errors propagate)
    - reconcile: progress report from the processed transcript + actual usage

    Args:
        settings: Application settings
        narrator: Completion service for the narrative call
        summarizer: Completion service for compression (defaults to narrator)
        context_manager: Shared ContextManager (built from settings if omitted)
    """
    context_manager = context_manager or ContextManager(settings)
    summarizer = summarizer or narrator

    # ========== Build graph ==========
    graph = StateGraph(TurnState)

    graph.add_node("estimate", build_estimate_node(context_manager=context_manager))
    graph.add_node(
        "summarization",
        build_summarization_node(context_manager=context_manager, completion_service=summarizer),
    )
    graph.add_node(
        "narrate",
        build_narrate_node(settings=settings, context_manager=context_manager, completion_service=narrator),
    )
    graph.add_node("reconcile", build_reconcile_node(context_manager=context_manager))

    graph.add_edge(START, "estimate")
    graph.add_conditional_edges(
        "estimate",
        build_estimate_route(context_manager=context_manager),
        {
            "summarization": "summarization",
            "narrate": "narrate",
        },
    )
    # Compression happens at most once per turn
    graph.add_edge("summarization", "narrate")
    graph.add_edge("narrate", "reconcile")
    graph.add_edge("reconcile", END)

    LOGGER.debug("Turn graph compiled")
    return graph.compile()
