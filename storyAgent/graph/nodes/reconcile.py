"""Reconcile node: folds actual token usage into the progress report."""

from __future__ import annotations

import logging

from storyAgent.context.manager import ContextManager
from storyAgent.graph.state import TurnState
from storyAgent.utils.logging_utils import log_node_entry, log_node_exit

LOGGER = logging.getLogger("storyagent.reconcile")


def build_reconcile_node(*, context_manager: ContextManager):

    def reconcile_node(state: TurnState) -> dict:
        log_node_entry(LOGGER, "reconcile", state)

        context_usage = context_manager.reconcile(
            state.get("transcript", []),
            state["completion"].usage,
            state.get("compression_stats"),
        )

        updates = {"context_usage": context_usage}
        log_node_exit(LOGGER, "reconcile", updates)
        return updates

    return reconcile_node
