"""Node factories for the turn graph."""

from .estimate import build_estimate_node
from .summarization import build_summarization_node
from .narrate import build_narrate_node
from .reconcile import build_reconcile_node

__all__ = [
    "build_estimate_node",
    "build_summarization_node",
    "build_narrate_node",
    "build_reconcile_node",
]
