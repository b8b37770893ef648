"""LangGraph turn flow."""

from .builder import build_turn_graph
from .state import TurnState

__all__ = ["build_turn_graph", "TurnState"]
