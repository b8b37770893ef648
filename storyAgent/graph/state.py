"""Shared state definition for the per-turn LangGraph flow."""

from __future__ import annotations

from typing import Any, List, Optional, TypedDict

from langchain_core.messages import BaseMessage

from storyAgent.context.compressor import CompressionStats
from storyAgent.context.manager import ContextUsage
from storyAgent.context.token_tracker import ContextStatus


class TurnState(TypedDict, total=False):
    """State for one player turn: ESTIMATE → COMPRESS_IF_NEEDED → ASSEMBLE → call → RECONCILE.

    The state lives only for the duration of one graph invocation. The
    caller's own transcript is never touched; ``transcript`` here is replaced
    wholesale by the summarization node and handed back only after the
    narrative call succeeded.
    """

    # ========== Inputs ==========
    session_id: Optional[str]
    transcript: List[BaseMessage]  # History before this turn (compressed in place of the state key)
    player_input: str
    system_instruction: str
    memories: List[str]  # Memory descriptions folded into the compression prompt
    temperature: float

    # ========== Estimate ==========
    status: ContextStatus
    needs_compression: bool

    # ========== Compression ==========
    compression_stats: Optional[CompressionStats]

    # ========== Narrative call ==========
    prompt_messages: List[BaseMessage]
    completion: Any  # storyAgent.models.Completion
    response_time_ms: int

    # ========== Reconcile ==========
    context_usage: ContextUsage
