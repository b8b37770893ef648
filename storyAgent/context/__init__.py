"""
Conversation context management

Keeps a multi-turn story within the model's context window:
- Deterministic token estimation (max of char- and word-based estimates)
- Threshold monitoring (compress at 70% occupancy by default)
- Middle-slice compression that keeps the anchor and the recent tail verbatim
- Prompt assembly and cost/progress reporting
"""

from .token_tracker import (
    ContextStatus,
    TokenTracker,
    TokenUsage,
    compression_point,
    estimate_message_tokens,
    estimate_tokens,
    estimate_transcript_tokens,
    extract_token_usage,
)
from .compressor import (
    COMPRESSED_CONTEXT_MARKER,
    CompressionResult,
    CompressionStats,
    ContextCompressor,
    KeyMoments,
    extract_key_moments,
)
from .assembler import assemble_messages
from .pricing import CostBreakdown, calculate_costs
from .manager import ContextManager, ContextUsage

__all__ = [
    "ContextStatus",
    "TokenTracker",
    "TokenUsage",
    "compression_point",
    "estimate_message_tokens",
    "estimate_tokens",
    "estimate_transcript_tokens",
    "extract_token_usage",
    "COMPRESSED_CONTEXT_MARKER",
    "CompressionResult",
    "CompressionStats",
    "ContextCompressor",
    "KeyMoments",
    "extract_key_moments",
    "assemble_messages",
    "CostBreakdown",
    "calculate_costs",
    "ContextManager",
    "ContextUsage",
]
