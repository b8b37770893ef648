"""
Token estimation and threshold monitoring

Responsibilities:
1. Estimate token counts for text and transcripts without calling the model
2. Extract actual token usage from completion responses
3. Project the next prompt's size and decide whether compression is needed
4. Report occupancy for caller-facing progress indicators
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional

from langchain_core.messages import AIMessage, BaseMessage

from storyAgent.utils.message_utils import message_text

logger = logging.getLogger(__name__)


@dataclass
class TokenUsage:
    """Token usage reported by one completion call"""
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    model_name: str = "unknown"


@dataclass
class ContextStatus:
    """Threshold monitor result for one pending turn"""
    current_tokens: int      # estimated transcript tokens
    pending_tokens: int      # estimated tokens of the new player input
    projected_tokens: int    # current + pending
    max_tokens: int
    usage_ratio: float       # projected / max

    needs_compression: bool

    compression_at: int             # ceil(max * threshold)
    tokens_until_compression: int   # max(0, compression_at - projected)


def estimate_tokens(text: Optional[str]) -> int:
    """
    Estimate the token count of a text body.

    Two estimates, the larger wins:
    - characters / 4 (English averages ~4 chars per token)
    - words / 0.75 (short or punctuation-heavy text breaks the char ratio)

    Empty or None text counts as 0.
    """
    if not text:
        return 0
    char_based = -(-len(text) // 4)
    # Runs of whitespace, so leading or trailing blanks add no words
    words = len(text.split())
    word_based = -(-words * 4 // 3)
    return max(char_based, word_based)


def estimate_message_tokens(message: BaseMessage) -> int:
    return estimate_tokens(message_text(message))


def estimate_transcript_tokens(messages: Iterable[BaseMessage]) -> int:
    """Sum of per-turn estimates."""
    return sum(estimate_message_tokens(m) for m in messages)


def compression_point(max_tokens: int, threshold: float) -> int:
    """Smallest projected token count that triggers compression."""
    # Rounded first so 128000 * 0.7 lands on 89600, not 89600.00000000001
    return math.ceil(round(max_tokens * threshold, 6))


def extract_token_usage(response: AIMessage) -> Optional[TokenUsage]:
    """
    Extract token usage from a chat model response

    Checks ``response_metadata["token_usage"]`` (OpenAI), then
    ``response_metadata["usage"]``, then langchain's ``usage_metadata``.

    Returns:
        TokenUsage, or None when the response carries no usage
    """
    metadata = getattr(response, "response_metadata", None) or {}
    usage = metadata.get("token_usage") or metadata.get("usage")
    model_name = metadata.get("model_name", "unknown")

    if usage:
        prompt_tokens = usage.get("prompt_tokens", 0) or 0
        completion_tokens = usage.get("completion_tokens", 0) or 0
        return TokenUsage(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=usage.get("total_tokens") or prompt_tokens + completion_tokens,
            model_name=model_name,
        )

    usage_metadata = getattr(response, "usage_metadata", None)
    if usage_metadata:
        input_tokens = usage_metadata.get("input_tokens", 0) or 0
        output_tokens = usage_metadata.get("output_tokens", 0) or 0
        return TokenUsage(
            prompt_tokens=input_tokens,
            completion_tokens=output_tokens,
            total_tokens=usage_metadata.get("total_tokens") or input_tokens + output_tokens,
            model_name=model_name,
        )

    logger.warning("No token usage found in response metadata")
    return None


class TokenTracker:
    """Token estimator and threshold monitor"""

    def __init__(self, settings):
        self.settings = settings
        self.context_settings = settings.context

    def check_status(
        self,
        messages: Iterable[BaseMessage],
        pending_text: Optional[str] = "",
        max_tokens: Optional[int] = None,
        threshold: Optional[float] = None,
    ) -> ContextStatus:
        """
        Project the size of the next prompt and decide on compression

        Compression is needed iff (transcript + pending) / max >= threshold.
        Pure function of its inputs.
        """
        max_tokens = max_tokens or self.context_settings.max_context_tokens
        threshold = threshold if threshold is not None else self.context_settings.compression_threshold

        current = estimate_transcript_tokens(messages)
        pending = estimate_tokens(pending_text)
        projected = current + pending
        trigger_at = compression_point(max_tokens, threshold)

        status = ContextStatus(
            current_tokens=current,
            pending_tokens=pending,
            projected_tokens=projected,
            max_tokens=max_tokens,
            usage_ratio=projected / max_tokens if max_tokens > 0 else 0.0,
            needs_compression=projected >= trigger_at,
            compression_at=trigger_at,
            tokens_until_compression=max(0, trigger_at - projected),
        )

        logger.debug(
            f"Token status: {projected:,}/{max_tokens:,} ({status.usage_ratio:.1%}), "
            f"compression at {trigger_at:,}, needs_compression={status.needs_compression}"
        )
        return status
