"""
Context manager - unified entry point

Responsibilities:
1. Estimate the next prompt against the token budget
2. Compress the transcript when the threshold is crossed
3. Assemble the final prompt
4. Reconcile the estimate with actual usage and report progress
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from langchain_core.messages import BaseMessage
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .assembler import assemble_messages
from .compressor import CompressionResult, CompressionStats, ContextCompressor
from .token_tracker import ContextStatus, TokenTracker, TokenUsage, compression_point, estimate_transcript_tokens

if TYPE_CHECKING:
    from storyAgent.models.completion import CompletionService

logger = logging.getLogger(__name__)


class ContextUsage(BaseModel):
    """Caller-facing progress fields (serialized as camelCase)"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    current_tokens: int
    max_tokens: int
    percentage: float
    compression_occurred: bool
    compression_stats: Optional[Dict[str, Any]] = None
    tokens_until_compression: int
    last_message_tokens: int = 0
    messages_in_history: int = 0
    next_compression_at: int = 0


class ContextManager:
    """
    Context manager - unified entry point

    Holds no per-session state; every call works on the transcript passed in.
    """

    def __init__(self, settings):
        self.settings = settings
        self.context_settings = settings.context
        self.tracker = TokenTracker(settings)
        self.compressor = ContextCompressor(settings)

    def check(self, transcript: Sequence[BaseMessage], pending_text: Optional[str]) -> ContextStatus:
        """Threshold monitor for the pending player turn."""
        return self.tracker.check_status(transcript, pending_text)

    async def compress_context(
        self,
        transcript: List[BaseMessage],
        completion_service: "CompletionService",
        memories: Sequence[str] = (),
    ) -> CompressionResult:
        """Compress once; failures come back as stats.error with the transcript unchanged."""
        return await self.compressor.compress_messages(
            messages=transcript,
            completion_service=completion_service,
            keep_recent_count=self.context_settings.keep_recent_count,
            memories=memories,
        )

    def should_compress(self, status: ContextStatus) -> bool:
        """Compression runs only when the threshold is crossed and management is enabled."""
        if not status.needs_compression:
            return False
        if not self.context_settings.enabled:
            logger.warning("Context management disabled, sending oversized transcript as-is")
            return False
        return True

    def assemble(
        self,
        system_instruction: str,
        transcript: Sequence[BaseMessage],
        user_input: str,
    ) -> List[BaseMessage]:
        """Final prompt for the narrative call from the processed transcript."""
        prompt_messages = assemble_messages(system_instruction, transcript, user_input)
        logger.debug(f"Assembled prompt: {len(prompt_messages)} messages ({len(transcript)} from transcript)")
        return prompt_messages

    def reconcile(
        self,
        transcript: Sequence[BaseMessage],
        usage: TokenUsage,
        compression_stats: Optional[CompressionStats] = None,
    ) -> ContextUsage:
        """
        Combine the processed transcript estimate with the call's actual usage

        current_tokens = estimate(transcript) + usage.total_tokens
        """
        max_tokens = self.context_settings.max_context_tokens
        trigger_at = compression_point(max_tokens, self.context_settings.compression_threshold)
        current = estimate_transcript_tokens(transcript) + usage.total_tokens
        occurred = compression_stats is not None and compression_stats.compressed

        report = ContextUsage(
            current_tokens=current,
            max_tokens=max_tokens,
            percentage=current / max_tokens * 100,
            compression_occurred=occurred,
            compression_stats=compression_stats.to_dict() if compression_stats is not None else None,
            tokens_until_compression=max(0, trigger_at - current),
            last_message_tokens=usage.total_tokens,
            messages_in_history=len(transcript),
            next_compression_at=trigger_at,
        )

        logger.info(
            f"Token usage - Prompt: {usage.prompt_tokens:,}, Completion: {usage.completion_tokens:,} "
            f"(context: {current:,} / {max_tokens:,}, {report.percentage:.1f}%)"
        )
        return report
