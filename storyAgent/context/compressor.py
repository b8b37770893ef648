"""
Context compressor

Responsibilities:
1. Partition the transcript (Anchor / Middle / Tail)
2. Pick out player decisions and key story moments from the middle
3. Ask the completion service for a summary of the middle
4. Replace the middle with one summary turn, or keep the transcript as-is on failure
"""

from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from storyAgent.utils.message_utils import message_text, role_of
from .token_tracker import estimate_tokens, estimate_transcript_tokens

if TYPE_CHECKING:
    from storyAgent.models.completion import CompletionService

logger = logging.getLogger(__name__)


COMPRESSED_CONTEXT_MARKER = "[STORY CONTEXT SUMMARY"
EMPTY_SUMMARY_FALLBACK = "Previous conversation events occurred."

DECISION_PATTERN = re.compile(
    r"\b(choose|decide|ask|tell|go|take|give|help|fight|run|stay|leave)\b",
    re.IGNORECASE,
)
LONG_PLAYER_INPUT_CHARS = 100
REPLY_PREVIEW_CHARS = 200


@dataclass
class CompressionStats:
    """Informational numbers for one compression pass"""
    original_count: int
    compressed_count: int
    messages_compressed: int = 0
    tokens_before: int = 0
    tokens_after: int = 0
    tokens_removed: int = 0
    compression_ratio: float = 0.0  # % of middle tokens removed
    key_moments_preserved: int = 0
    player_actions_preserved: int = 0
    error: Optional[str] = None

    @property
    def compressed(self) -> bool:
        return self.error is None and self.messages_compressed > 0

    def to_dict(self) -> Dict[str, Any]:
        """camelCase view for caller-facing progress payloads."""
        data = asdict(self)
        return {
            "originalCount": data["original_count"],
            "compressedCount": data["compressed_count"],
            "messagesCompressed": data["messages_compressed"],
            "tokensBefore": data["tokens_before"],
            "tokensAfter": data["tokens_after"],
            "tokensRemoved": data["tokens_removed"],
            "compressionRatio": data["compression_ratio"],
            "keyMomentsPreserved": data["key_moments_preserved"],
            "playerActionsPreserved": data["player_actions_preserved"],
            "error": data["error"],
        }


@dataclass
class CompressionResult:
    """Compression outcome"""
    messages: List[BaseMessage]
    stats: CompressionStats


@dataclass
class KeyMoments:
    """Material the summary must keep"""
    player_actions: List[str] = field(default_factory=list)
    key_moments: List[str] = field(default_factory=list)


# ===== Prompt templates =====

SUMMARIZER_ROLE = (
    "You are an expert at summarizing interactive story conversations while preserving "
    "all key narrative elements, player choices, and story progression."
)

SUMMARY_DIRECTIVES = """Create a detailed summary that:
1. Preserves all major player decisions and their consequences
2. Maintains key character interactions and relationships
3. Keeps important plot developments and world state changes
4. Maintains the narrative flow and emotional beats
5. Preserves specific dialogue that was meaningful

Summary (be comprehensive but concise):"""


def extract_key_moments(messages: Sequence[BaseMessage]) -> KeyMoments:
    """
    Heuristic scan of player turns for decisions worth preserving

    A player turn counts when it uses decision vocabulary or runs longer than
    100 characters. The narrator reply that follows it (if any) is kept as a
    200-character preview. Best effort only; it biases the summary prompt.
    """
    found = KeyMoments()

    for i, msg in enumerate(messages):
        if not isinstance(msg, HumanMessage):
            continue

        text = message_text(msg)
        if not (DECISION_PATTERN.search(text) or len(text) > LONG_PLAYER_INPUT_CHARS):
            continue

        found.player_actions.append(f"Player: {text}")

        reply = messages[i + 1] if i + 1 < len(messages) else None
        if reply is not None and reply.type == "ai":
            reply_text = message_text(reply)
            preview = reply_text[:REPLY_PREVIEW_CHARS]
            if len(reply_text) > REPLY_PREVIEW_CHARS:
                preview += "..."
            found.key_moments.append(f"{text} → {preview}")

    return found


class ContextCompressor:
    """Context compressor"""

    def __init__(self, settings):
        self.settings = settings
        self.context_settings = settings.context

    async def compress_messages(
        self,
        messages: List[BaseMessage],
        completion_service: "CompletionService",
        keep_recent_count: Optional[int] = None,
        memories: Sequence[str] = (),
    ) -> CompressionResult:
        """
        Collapse the middle of the transcript into one summary turn

        Args:
            messages: Transcript to compress
            completion_service: Service used for the summarization call
            keep_recent_count: Tail size kept verbatim (default from settings)
            memories: Short descriptions of notable story facts to preserve

        Returns:
            CompressionResult; on failure the original list is returned unchanged
            and stats.error is set. Never raises.
        """
        if keep_recent_count is None:
            keep_recent_count = self.context_settings.keep_recent_count

        before_count = len(messages)

        # 1. Short-circuit: nothing older than the tail
        if before_count <= keep_recent_count:
            logger.debug(f"Transcript has {before_count} turns (<= {keep_recent_count}), nothing to compress")
            return self._unchanged(messages)

        # 2. Partition
        anchor, middle, tail = self._partition_messages(messages, keep_recent_count)
        if not middle:
            logger.debug("Middle section is empty, nothing to compress")
            return self._unchanged(messages)

        tokens_before = estimate_transcript_tokens(messages)
        middle_tokens = estimate_transcript_tokens(middle)

        logger.info(
            f"Compressing {len(middle)} middle turns (~{middle_tokens:,} tokens), "
            f"keeping {len(anchor)} anchor + {len(tail)} recent"
        )

        # 3. Key moments + summarization call
        moments = extract_key_moments(middle)
        try:
            summary = await self._summarize_messages(middle, moments, memories, completion_service)
        except Exception as e:
            logger.error(f"Compression failed, keeping original messages: {e}", exc_info=True)
            return self._unchanged(messages, error=str(e) or type(e).__name__)

        # 4. Rebuild
        summary_turn = SystemMessage(
            content=f"{COMPRESSED_CONTEXT_MARKER} - {len(middle)} messages compressed]\n{summary}",
            additional_kwargs={"compressed": True},
        )
        compressed = anchor + [summary_turn] + tail

        tokens_after = estimate_transcript_tokens(compressed)
        summary_tokens = estimate_tokens(message_text(summary_turn))
        ratio = (middle_tokens - summary_tokens) / middle_tokens * 100 if middle_tokens > 0 else 0.0

        stats = CompressionStats(
            original_count=before_count,
            compressed_count=len(compressed),
            messages_compressed=len(middle),
            tokens_before=tokens_before,
            tokens_after=tokens_after,
            tokens_removed=tokens_before - tokens_after,
            compression_ratio=round(ratio, 1),
            key_moments_preserved=len(moments.key_moments),
            player_actions_preserved=len(moments.player_actions),
        )

        logger.info(
            f"Compression complete: {before_count} → {len(compressed)} messages, "
            f"~{tokens_before:,} → ~{tokens_after:,} tokens ({stats.compression_ratio}% of middle removed)"
        )

        return CompressionResult(messages=compressed, stats=stats)

    def _partition_messages(
        self,
        messages: List[BaseMessage],
        keep_recent_count: int,
    ) -> tuple[List[BaseMessage], List[BaseMessage], List[BaseMessage]]:
        """
        Split into (anchor, middle, tail)

        - Anchor: the first turn when it is a system turn, otherwise empty
        - Tail: the last keep_recent_count turns
        - Middle: everything in between
        """
        has_anchor = bool(messages) and role_of(messages[0]) == "system"
        start = 1 if has_anchor else 0
        split = len(messages) - keep_recent_count

        anchor = messages[:1] if has_anchor else []
        middle = messages[start:split] if split > start else []
        tail = messages[split:]

        logger.debug(f"Partitioned messages: anchor={len(anchor)}, middle={len(middle)}, tail={len(tail)}")
        return anchor, middle, tail

    def build_summary_request(
        self,
        middle: Sequence[BaseMessage],
        moments: KeyMoments,
        memories: Sequence[str] = (),
    ) -> List[BaseMessage]:
        """Summarization messages: preservation instructions + conversation text"""
        cs = self.context_settings

        sections = [SUMMARIZER_ROLE, "", "Summarize this conversation history while preserving ALL of these critical elements:"]

        key_moments = moments.key_moments[-cs.key_moment_limit:] if cs.key_moment_limit else []
        if key_moments:
            sections += ["", "PRESERVE THESE KEY MOMENTS:", *key_moments]

        player_actions = moments.player_actions[-cs.player_action_limit:] if cs.player_action_limit else []
        if player_actions:
            sections += ["", "PRESERVE THESE PLAYER ACTIONS:", *player_actions]

        recent_memories = [m for m in memories if m][-cs.memory_limit:] if cs.memory_limit else []
        if recent_memories:
            sections += ["", f"Key memories from the story: {'; '.join(recent_memories)}"]

        sections += ["", SUMMARY_DIRECTIVES]

        return [
            SystemMessage(content="\n".join(sections)),
            HumanMessage(content=self._format_messages_for_summary(middle)),
        ]

    async def _summarize_messages(
        self,
        middle: Sequence[BaseMessage],
        moments: KeyMoments,
        memories: Sequence[str],
        completion_service: "CompletionService",
    ) -> str:
        request = self.build_summary_request(middle, moments, memories)
        completion = await completion_service.complete(
            request,
            max_tokens=self.context_settings.summary_max_tokens,
            temperature=self.context_settings.summary_temperature,
        )
        summary = (completion.content or "").strip()
        return summary or EMPTY_SUMMARY_FALLBACK

    def _format_messages_for_summary(self, messages: Sequence[BaseMessage]) -> str:
        return "\n\n".join(f"{role_of(m)}: {message_text(m)}" for m in messages)

    def _unchanged(self, messages: List[BaseMessage], error: Optional[str] = None) -> CompressionResult:
        tokens = estimate_transcript_tokens(messages)
        return CompressionResult(
            messages=messages,
            stats=CompressionStats(
                original_count=len(messages),
                compressed_count=len(messages),
                tokens_before=tokens,
                tokens_after=tokens,
                error=error,
            ),
        )
