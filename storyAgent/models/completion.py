"""Completion service interface and the ChatOpenAI-backed implementation.

The context manager only needs one capability from the model layer: send an
ordered list of role-tagged messages with sampling parameters and get back
text plus token usage. ``CompletionService`` names that capability so tests
and alternative backends can supply their own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from langchain_core.messages import BaseMessage
from langchain_openai import ChatOpenAI

from storyAgent.context.token_tracker import TokenUsage, extract_token_usage
from storyAgent.utils.error_handler import ConfigurationError
from storyAgent.utils.message_utils import message_text

LOGGER = logging.getLogger(__name__)


@dataclass
class Completion:
    """Text returned by the completion service plus its usage record."""

    content: str
    usage: TokenUsage = field(default_factory=lambda: TokenUsage(0, 0, 0))
    finish_reason: Optional[str] = None


@runtime_checkable
class CompletionService(Protocol):
    async def complete(
        self,
        messages: List[BaseMessage],
        *,
        max_tokens: int,
        temperature: float,
        json_mode: bool = False,
    ) -> Completion:
        ...


class OpenAICompletionService:
    """Completion service backed by ``langchain_openai.ChatOpenAI``.

    A fresh ChatOpenAI instance is created per call so every request can
    carry its own max_tokens/temperature.
    """

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError(
                "OpenAI API key not configured (set OPENAI_API_KEY)",
                user_message="The story service is misconfigured. Please contact support.",
            )
        self.model = model
        self.api_key = api_key
        self.base_url = base_url

    def _build_model(self, max_tokens: int, temperature: float) -> ChatOpenAI:
        return ChatOpenAI(
            model=self.model,
            api_key=self.api_key,
            base_url=self.base_url,
            max_tokens=max_tokens,
            temperature=temperature,
        )

    async def complete(
        self,
        messages: List[BaseMessage],
        *,
        max_tokens: int,
        temperature: float,
        json_mode: bool = False,
    ) -> Completion:
        model: Any = self._build_model(max_tokens, temperature)
        if json_mode:
            model = model.bind(response_format={"type": "json_object"})

        LOGGER.debug(
            f"Calling {self.model}: {len(messages)} messages, max_tokens={max_tokens}, "
            f"temperature={temperature}, json_mode={json_mode}"
        )
        response = await model.ainvoke(messages)

        usage = extract_token_usage(response) or TokenUsage(0, 0, 0, self.model)
        metadata: Dict[str, Any] = getattr(response, "response_metadata", None) or {}
        return Completion(
            content=message_text(response),
            usage=usage,
            finish_reason=metadata.get("finish_reason"),
        )


def build_completion_service(settings, *, summarizer: bool = False) -> OpenAICompletionService:
    """Create the narrator (or summarizer) completion service from settings."""
    models = settings.models
    return OpenAICompletionService(
        model=models.summarizer_model if summarizer else models.narrator,
        api_key=models.api_key,
        base_url=models.base_url,
    )


__all__ = [
    "Completion",
    "CompletionService",
    "OpenAICompletionService",
    "build_completion_service",
]
