"""Model access layer."""

from .completion import (
    Completion,
    CompletionService,
    OpenAICompletionService,
    build_completion_service,
)

__all__ = [
    "Completion",
    "CompletionService",
    "OpenAICompletionService",
    "build_completion_service",
]
