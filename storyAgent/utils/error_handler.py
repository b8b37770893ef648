"""Unified error types and user-facing error messages for storyAgent."""

from __future__ import annotations

import logging

LOGGER = logging.getLogger(__name__)

TRY_AGAIN_MESSAGE = "The storyteller could not continue just now. Please try again."


class StoryAgentError(Exception):
    """Base exception for storyAgent errors."""

    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message


class ConfigurationError(StoryAgentError):
    """Missing or invalid configuration (e.g. no API key)."""
    pass


class ModelInvocationError(StoryAgentError):
    """Error during a completion-service call."""
    pass


class TimeoutError(StoryAgentError):
    """Operation timeout error."""
    pass


class RateLimitError(StoryAgentError):
    """Rate limit exceeded error."""
    pass


class SessionBusyError(StoryAgentError):
    """A turn is already in flight for this session."""

    def __init__(self, session_id: str):
        super().__init__(
            f"Session {session_id} already has a turn in progress",
            user_message="Your previous action is still being narrated. Please wait a moment.",
        )
        self.session_id = session_id


def handle_model_error(error: Exception) -> str:
    """Convert completion-service errors to user-friendly messages.

    Args:
        error: Exception raised during model invocation

    Returns:
        User-friendly error message
    """
    error_str = str(error).lower()

    if "rate_limit" in error_str or "429" in error_str:
        return "The storyteller is busy right now. Please try again in a minute."

    if "timeout" in error_str or "timed out" in error_str:
        return "The storyteller took too long to respond. Please try again."

    if "context_length" in error_str or "maximum context" in error_str:
        return "This story has grown too long to continue. Please start a new chapter."

    if "invalid_api_key" in error_str or "authentication" in error_str:
        return "The story service is misconfigured. Please contact support."

    if "quota" in error_str or "insufficient" in error_str:
        return "The story service is out of capacity. Please contact support."

    return TRY_AGAIN_MESSAGE


def classify_model_error(error: Exception) -> StoryAgentError:
    """Wrap a raw completion-service exception in the storyAgent taxonomy."""
    if isinstance(error, StoryAgentError):
        return error

    user_message = handle_model_error(error)
    error_str = str(error).lower()
    if "rate_limit" in error_str or "429" in error_str:
        wrapped: StoryAgentError = RateLimitError(str(error), user_message)
    elif "timeout" in error_str or "timed out" in error_str:
        wrapped = TimeoutError(str(error), user_message)
    else:
        wrapped = ModelInvocationError(f"{type(error).__name__}: {error}", user_message)
    LOGGER.debug(f"Classified {type(error).__name__} as {type(wrapped).__name__}")
    return wrapped


__all__ = [
    "TRY_AGAIN_MESSAGE",
    "StoryAgentError",
    "ConfigurationError",
    "ModelInvocationError",
    "TimeoutError",
    "RateLimitError",
    "SessionBusyError",
    "handle_model_error",
    "classify_model_error",
]
