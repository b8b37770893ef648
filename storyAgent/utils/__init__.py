"""Utilities for storyAgent."""

from .logging_utils import (
    get_logger,
    log_compression,
    log_context_analysis,
    log_error,
    log_narrator_response,
    log_player_input,
    setup_logging,
)
from .message_utils import (
    message_from_dict,
    message_text,
    message_to_dict,
    messages_from_dicts,
    messages_to_dicts,
    role_of,
)
from .error_handler import (
    TRY_AGAIN_MESSAGE,
    classify_model_error,
    handle_model_error,
    ConfigurationError,
    ModelInvocationError,
    RateLimitError,
    SessionBusyError,
    StoryAgentError,
    TimeoutError,
)
from .retry import retry_with_backoff

__all__ = [
    "get_logger",
    "setup_logging",
    "log_compression",
    "log_context_analysis",
    "log_error",
    "log_narrator_response",
    "log_player_input",
    "message_from_dict",
    "message_text",
    "message_to_dict",
    "messages_from_dicts",
    "messages_to_dicts",
    "role_of",
    "TRY_AGAIN_MESSAGE",
    "classify_model_error",
    "handle_model_error",
    "ConfigurationError",
    "ModelInvocationError",
    "RateLimitError",
    "SessionBusyError",
    "StoryAgentError",
    "TimeoutError",
    "retry_with_backoff",
]
