"""Narrate node: assembles the prompt and calls the narrator model."""

from __future__ import annotations

import logging
import time

from storyAgent.context.manager import ContextManager
from storyAgent.graph.state import TurnState
from storyAgent.utils.error_handler import TRY_AGAIN_MESSAGE, ModelInvocationError, classify_model_error
from storyAgent.utils.logging_utils import log_narrator_response, log_node_entry, log_node_exit, log_prompt
from storyAgent.utils.retry import retry_with_backoff

LOGGER = logging.getLogger("storyagent.narrate")


def build_narrate_node(*, settings, context_manager: ContextManager, completion_service):
    """Build the narrate node.

    Failures of the narrative call are retried with exponential backoff and,
    once retries run out, raised out of the graph as a StoryAgentError. The
    transcript in state is left exactly as the previous nodes produced it.
    """

    async def narrate_node(state: TurnState) -> dict:
        log_node_entry(LOGGER, "narrate", state)

        system_instruction = state.get("system_instruction", "")
        prompt_messages = context_manager.assemble(
            system_instruction,
            state.get("transcript", []),
            state.get("player_input", ""),
        )
        log_prompt(LOGGER, "narrate", system_instruction, settings.observability.log_prompt_max_length)

        async def _call():
            completion = await completion_service.complete(
                prompt_messages,
                max_tokens=settings.models.max_output_tokens,
                temperature=state.get("temperature", 0.7),
                json_mode=True,
            )
            if not completion.content:
                raise ModelInvocationError("No response from narrator model", user_message=TRY_AGAIN_MESSAGE)
            return completion

        started = time.monotonic()
        try:
            completion = await retry_with_backoff(
                _call,
                max_retries=settings.runtime.max_retries,
                base_delay=settings.runtime.retry_base_delay,
                max_delay=settings.runtime.retry_max_delay,
            )
        except Exception as e:
            LOGGER.error(f"Narrative call failed: {e}")
            raise classify_model_error(e) from e

        response_time_ms = int((time.monotonic() - started) * 1000)
        log_narrator_response(LOGGER, completion.content)

        updates = {
            "prompt_messages": prompt_messages,
            "completion": completion,
            "response_time_ms": response_time_ms,
        }
        log_node_exit(LOGGER, "narrate", {"prompt_messages": prompt_messages, "response_time_ms": response_time_ms})
        return updates

    return narrate_node
