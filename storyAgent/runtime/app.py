"""Application assembly: settings → completion services → turn graph.

``StoryApplication.continue_conversation`` is the server-side entry point for
one player turn. It owns the per-session single-flight lock, builds the
narrator prompt from the narrative configuration, runs the turn graph, and
turns the narrator's raw output into a validated response.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Set

from langchain_core.messages import AIMessage, HumanMessage
from pydantic import BaseModel, Field

from storyAgent.config.settings import Settings, get_settings
from storyAgent.context.manager import ContextManager, ContextUsage
from storyAgent.context.pricing import calculate_costs
from storyAgent.graph.builder import build_turn_graph
from storyAgent.models.completion import CompletionService, build_completion_service
from storyAgent.narrative.models import NarrativeConfig
from storyAgent.narrative.prompts import PromptBuilder, fallback_narrative, narrative_temperature
from storyAgent.narrative.response_parser import ParsedResponse, parse_narrative_response
from storyAgent.utils.error_handler import SessionBusyError
from storyAgent.utils.logging_utils import log_player_input
from storyAgent.utils.message_utils import messages_from_dicts, messages_to_dicts

LOGGER = logging.getLogger(__name__)


class TurnRequest(BaseModel):
    """One player turn as sent by the client."""

    session_id: str
    config: NarrativeConfig
    history: List[Dict[str, Any]] = Field(default_factory=list)  # [{role, content}]
    player_input: str


class UsageReport(BaseModel):
    input_tokens: int
    output_tokens: int
    total_tokens: int
    model: str
    response_time_ms: int
    costs: Dict[str, float]


class TurnResult(BaseModel):
    """Validated narrator output plus the history the client should keep."""

    response: ParsedResponse
    history: List[Dict[str, str]]
    context_usage: ContextUsage
    usage: UsageReport

    @property
    def narrative(self) -> str:
        return self.response.narrative


class SessionLocks:
    """Per-session single-flight guard.

    A second turn for a session that already has one in flight is rejected
    with SessionBusyError instead of queued.
    """

    def __init__(self) -> None:
        self._active: Set[str] = set()

    def is_busy(self, session_id: str) -> bool:
        return session_id in self._active

    @asynccontextmanager
    async def hold(self, session_id: str) -> AsyncIterator[None]:
        if session_id in self._active:
            LOGGER.warning(f"Rejecting concurrent turn for session {session_id}")
            raise SessionBusyError(session_id)
        self._active.add(session_id)
        try:
            yield
        finally:
            self._active.discard(session_id)


class StoryApplication:
    """Wires the context manager, completion services and turn graph together."""

    def __init__(
        self,
        settings: Settings,
        narrator: CompletionService,
        summarizer: Optional[CompletionService] = None,
    ) -> None:
        self.settings = settings
        self.narrator = narrator
        self.summarizer = summarizer or narrator
        self.context_manager = ContextManager(settings)
        self.graph = build_turn_graph(
            settings=settings,
            narrator=self.narrator,
            summarizer=self.summarizer,
            context_manager=self.context_manager,
        )
        self.locks = SessionLocks()

    async def continue_conversation(self, request: TurnRequest) -> TurnResult:
        """Run one player turn.

        Raises:
            SessionBusyError: another turn for this session is in flight
            StoryAgentError: the narrative call failed after retries
        """
        async with self.locks.hold(request.session_id):
            return await self._run_turn(request)

    async def _run_turn(self, request: TurnRequest) -> TurnResult:
        config = request.config
        log_player_input(LOGGER, request.player_input)

        transcript = messages_from_dicts(request.history)
        system_instruction = PromptBuilder.load_narrator_prompt(config)

        final_state = await self.graph.ainvoke({
            "session_id": request.session_id,
            "transcript": transcript,
            "player_input": request.player_input,
            "system_instruction": system_instruction,
            "memories": config.memory_descriptions(),
            "temperature": narrative_temperature(config.creativity_level),
        })

        completion = final_state["completion"]
        processed = final_state["transcript"]
        parsed = parse_narrative_response(completion.content, fallback_narrative(config))

        # Transcript grows only after a confirmed exchange
        history = messages_to_dicts(processed) + messages_to_dicts([
            HumanMessage(content=request.player_input),
            AIMessage(content=parsed.narrative),
        ])

        usage = completion.usage
        model = self.settings.models.narrator
        costs = calculate_costs(usage.prompt_tokens, usage.completion_tokens, model, self.settings.pricing)

        return TurnResult(
            response=parsed,
            history=history,
            context_usage=final_state["context_usage"],
            usage=UsageReport(
                input_tokens=usage.prompt_tokens,
                output_tokens=usage.completion_tokens,
                total_tokens=usage.total_tokens,
                model=model,
                response_time_ms=final_state.get("response_time_ms", 0),
                costs=costs.to_dict(),
            ),
        )


def build_application(
    settings: Optional[Settings] = None,
    *,
    narrator: Optional[CompletionService] = None,
    summarizer: Optional[CompletionService] = None,
) -> StoryApplication:
    """Build the application, creating ChatOpenAI-backed services unless injected."""
    settings = settings or get_settings()
    if narrator is None:
        narrator = build_completion_service(settings)
        if summarizer is None and settings.models.summarizer_model != settings.models.narrator:
            summarizer = build_completion_service(settings, summarizer=True)
    return StoryApplication(settings, narrator=narrator, summarizer=summarizer)
