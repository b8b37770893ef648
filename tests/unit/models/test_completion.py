"""Unit tests for the ChatOpenAI-backed completion service and settings wiring."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from langchain_core.messages import AIMessage, HumanMessage

from storyAgent.config.settings import ContextManagementSettings, ModelSettings, Settings
from storyAgent.models.completion import (
    CompletionService,
    OpenAICompletionService,
    build_completion_service,
)
from storyAgent.utils.error_handler import ConfigurationError


def _chat_model(response):
    model = MagicMock()
    model.ainvoke = AsyncMock(return_value=response)
    model.bind.return_value = model
    return model


class TestOpenAICompletionService:

    def test_requires_api_key(self):
        with pytest.raises(ConfigurationError):
            OpenAICompletionService(model="gpt-4o-mini", api_key=None)

    def test_satisfies_protocol(self):
        assert isinstance(OpenAICompletionService(model="gpt-4o-mini", api_key="k"), CompletionService)

    @pytest.mark.asyncio
    async def test_complete_returns_text_and_usage(self):
        service = OpenAICompletionService(model="gpt-4o-mini", api_key="k")
        response = AIMessage(
            content="Once upon a time",
            response_metadata={
                "token_usage": {"prompt_tokens": 100, "completion_tokens": 20, "total_tokens": 120},
                "finish_reason": "stop",
            },
        )
        model = _chat_model(response)

        with patch.object(service, "_build_model", return_value=model) as build:
            completion = await service.complete([HumanMessage(content="hi")], max_tokens=200, temperature=0.3)

        build.assert_called_once_with(200, 0.3)
        model.bind.assert_not_called()
        assert completion.content == "Once upon a time"
        assert completion.usage.total_tokens == 120
        assert completion.finish_reason == "stop"

    @pytest.mark.asyncio
    async def test_json_mode_binds_response_format(self):
        service = OpenAICompletionService(model="gpt-4o-mini", api_key="k")
        model = _chat_model(AIMessage(content="{}"))

        with patch.object(service, "_build_model", return_value=model):
            completion = await service.complete([HumanMessage(content="hi")], max_tokens=200, temperature=0.3, json_mode=True)

        model.bind.assert_called_once_with(response_format={"type": "json_object"})
        assert completion.usage.total_tokens == 0

    def test_builds_chat_model_with_call_parameters(self):
        service = OpenAICompletionService(model="gpt-4o-mini", api_key="k")
        model = service._build_model(max_tokens=321, temperature=0.9)

        assert model.model_name == "gpt-4o-mini"
        assert model.max_tokens == 321
        assert model.temperature == 0.9


class TestSettingsWiring:

    def test_summarizer_falls_back_to_narrator(self):
        models = ModelSettings(narrator="gpt-4o", api_key="k")
        assert models.summarizer_model == "gpt-4o"

    def test_build_summarizer_service(self):
        settings = Settings(models=ModelSettings(narrator="gpt-4o", summarizer="gpt-4o-mini", api_key="k"))

        assert build_completion_service(settings).model == "gpt-4o"
        assert build_completion_service(settings, summarizer=True).model == "gpt-4o-mini"

    def test_context_env_prefix(self, monkeypatch):
        monkeypatch.setenv("CONTEXT_COMPRESSION_THRESHOLD", "0.8")
        monkeypatch.setenv("CONTEXT_KEEP_RECENT_COUNT", "12")

        context = ContextManagementSettings()

        assert context.compression_threshold == 0.8
        assert context.keep_recent_count == 12

    def test_threshold_bounds_validated(self):
        with pytest.raises(ValueError):
            ContextManagementSettings(compression_threshold=1.5)
