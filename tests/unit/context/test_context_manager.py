"""Unit tests for ContextManager, the prompt assembler and cost reporting."""

import pytest
from langchain_core.messages import HumanMessage, SystemMessage

from storyAgent.context import ContextManager, TokenUsage, assemble_messages, calculate_costs
from storyAgent.context.compressor import CompressionStats
from storyAgent.config.settings import PricingSettings


@pytest.fixture
def manager(settings):
    return ContextManager(settings)


class TestShouldCompress:

    def test_within_budget(self, manager, make_transcript):
        # anchor (50) + 40 turns averaging 300 → ~12000 tokens
        status = manager.check(make_transcript(40, tokens_per_turn=300, anchor_tokens=50), "abcd" * 50)

        assert status.projected_tokens == 12_100
        assert manager.should_compress(status) is False

    def test_over_threshold(self, manager, make_transcript):
        # anchor (50) + 40 turns x 2375 → 95050 tokens, ~74% of 128k
        status = manager.check(make_transcript(40, tokens_per_turn=2_375, anchor_tokens=50), "abcd" * 50)

        assert status.needs_compression is True
        assert manager.should_compress(status) is True

    def test_disabled(self, settings_factory, make_transcript):
        manager = ContextManager(settings_factory(enabled=False))
        status = manager.check(make_transcript(40, tokens_per_turn=2_375, anchor_tokens=50), "hello")

        assert status.needs_compression is True
        assert manager.should_compress(status) is False

    def test_manager_assemble(self, manager, make_transcript):
        transcript = make_transcript(40, tokens_per_turn=300, anchor_tokens=50)

        messages = manager.assemble("You are the narrator.", transcript, "I bow.")

        assert len(messages) == 43
        assert messages[1] is transcript[0]


class TestAssembler:

    def test_order(self, make_transcript):
        transcript = make_transcript(3, anchor_tokens=10)
        messages = assemble_messages("Narrate.", transcript, "I bow.")

        assert isinstance(messages[0], SystemMessage)
        assert messages[0].content == "Narrate."
        assert messages[1:-1] == transcript
        assert isinstance(messages[-1], HumanMessage)
        assert messages[-1].content == "I bow."

    def test_transcript_not_modified(self, make_transcript):
        transcript = make_transcript(3)
        assemble_messages("Narrate.", transcript, "I bow.")
        assert len(transcript) == 3


class TestReconcile:

    def test_usage_fields(self, manager, make_transcript):
        transcript = make_transcript(10, tokens_per_turn=100)  # 1000 tokens
        usage = TokenUsage(prompt_tokens=1_200, completion_tokens=300, total_tokens=1_500)

        report = manager.reconcile(transcript, usage)

        assert report.current_tokens == 2_500
        assert report.max_tokens == 128_000
        assert report.percentage == pytest.approx(2_500 / 128_000 * 100)
        assert report.compression_occurred is False
        assert report.compression_stats is None
        assert report.tokens_until_compression == 89_600 - 2_500
        assert report.last_message_tokens == 1_500
        assert report.messages_in_history == 10
        assert report.next_compression_at == 89_600

    def test_with_compression_stats(self, manager, make_transcript):
        stats = CompressionStats(original_count=41, compressed_count=32, messages_compressed=10)

        report = manager.reconcile(make_transcript(2), TokenUsage(0, 0, 0), stats)

        assert report.compression_occurred is True
        assert report.compression_stats["compressedCount"] == 32

    def test_failed_compression_not_reported_as_occurred(self, manager, make_transcript):
        stats = CompressionStats(original_count=41, compressed_count=41, error="boom")

        report = manager.reconcile(make_transcript(2), TokenUsage(0, 0, 0), stats)

        assert report.compression_occurred is False
        assert report.compression_stats["error"] == "boom"

    def test_camel_case_dump(self, manager, make_transcript):
        report = manager.reconcile(make_transcript(2), TokenUsage(10, 5, 15))
        data = report.model_dump(by_alias=True)

        assert {"currentTokens", "maxTokens", "percentage", "compressionOccurred", "tokensUntilCompression"} <= set(data)


class TestCosts:

    def test_known_model(self):
        costs = calculate_costs(1_000, 500, "gpt-4o-mini")

        assert costs.input_cost == pytest.approx(0.00015)
        assert costs.output_cost == pytest.approx(0.0003)
        assert costs.total_cost == pytest.approx(0.00045)

    def test_unknown_model_uses_default_rates(self):
        assert calculate_costs(1_000, 500, "mystery-model") == calculate_costs(1_000, 500, "gpt-4o-mini")

    def test_custom_rate_table(self):
        pricing = PricingSettings(default_model="house", rates={"house": {"input": 1.0, "output": 2.0}})
        costs = calculate_costs(1_000_000, 1_000_000, "house", pricing)

        assert costs.to_dict() == {"inputCost": 1.0, "outputCost": 2.0, "totalCost": 3.0}

    def test_zero_usage(self):
        assert calculate_costs(0, 0, "gpt-4o").total_cost == 0

    def test_default_model_must_have_rates(self):
        with pytest.raises(ValueError, match="no entry in rates"):
            PricingSettings(default_model="house", rates={"other": {"input": 1.0, "output": 2.0}})
