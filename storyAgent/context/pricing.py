"""Cost reporting for completion-service usage."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from storyAgent.config.settings import ModelRate, PricingSettings

logger = logging.getLogger(__name__)

PER_MILLION = 1_000_000


@dataclass
class CostBreakdown:
    """USD cost of one call, each figure rounded to 6 decimals"""
    input_cost: float
    output_cost: float
    total_cost: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "inputCost": self.input_cost,
            "outputCost": self.output_cost,
            "totalCost": self.total_cost,
        }


def _rate_for(model: str, pricing: PricingSettings) -> ModelRate:
    if model in pricing.rates:
        return pricing.rates[model]
    logger.warning(f"No pricing for model '{model}', using '{pricing.default_model}' rates")
    return pricing.rates[pricing.default_model]


def calculate_costs(
    input_tokens: int,
    output_tokens: int,
    model: str,
    pricing: Optional[PricingSettings] = None,
) -> CostBreakdown:
    """
    inputCost = input_tokens * input rate, outputCost = output_tokens * output rate,
    totalCost = inputCost + outputCost; rates are USD per 1M tokens.
    """
    pricing = pricing or PricingSettings()
    rate = _rate_for(model, pricing)

    input_cost = input_tokens * rate.input / PER_MILLION
    output_cost = output_tokens * rate.output / PER_MILLION

    return CostBreakdown(
        input_cost=round(input_cost, 6),
        output_cost=round(output_cost, 6),
        total_cost=round(input_cost + output_cost, 6),
    )
