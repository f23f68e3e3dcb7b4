"""Static per-model pricing.

Costs are USD per million tokens, latency is seconds per 1K tokens.
Lookups never fail: unknown models get ``DEFAULT_PRICING``.
"""

from dataclasses import dataclass

DEFAULT_LATENCY_PER_THOUSAND = 2.0


@dataclass(frozen=True)
class ModelPricing:
    """Pricing for one model."""
    input_cost_per_million: float
    output_cost_per_million: float
    latency_per_thousand: float | None = None

    @property
    def effective_latency(self) -> float:
        """Seconds per 1K tokens, with the default applied."""
        return self.latency_per_thousand or DEFAULT_LATENCY_PER_THOUSAND

    @property
    def is_free(self) -> bool:
        return self.input_cost_per_million == 0 and self.output_cost_per_million == 0


DEFAULT_PRICING = ModelPricing(5.0, 15.0, DEFAULT_LATENCY_PER_THOUSAND)

# Keyed by model name only
PRICING_TABLE: dict[str, ModelPricing] = {
    # Anthropic
    "claude-opus-4": ModelPricing(15.0, 75.0, 2.5),
    "claude-sonnet-4": ModelPricing(3.0, 15.0, 1.5),
    # OpenAI
    "gpt-5": ModelPricing(20.0, 100.0, 3.0),
    "gpt-4-turbo": ModelPricing(10.0, 30.0, 2.0),
    # Local
    "qwen3-coder-30b": ModelPricing(0.0, 0.0, 0.067),
    "llama-3.1-70b": ModelPricing(0.0, 0.0, 0.1),
    "granite-8b-qiskit": ModelPricing(0.0, 0.0, 0.05),
}


def get_pricing(provider: str, model: str) -> ModelPricing:
    """Look up pricing by exact model name.

    ``provider`` is not used for dispatch yet; it stays in the signature
    so per-provider overrides can be added without touching callers.
    """
    return PRICING_TABLE.get(model, DEFAULT_PRICING)
