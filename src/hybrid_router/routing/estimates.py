"""Cost and latency estimation shared by all routing strategies.

Plain functions rather than base-class methods, so each strategy calls
them directly and they can be tested on their own.
"""

from .models import ModelTarget, RouteDecision, TargetType
from .pricing import ModelPricing, get_pricing

# Fixed input/output split for API cost estimates. The request carries no
# real breakdown, so this stays a flat approximation.
INPUT_SHARE = 0.67
OUTPUT_SHARE = 0.33

# Local throughput assumption, tokens per second
LOCAL_TOKENS_PER_SECOND = 15

LOCAL_CONFIDENCE = 0.9
API_CONFIDENCE = 0.85

FREE_PRICING = ModelPricing(0.0, 0.0, 0.067)


def estimate_cost(target: ModelTarget, tokens: int, pricing: ModelPricing) -> float:
    """Estimated USD cost of sending ``tokens`` to ``target``."""
    if target.type == TargetType.LOCAL:
        return 0.0

    input_tokens = tokens * INPUT_SHARE
    output_tokens = tokens * OUTPUT_SHARE

    input_cost = (input_tokens / 1_000_000) * pricing.input_cost_per_million
    output_cost = (output_tokens / 1_000_000) * pricing.output_cost_per_million
    return input_cost + output_cost


def estimate_latency(target: ModelTarget, tokens: int, pricing: ModelPricing) -> float:
    """Estimated latency in seconds."""
    if target.type == TargetType.LOCAL:
        return (tokens / LOCAL_TOKENS_PER_SECOND) / 1000

    return (tokens / 1000) * pricing.effective_latency


def local_decision(
    provider: str,
    model: str,
    rationale: str,
    tokens: int = 1000,
    pricing: ModelPricing | None = None,
) -> RouteDecision:
    """Build a decision for a local target. Local decisions are always free."""
    target = ModelTarget(TargetType.LOCAL, provider, model)
    return RouteDecision(
        target=target,
        estimated_cost=0.0,
        estimated_latency=estimate_latency(target, tokens, pricing or FREE_PRICING),
        rationale=rationale,
        confidence=LOCAL_CONFIDENCE,
    )


def api_decision(
    provider: str,
    model: str,
    rationale: str,
    tokens: int,
    pricing: ModelPricing | None = None,
) -> RouteDecision:
    """Build a decision for a paid API target."""
    target = ModelTarget(TargetType.API, provider, model)
    pricing = pricing or get_pricing(provider, model)
    return RouteDecision(
        target=target,
        estimated_cost=estimate_cost(target, tokens, pricing),
        estimated_latency=estimate_latency(target, tokens, pricing),
        rationale=rationale,
        confidence=API_CONFIDENCE,
    )


def api_cost(provider: str, model: str, tokens: int) -> float:
    """Estimated cost of an API call, priced from the static table."""
    target = ModelTarget(TargetType.API, provider, model)
    return estimate_cost(target, tokens, get_pricing(provider, model))
