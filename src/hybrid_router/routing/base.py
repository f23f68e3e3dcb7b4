"""Routing strategy contract and the model line-up the strategies share."""

from typing import Protocol, runtime_checkable

from hybrid_router.errors import ConfigError
from hybrid_router.providers.registry import ProviderRegistry

from .estimates import api_decision, local_decision
from .models import InferenceRequest, RouteDecision, RoutingOptions, TargetType

LOCAL_PROVIDER = "ollama"

# Local models
DEFAULT_LOCAL_MODEL = "qwen3-coder-30b"   # Tier 1 daily driver
COMPLEX_LOCAL_MODEL = "llama-3.1-70b"     # Tier 2
QUANTUM_MODEL = "granite-8b-qiskit"       # Tier 4

# API models
FRONTIER_PROVIDER, FRONTIER_MODEL = "openai", "gpt-5"                  # Tier 5
LARGE_CONTEXT_PROVIDER, LARGE_CONTEXT_MODEL = "anthropic", "claude-opus-4"  # Tier 3
MID_TIER_PROVIDER, MID_TIER_MODEL = "anthropic", "claude-sonnet-4"

QUANTUM_TASK = "quantum"


@runtime_checkable
class RoutingStrategy(Protocol):
    """A pluggable routing policy.

    ``route`` is a pure function of the request, the options and (for
    budget-aware strategies) the ledger. Implementations keep no state
    that routing mutates, so one instance can serve concurrent callers.
    """

    name: str

    def route(
        self,
        request: InferenceRequest,
        options: RoutingOptions | None = None,
    ) -> RouteDecision:
        ...


def is_quantum(request: InferenceRequest) -> bool:
    return request.task_type == QUANTUM_TASK


def require_name(value: str, field_name: str) -> str:
    """Validate a model/provider name given to a strategy constructor."""
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{field_name} must be a non-empty string")
    return value


def forced_route(
    request: InferenceRequest,
    options: RoutingOptions,
    *,
    default_provider: str,
    default_model: str,
    local_provider: str,
    default_tokens: int,
    registry: ProviderRegistry,
    local_rationale: str,
    api_rationale: str,
) -> RouteDecision:
    """Apply ``force_provider``/``force_model``.

    The omitted half of the override falls back to the strategy default.
    An explicitly named provider must be registered.
    """
    provider = options.force_provider or default_provider
    model = options.force_model or default_model
    tokens = request.tokens_or(default_tokens)

    is_local = provider == local_provider
    if options.force_provider:
        is_local = is_local or registry.provider_type(provider) == TargetType.LOCAL

    if is_local:
        return local_decision(provider, model, local_rationale, tokens)
    return api_decision(provider, model, api_rationale, tokens)
