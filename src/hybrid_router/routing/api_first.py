"""API-first router - prefer cloud APIs for quality.

For teams with budget to spare that value answer quality over cost.
Only quantum tasks and explicit local overrides stay on the local server.
"""

import logging

from hybrid_router.providers.registry import ProviderRegistry

from .base import (
    DEFAULT_LOCAL_MODEL,
    FRONTIER_MODEL,
    FRONTIER_PROVIDER,
    LARGE_CONTEXT_MODEL,
    LARGE_CONTEXT_PROVIDER,
    LOCAL_PROVIDER,
    QUANTUM_MODEL,
    forced_route,
    is_quantum,
    require_name,
)
from .estimates import api_decision, local_decision
from .models import InferenceRequest, RouteDecision, RoutingOptions

logger = logging.getLogger(__name__)

DEFAULT_TOKENS = 5000
COMPLEXITY_ESCALATION = 0.8
CONTEXT_ESCALATION = 16_000


class APIFirstRouter:
    """Routes to paid APIs unless the task needs a specialized local model."""

    name = "api-first"

    def __init__(
        self,
        default_model: str = LARGE_CONTEXT_MODEL,
        default_provider: str = LARGE_CONTEXT_PROVIDER,
        fallback_to_local: bool = True,
        local_fallback_model: str = DEFAULT_LOCAL_MODEL,
        local_provider: str = LOCAL_PROVIDER,
        quantum_model: str = QUANTUM_MODEL,
        frontier_provider: str = FRONTIER_PROVIDER,
        frontier_model: str = FRONTIER_MODEL,
        large_context_provider: str = LARGE_CONTEXT_PROVIDER,
        large_context_model: str = LARGE_CONTEXT_MODEL,
        registry: ProviderRegistry | None = None,
    ):
        self.default_model = require_name(default_model, "default_model")
        self.default_provider = require_name(default_provider, "default_provider")
        self.fallback_to_local = bool(fallback_to_local)
        self.local_fallback_model = require_name(local_fallback_model, "local_fallback_model")
        self.local_provider = require_name(local_provider, "local_provider")
        self.quantum_model = require_name(quantum_model, "quantum_model")
        self.frontier_provider = require_name(frontier_provider, "frontier_provider")
        self.frontier_model = require_name(frontier_model, "frontier_model")
        self.large_context_provider = require_name(large_context_provider, "large_context_provider")
        self.large_context_model = require_name(large_context_model, "large_context_model")
        self.registry = registry or ProviderRegistry()

    def route(
        self,
        request: InferenceRequest,
        options: RoutingOptions | None = None,
    ) -> RouteDecision:
        options = options or RoutingOptions()

        if options.is_forced:
            return forced_route(
                request,
                options,
                default_provider=self.default_provider,
                default_model=self.default_model,
                local_provider=self.local_provider,
                default_tokens=DEFAULT_TOKENS,
                registry=self.registry,
                local_rationale="User override: forced to local",
                api_rationale="User override: forced to specific API",
            )

        tokens = request.tokens_or(DEFAULT_TOKENS)

        if is_quantum(request):
            return local_decision(
                self.local_provider,
                self.quantum_model,
                "Quantum task requires specialized local model",
                tokens,
            )

        if request.complexity is not None and request.complexity > COMPLEXITY_ESCALATION:
            decision = api_decision(
                self.frontier_provider,
                self.frontier_model,
                f"High complexity task routed to frontier model ({self.frontier_model})",
                tokens,
            )
        elif tokens > CONTEXT_ESCALATION:
            decision = api_decision(
                self.large_context_provider,
                self.large_context_model,
                f"Large context requires {self.large_context_model}",
                tokens,
            )
        else:
            decision = api_decision(
                self.default_provider,
                self.default_model,
                f"Default API routing ({self.default_model})",
                tokens,
            )

        if options.explain and self.fallback_to_local:
            decision = decision.with_alternatives(
                local_decision(
                    self.local_provider,
                    self.local_fallback_model,
                    "Local fallback if the API is unavailable",
                    tokens,
                )
            )

        logger.debug(f"[{self.name}] {decision.target} - {decision.rationale}")
        return decision
