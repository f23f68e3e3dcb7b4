"""Simple router - every request goes to a local model.

Zero cost, zero config. Suits users without an API budget, air-gapped
machines and privacy-sensitive work.
"""

import logging

from hybrid_router.providers.registry import ProviderRegistry

from .base import DEFAULT_LOCAL_MODEL, LOCAL_PROVIDER, QUANTUM_MODEL, is_quantum, require_name
from .estimates import local_decision
from .models import InferenceRequest, RouteDecision, RoutingOptions

logger = logging.getLogger(__name__)

DEFAULT_TOKENS = 1000


class SimpleRouter:
    """Routes everything to a local model.

    Usage:
        router = SimpleRouter(default_model="llama-3.1-70b")
        decision = router.route(InferenceRequest(prompt="sort this list"))
        # decision.target.model == "llama-3.1-70b", decision.estimated_cost == 0
    """

    name = "simple"

    def __init__(
        self,
        default_model: str = DEFAULT_LOCAL_MODEL,
        default_provider: str = LOCAL_PROVIDER,
        quantum_model: str = QUANTUM_MODEL,
        registry: ProviderRegistry | None = None,
    ):
        self.default_model = require_name(default_model, "default_model")
        self.default_provider = require_name(default_provider, "default_provider")
        self.quantum_model = require_name(quantum_model, "quantum_model")
        self.registry = registry or ProviderRegistry()

    def route(
        self,
        request: InferenceRequest,
        options: RoutingOptions | None = None,
    ) -> RouteDecision:
        options = options or RoutingOptions()
        tokens = request.tokens_or(DEFAULT_TOKENS)

        if options.is_forced:
            provider = options.force_provider or self.default_provider
            model = options.force_model or self.default_model
            if options.force_provider:
                self.registry.get(provider)
            decision = local_decision(
                provider, model, "User override: forced to specific model", tokens)
        elif is_quantum(request):
            decision = local_decision(
                self.default_provider,
                self.quantum_model,
                "Quantum task routed to specialized local model",
                tokens,
            )
        else:
            decision = local_decision(
                self.default_provider,
                self.default_model,
                f"Default local routing ({self.default_model})",
                tokens,
            )

        logger.debug(f"[{self.name}] {decision.target} - {decision.rationale}")
        return decision
