"""Cost-aware router - five-tier escalation under a monthly budget.

Tiers:
1. Daily driver: qwen3-coder-30b (local, zero cost)
2. Complex local: llama-3.1-70b (local, more capable)
3. Large context: claude-opus-4 (API, 200K window)
4. Quantum code: granite-8b-qiskit (local, specialized)
5. Frontier: gpt-5 (API, hardest problems)

Paid tiers are only chosen while the month's recorded spend leaves room
for the estimated cost; otherwise the request drops to a local tier.
"""

import logging

from hybrid_router.errors import ConfigError
from hybrid_router.ledger import CostLedger
from hybrid_router.providers.registry import ProviderRegistry

from .base import (
    COMPLEX_LOCAL_MODEL,
    DEFAULT_LOCAL_MODEL,
    FRONTIER_MODEL,
    FRONTIER_PROVIDER,
    LARGE_CONTEXT_MODEL,
    LARGE_CONTEXT_PROVIDER,
    LOCAL_PROVIDER,
    MID_TIER_MODEL,
    MID_TIER_PROVIDER,
    QUANTUM_MODEL,
    forced_route,
    is_quantum,
    require_name,
)
from .estimates import api_cost, api_decision, local_decision
from .models import InferenceRequest, RouteDecision, RoutingOptions

logger = logging.getLogger(__name__)

DEFAULT_TOKENS = 5000
FORCED_DEFAULT_TOKENS = 1000
DEFAULT_COMPLEXITY_THRESHOLD = 0.8
DEFAULT_TOKEN_THRESHOLD = 16_000

# Tier 2 kicks in above either of these
MODERATE_TOKENS = 4000
MODERATE_COMPLEXITY = 0.5


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class CostAwareRouter:
    """Routes by tier, escalating to paid APIs only when the budget allows.

    Usage:
        ledger = CostLedger(data_dir="~/.hybrid-router")
        router = CostAwareRouter(monthly_budget=100.0, ledger=ledger)
        decision = router.route(InferenceRequest(prompt="...", estimated_tokens=20_000))
        # decision.rationale starts with "[Tier 3]" while budget remains
    """

    name = "cost-aware"

    def __init__(
        self,
        monthly_budget: float,
        complexity_threshold: float = DEFAULT_COMPLEXITY_THRESHOLD,
        token_threshold: int = DEFAULT_TOKEN_THRESHOLD,
        default_local: str = DEFAULT_LOCAL_MODEL,
        complex_local: str = COMPLEX_LOCAL_MODEL,
        quantum_model: str = QUANTUM_MODEL,
        local_provider: str = LOCAL_PROVIDER,
        ledger: CostLedger | None = None,
        registry: ProviderRegistry | None = None,
    ):
        if not _is_number(monthly_budget):
            raise ConfigError("monthly_budget must be a number")
        if monthly_budget <= 0:
            raise ConfigError("monthly_budget must be greater than 0")
        if not _is_number(complexity_threshold) or not 0 <= complexity_threshold <= 1:
            raise ConfigError("complexity_threshold must be between 0 and 1")
        if not _is_number(token_threshold) or token_threshold <= 0:
            raise ConfigError("token_threshold must be greater than 0")

        self.monthly_budget = float(monthly_budget)
        self.complexity_threshold = float(complexity_threshold)
        self.token_threshold = int(token_threshold)
        self.default_local = require_name(default_local, "default_local")
        self.complex_local = require_name(complex_local, "complex_local")
        self.quantum_model = require_name(quantum_model, "quantum_model")
        self.local_provider = require_name(local_provider, "local_provider")
        self.ledger = ledger or CostLedger()
        self.registry = registry or ProviderRegistry()

    def route(
        self,
        request: InferenceRequest,
        options: RoutingOptions | None = None,
    ) -> RouteDecision:
        decision = self._route(request, options or RoutingOptions())
        logger.debug(f"[{self.name}] {decision.target} - {decision.rationale}")
        return decision

    def _route(self, request: InferenceRequest, options: RoutingOptions) -> RouteDecision:
        # Overrides skip the budget entirely
        if options.is_forced:
            return forced_route(
                request,
                options,
                default_provider=self.local_provider,
                default_model=self.default_local,
                local_provider=self.local_provider,
                default_tokens=FORCED_DEFAULT_TOKENS,
                registry=self.registry,
                local_rationale="User override: forced to local model",
                api_rationale="User override: forced to API",
            )

        tokens = request.tokens_or(DEFAULT_TOKENS)
        monthly_spend = self.ledger.get_monthly_spend()
        budget_limit = (
            options.budget_override
            if options.budget_override is not None
            else self.monthly_budget
        )
        remaining = budget_limit - monthly_spend

        # Tier 4 comes before the budget check: it is local either way
        if is_quantum(request):
            return self._local(
                self.quantum_model,
                "[Tier 4] Quantum task routed to specialized local model",
                tokens,
            )

        if monthly_spend >= budget_limit:
            return self._local(
                self.default_local,
                f"Budget limit reached (${monthly_spend:.2f}/${budget_limit:.2f}) - routing to local",
                tokens,
            )

        complexity = request.complexity
        explain = options.explain

        # Tier 5
        if complexity is not None and complexity >= self.complexity_threshold:
            cost = api_cost(FRONTIER_PROVIDER, FRONTIER_MODEL, tokens)
            if cost > remaining:
                return self._insufficient(FRONTIER_MODEL, cost, remaining, tokens, "using complex local")

            decision = api_decision(
                FRONTIER_PROVIDER,
                FRONTIER_MODEL,
                f"[Tier 5] High complexity ({complexity * 100:.0f}%) requires frontier model ({FRONTIER_MODEL})",
                tokens,
            )
            if explain:
                decision = decision.with_alternatives(
                    self._local(self.complex_local, "[Tier 2] Complex local fallback", tokens),
                    self._local(self.default_local, "[Tier 1] Default local", tokens),
                )
            return decision

        # Tier 3
        if tokens >= self.token_threshold:
            cost = api_cost(LARGE_CONTEXT_PROVIDER, LARGE_CONTEXT_MODEL, tokens)
            if cost > remaining:
                return self._insufficient(LARGE_CONTEXT_MODEL, cost, remaining, tokens, "using local")

            decision = api_decision(
                LARGE_CONTEXT_PROVIDER,
                LARGE_CONTEXT_MODEL,
                f"[Tier 3] Large context ({tokens:,} tokens) requires {LARGE_CONTEXT_MODEL}",
                tokens,
            )
            if explain:
                decision = decision.with_alternatives(
                    self._local(self.complex_local, "[Tier 2] Local fallback (may exceed context)", tokens),
                )
            return decision

        # Tier 2
        if tokens > MODERATE_TOKENS or (complexity is not None and complexity > MODERATE_COMPLEXITY):
            decision = self._local(
                self.complex_local,
                f"[Tier 2] Moderate complexity routed to {self.complex_local} (local)",
                tokens,
            )
            if explain:
                decision = decision.with_alternatives(
                    api_decision(
                        MID_TIER_PROVIDER,
                        MID_TIER_MODEL,
                        f"[Alternative] {MID_TIER_MODEL} for higher quality",
                        tokens,
                    ),
                    self._local(self.default_local, "[Tier 1] Default local (faster)", tokens),
                )
            return decision

        # Tier 1
        decision = self._local(
            self.default_local, "[Tier 1] Daily driver for routine tasks", tokens)
        if explain:
            decision = decision.with_alternatives(
                api_decision(
                    MID_TIER_PROVIDER,
                    MID_TIER_MODEL,
                    f"[Alternative] {MID_TIER_MODEL} for better quality",
                    tokens,
                ),
            )
        return decision

    def _local(self, model: str, rationale: str, tokens: int) -> RouteDecision:
        return local_decision(self.local_provider, model, rationale, tokens)

    def _insufficient(
        self,
        model: str,
        cost: float,
        remaining: float,
        tokens: int,
        action: str,
    ) -> RouteDecision:
        return self._local(
            self.complex_local,
            f"[Tier 2] Insufficient budget for {model} "
            f"(need ${cost:.2f}, have ${remaining:.2f}) - {action}",
            tokens,
        )

    def get_monthly_spend(self) -> float:
        """Current month's recorded spend, read fresh from the ledger."""
        return self.ledger.get_monthly_spend()

    def get_remaining_budget(self) -> float:
        """Configured budget minus this month's spend, never below 0."""
        return max(0.0, self.monthly_budget - self.get_monthly_spend())
