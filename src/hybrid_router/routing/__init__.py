"""Routing engine.

Three pluggable strategies turn an ``InferenceRequest`` into a
``RouteDecision``:
- simple: always local
- api-first: paid APIs unless the task needs a specialized local model
- cost-aware: five-tier escalation bounded by a monthly budget

Strategies never call providers. The cost-aware router reads the spend
ledger; the rest are pure.
"""

from hybrid_router.routing.api_first import APIFirstRouter
from hybrid_router.routing.base import RoutingStrategy
from hybrid_router.routing.cost_aware import CostAwareRouter
from hybrid_router.routing.factory import ROUTERS, create_router, router_from_config
from hybrid_router.routing.models import (
    InferenceRequest,
    ModelTarget,
    RouteDecision,
    RoutingOptions,
    TargetType,
)
from hybrid_router.routing.pricing import ModelPricing, get_pricing
from hybrid_router.routing.simple import SimpleRouter

__all__ = [
    "APIFirstRouter",
    "CostAwareRouter",
    "SimpleRouter",
    "RoutingStrategy",
    "ROUTERS",
    "create_router",
    "router_from_config",
    "InferenceRequest",
    "ModelTarget",
    "RouteDecision",
    "RoutingOptions",
    "TargetType",
    "ModelPricing",
    "get_pricing",
]
