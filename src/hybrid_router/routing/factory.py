"""Select and build a routing strategy by name or from configuration."""

import logging

from hybrid_router.config import ROUTER_TYPES, RouterSettings, WorkbenchConfig
from hybrid_router.errors import ConfigError, UnknownRouterError
from hybrid_router.ledger import CostLedger
from hybrid_router.providers.registry import ProviderRegistry

from .api_first import APIFirstRouter
from .base import RoutingStrategy
from .cost_aware import CostAwareRouter
from .simple import SimpleRouter

logger = logging.getLogger(__name__)

ROUTERS: dict[str, type] = {
    SimpleRouter.name: SimpleRouter,
    CostAwareRouter.name: CostAwareRouter,
    APIFirstRouter.name: APIFirstRouter,
}

# Budget used when a cost-aware router is requested without a config file
DEFAULT_MONTHLY_BUDGET = 100.0


def create_router(
    name: str,
    settings: RouterSettings | None = None,
    ledger: CostLedger | None = None,
    registry: ProviderRegistry | None = None,
) -> RoutingStrategy:
    """Build the router called ``name``.

    Raises ``UnknownRouterError`` for names with no registered strategy,
    and ``ConfigError`` when ``settings`` belong to a different router.
    """
    key = name.strip().lower()
    router_cls = ROUTERS.get(key)
    if router_cls is None:
        raise UnknownRouterError(name, ROUTER_TYPES)

    if settings is not None:
        if settings.type != key:
            raise ConfigError(
                f"Settings for the {settings.type} router cannot configure the {key} router")
        kwargs = settings.router_kwargs()
    elif key == CostAwareRouter.name:
        kwargs = {"monthly_budget": DEFAULT_MONTHLY_BUDGET}
    else:
        kwargs = {}

    if key == CostAwareRouter.name:
        kwargs["ledger"] = ledger
    kwargs["registry"] = registry

    logger.debug(f"Creating {key} router with {sorted(kwargs)}")
    return router_cls(**kwargs)


def router_from_config(
    config: WorkbenchConfig,
    name: str | None = None,
    ledger: CostLedger | None = None,
    registry: ProviderRegistry | None = None,
) -> RoutingStrategy:
    """Build the configured router, or ``name`` using its block from ``config``.

    A router named explicitly but missing from the file falls back to its
    defaults; a cost-aware router still needs a budget from somewhere.
    """
    key = (name or config.router.type).strip().lower()
    if key not in ROUTERS:
        raise UnknownRouterError(name or key, ROUTER_TYPES)
    return create_router(key, config.settings_for(key), ledger=ledger, registry=registry)
