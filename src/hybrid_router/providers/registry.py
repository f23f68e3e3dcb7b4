"""Provider registry.

Maps provider names to their execution type and, optionally, to a factory
that builds a ``ModelProvider``. Routing strategies consult it to reject
forced providers nobody can serve; the routing core itself never builds
or calls a provider.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from hybrid_router.errors import UnknownProviderError
from hybrid_router.routing.models import TargetType

if TYPE_CHECKING:
    from .base import ModelProvider

logger = logging.getLogger(__name__)

ProviderFactory = Callable[..., "ModelProvider"]


@dataclass(frozen=True)
class ProviderSpec:
    """A registered provider."""
    name: str
    type: TargetType
    factory: ProviderFactory | None = None


BUILTIN_PROVIDERS: dict[str, TargetType] = {
    "ollama": TargetType.LOCAL,
    "anthropic": TargetType.API,
    "openai": TargetType.API,
}


class ProviderRegistry:
    """Known providers, case-insensitive by name.

    Usage:
        registry = ProviderRegistry()
        registry.register("lmstudio", TargetType.LOCAL, LMStudioProvider)
        registry.provider_type("lmstudio")  # TargetType.LOCAL
    """

    def __init__(self, include_builtins: bool = True):
        self._specs: dict[str, ProviderSpec] = {}
        if include_builtins:
            for name, kind in BUILTIN_PROVIDERS.items():
                self._specs[name] = ProviderSpec(name, kind)

    def register(
        self,
        name: str,
        type: TargetType | str,
        factory: ProviderFactory | None = None,
    ) -> ProviderSpec:
        """Register (or replace) a provider."""
        spec = ProviderSpec(name.lower(), TargetType(type), factory)
        if spec.name in self._specs:
            logger.debug(f"Replacing provider registration: {spec.name}")
        self._specs[spec.name] = spec
        return spec

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._specs

    @property
    def names(self) -> list[str]:
        return list(self._specs)

    def get(self, name: str) -> ProviderSpec:
        """Get a registration, raising ``UnknownProviderError`` if absent."""
        spec = self._specs.get(name.lower())
        if spec is None:
            raise UnknownProviderError(name, self.names)
        return spec

    def provider_type(self, name: str) -> TargetType:
        return self.get(name).type

    def create(self, name: str, **kwargs: Any) -> "ModelProvider":
        """Build a provider instance from its registered factory."""
        spec = self.get(name)
        if spec.factory is None:
            raise UnknownProviderError(
                name, [s.name for s in self._specs.values() if s.factory])
        return spec.factory(**kwargs)

    def available(self, **kwargs: Any) -> list[str]:
        """Names of providers that can be built and report themselves available."""
        names = []
        for spec in self._specs.values():
            if spec.factory is None:
                continue
            try:
                if spec.factory(**kwargs).is_available():
                    names.append(spec.name)
            except Exception as e:
                logger.warning(f"Provider {spec.name} unavailable: {e}")
        return names
