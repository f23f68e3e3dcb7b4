"""Error types raised by hybrid-router.

Pricing misses are never errors; they resolve to the default pricing entry.
"""


class HybridRouterError(Exception):
    """Base class for all hybrid-router errors."""


class ConfigError(HybridRouterError, ValueError):
    """Invalid or missing configuration, raised at construction/load time."""


class UnknownRouterError(ConfigError):
    """A router name was given that has no registered strategy."""

    def __init__(self, name: str, available: tuple[str, ...] | list[str]):
        self.name = name
        self.available = tuple(available)
        super().__init__(
            f"Unknown router: {name}. Available: {', '.join(self.available)}"
        )


class UnknownProviderError(HybridRouterError, LookupError):
    """A provider name was given that has no registered handler."""

    def __init__(self, name: str, available: tuple[str, ...] | list[str]):
        self.name = name
        self.available = tuple(available)
        super().__init__(
            f"Unknown provider: {name}. Supported providers: {', '.join(self.available)}"
        )


class UnknownModelError(HybridRouterError, LookupError):
    """A model is not served by the provider it was requested from."""


class LedgerError(HybridRouterError, RuntimeError):
    """The spend ledger could not be read or written.

    Distinct from an empty ledger: an unreadable store is never treated
    as "no spend yet".
    """
