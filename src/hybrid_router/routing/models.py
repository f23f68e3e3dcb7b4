"""Value types shared by every routing strategy.

A caller builds an ``InferenceRequest``, a strategy turns it into a
``RouteDecision``, and the decision's ``target`` is the only thing handed
on to whatever executes the request.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


class TargetType(str, Enum):
    """Where a request executes."""
    LOCAL = "local"  # Self-hosted model server, zero marginal cost
    API = "api"      # Paid third-party endpoint


@dataclass(frozen=True)
class InferenceRequest:
    """A request to be routed.

    ``estimated_tokens`` is supplied by the caller. Strategies apply their
    own default when it is missing and never infer it from the prompt.
    """
    prompt: str
    estimated_tokens: int | None = None
    task_type: str | None = None
    complexity: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.complexity is not None and not 0.0 <= self.complexity <= 1.0:
            raise ValueError(
                f"complexity must be between 0 and 1, got {self.complexity}")
        if self.estimated_tokens is not None and self.estimated_tokens < 0:
            raise ValueError(
                f"estimated_tokens must be non-negative, got {self.estimated_tokens}")

    def tokens_or(self, default: int) -> int:
        """Token estimate, or ``default`` when the caller gave none."""
        return self.estimated_tokens or default


@dataclass(frozen=True)
class ModelTarget:
    """The provider/model a decision points at."""
    type: TargetType
    provider: str
    model: str
    endpoint: str | None = None

    @property
    def is_local(self) -> bool:
        return self.type == TargetType.LOCAL

    def __str__(self) -> str:
        return f"{self.provider}/{self.model}"


@dataclass(frozen=True)
class RouteDecision:
    """The result of routing a request."""
    target: ModelTarget
    estimated_cost: float      # USD
    estimated_latency: float   # seconds
    rationale: str
    alternatives: tuple["RouteDecision", ...] = ()
    confidence: float | None = None

    def with_alternatives(self, *alternatives: "RouteDecision") -> "RouteDecision":
        """Copy of this decision carrying ``alternatives`` (explain mode)."""
        return replace(self, alternatives=tuple(alternatives))

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "target": {
                "type": self.target.type.value,
                "provider": self.target.provider,
                "model": self.target.model,
            },
            "estimated_cost": self.estimated_cost,
            "estimated_latency": self.estimated_latency,
            "rationale": self.rationale,
            "confidence": self.confidence,
        }
        if self.target.endpoint:
            d["target"]["endpoint"] = self.target.endpoint
        if self.alternatives:
            d["alternatives"] = [alt.to_dict() for alt in self.alternatives]
        return d


@dataclass(frozen=True)
class RoutingOptions:
    """Per-call routing options. Overrides beat every policy rule."""
    dry_run: bool = False
    explain: bool = False
    budget_override: float | None = None
    force_provider: str | None = None
    force_model: str | None = None

    @property
    def is_forced(self) -> bool:
        return bool(self.force_provider or self.force_model)
