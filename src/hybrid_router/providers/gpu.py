"""GPU detector capability.

Detectors come in tiers (1 = NVML, 2 = nvidia-smi, 3 = simulated); callers
try them in order and use the first available one. Concrete detectors are
external; this module only fixes their contract and the metric checks.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

VRAM_TOLERANCE_GB = 0.1


@dataclass
class GpuMetrics:
    """Point-in-time GPU metrics. Optional fields are absent in tier 3."""
    vram_total: float  # GB
    vram_used: float
    vram_free: float
    compute_capability: str  # e.g. "sm_120"
    device_name: str
    temperature: float | None = None
    power_draw: float | None = None
    clock_speed: float | None = None
    utilization_gpu: float | None = None
    utilization_memory: float | None = None


@dataclass
class DetectorHealth:
    healthy: bool
    reason: str | None = None
    warnings: list[str] = field(default_factory=list)


def validate_metrics(metrics: GpuMetrics) -> None:
    """Raise ``ValueError`` if the metrics are internally inconsistent."""
    if metrics.vram_total <= 0:
        raise ValueError("Invalid vram_total: must be > 0")
    if not 0 <= metrics.vram_used <= metrics.vram_total:
        raise ValueError(
            f"Invalid vram_used: {metrics.vram_used} (total: {metrics.vram_total})")
    if not 0 <= metrics.vram_free <= metrics.vram_total:
        raise ValueError(
            f"Invalid vram_free: {metrics.vram_free} (total: {metrics.vram_total})")
    if abs(metrics.vram_used + metrics.vram_free - metrics.vram_total) > VRAM_TOLERANCE_GB:
        raise ValueError(
            f"VRAM accounting mismatch: used({metrics.vram_used}) + "
            f"free({metrics.vram_free}) != total({metrics.vram_total})"
        )


def normalize_compute_capability(value: str) -> str:
    """"9.0" -> "sm_90"; already-normalized values pass through."""
    value = value.strip()
    if value.startswith("sm_"):
        return value
    match = re.fullmatch(r"(\d+)\.(\d+)", value)
    if not match:
        raise ValueError(f"Unrecognized compute capability: {value}")
    return f"sm_{match.group(1)}{match.group(2)}"


class GpuDetector(ABC):
    """One tier of GPU detection."""

    name: str = ""
    tier: int = 3

    @abstractmethod
    def is_available(self) -> bool:
        """Whether this detector can run here."""

    @abstractmethod
    def get_metrics(self) -> GpuMetrics:
        """Current metrics. Raises if the GPU cannot be read."""

    def health_check(self) -> DetectorHealth:
        try:
            validate_metrics(self.get_metrics())
        except Exception as e:
            return DetectorHealth(healthy=False, reason=str(e))
        return DetectorHealth(healthy=True)

    def cleanup(self) -> None:
        """Release held resources. Most detectors hold none."""


def first_available(detectors: list[GpuDetector]) -> GpuDetector | None:
    """The lowest-tier detector that reports itself available."""
    for detector in sorted(detectors, key=lambda d: d.tier):
        if detector.is_available():
            return detector
    return None
