"""Provider and detector interfaces consumed by callers of the router."""

from hybrid_router.providers.base import (
    FinishReason,
    GenerationStream,
    InferenceParams,
    InferenceResponse,
    ModelProvider,
    ProviderHealth,
    StreamChunk,
)
from hybrid_router.providers.registry import ProviderRegistry, ProviderSpec

__all__ = [
    "FinishReason",
    "GenerationStream",
    "InferenceParams",
    "InferenceResponse",
    "ModelProvider",
    "ProviderHealth",
    "StreamChunk",
    "ProviderRegistry",
    "ProviderSpec",
]
