"""Model provider capability.

The routing core only emits a ``RouteDecision``; whoever executes it does
so through a ``ModelProvider``. Concrete HTTP clients live outside this
package and subclass ``ModelProvider``.

Streaming is exposed as a ``GenerationStream``: a single-pass iterator of
text deltas with a separate terminal ``result``. Timeouts and early
``close()`` end the stream with an ``error`` response that keeps whatever
text arrived, instead of raising.
"""

import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Iterator

import httpx

from hybrid_router.errors import UnknownModelError
from hybrid_router.routing.models import TargetType


class FinishReason(str, Enum):
    """Why generation stopped."""
    COMPLETED = "completed"
    LENGTH = "length"
    STOP = "stop"
    ERROR = "error"


@dataclass
class InferenceParams:
    """Generation parameters passed to a provider."""
    prompt: str
    max_tokens: int | None = None
    temperature: float | None = None
    top_p: float | None = None
    stop: list[str] = field(default_factory=list)
    system_prompt: str | None = None
    model_params: dict[str, Any] = field(default_factory=dict)


@dataclass
class InferenceResponse:
    """Aggregate result of one generation."""
    text: str
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    latency_ms: float
    model: str
    provider: str
    finish_reason: FinishReason
    error: str | None = None


@dataclass
class StreamChunk:
    """One text delta."""
    text: str
    done: bool = False
    model: str | None = None


@dataclass
class ProviderHealth:
    healthy: bool
    latency_ms: float | None = None
    model_count: int | None = None
    error: str | None = None
    warnings: list[str] = field(default_factory=list)


# (partial_text, finish_reason, error) -> terminal response
Finalizer = Callable[[str, FinishReason, str | None], InferenceResponse]

STREAM_TIMEOUT_ERRORS = (TimeoutError, httpx.TimeoutException)


class GenerationStream:
    """Single-pass stream of deltas that closes with an aggregate response.

    States: pending -> streaming -> done. Iterate it for the deltas, then
    read ``result``; reading ``result`` early drains the rest first.

    Usage:
        stream = provider.generate_stream("qwen3-coder-30b", params)
        for chunk in stream:
            print(chunk.text, end="")
        response = stream.result
    """

    def __init__(self, chunks: Iterable[StreamChunk], finalize: Finalizer):
        self._source = iter(chunks)
        self._finalize = finalize
        self._parts: list[str] = []
        self._iterated = False
        self._result: InferenceResponse | None = None

    @property
    def done(self) -> bool:
        return self._result is not None

    @property
    def text(self) -> str:
        """Text received so far."""
        return "".join(self._parts)

    def __iter__(self) -> Iterator[StreamChunk]:
        if self._iterated:
            raise RuntimeError("GenerationStream can only be iterated once")
        self._iterated = True
        return self

    def __next__(self) -> StreamChunk:
        if self._result is not None:
            raise StopIteration

        try:
            chunk = next(self._source)
        except StopIteration:
            self._finish(FinishReason.COMPLETED)
            raise
        except STREAM_TIMEOUT_ERRORS:
            self._finish(FinishReason.ERROR, "Request timeout")
            raise StopIteration from None

        if chunk.text:
            self._parts.append(chunk.text)
        return chunk

    @property
    def result(self) -> InferenceResponse:
        """The terminal response, draining any unread deltas."""
        self._iterated = True
        while self._result is None:
            try:
                next(self)
            except StopIteration:
                break
        assert self._result is not None
        return self._result

    def collect(self) -> InferenceResponse:
        return self.result

    def close(self) -> InferenceResponse:
        """Stop early. The result keeps the partial text."""
        if self._result is None:
            close = getattr(self._source, "close", None)
            if close is not None:
                close()
            self._finish(FinishReason.ERROR, "Cancelled")
        assert self._result is not None
        return self._result

    def _finish(self, reason: FinishReason, error: str | None = None) -> None:
        self._result = self._finalize(self.text, reason, error)


class ModelProvider(ABC):
    """Base class for local and API model providers."""

    name: str = ""
    type: TargetType = TargetType.LOCAL

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the provider is reachable/configured."""

    @abstractmethod
    def generate(self, model: str, params: InferenceParams) -> InferenceResponse:
        """Generate a full completion."""

    @abstractmethod
    def generate_stream(self, model: str, params: InferenceParams) -> GenerationStream:
        """Stream a completion."""

    @abstractmethod
    def list_models(self) -> list[str]:
        """Models this provider serves."""

    def health_check(self) -> ProviderHealth:
        start = time.monotonic()
        try:
            if not self.is_available():
                return ProviderHealth(
                    healthy=False,
                    error=f"Provider {self.name} is not available",
                )
            models = self.list_models()
            return ProviderHealth(
                healthy=True,
                latency_ms=(time.monotonic() - start) * 1000,
                model_count=len(models),
            )
        except Exception as e:
            return ProviderHealth(
                healthy=False,
                latency_ms=(time.monotonic() - start) * 1000,
                error=str(e) or type(e).__name__,
            )

    def validate_model(self, model: str) -> None:
        models = self.list_models()
        if model not in models:
            raise UnknownModelError(
                f"Model {model} not found. Available models: {', '.join(models)}"
            )

    @staticmethod
    def estimate_tokens(text: str) -> int:
        """Rough token count, ~4 characters per token."""
        return math.ceil(len(text) / 4)

    def stream_from_chunks(
        self,
        model: str,
        params: InferenceParams,
        chunks: Iterable[StreamChunk],
    ) -> GenerationStream:
        """Wrap raw chunks in a ``GenerationStream`` with estimated usage.

        Subclasses whose server reports real token counts can build the
        stream with their own finalizer instead.
        """
        start = time.monotonic()

        def finalize(text: str, reason: FinishReason, error: str | None) -> InferenceResponse:
            prompt_tokens = self.estimate_tokens(params.prompt)
            completion_tokens = self.estimate_tokens(text)
            return InferenceResponse(
                text=text,
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
                latency_ms=(time.monotonic() - start) * 1000,
                model=model,
                provider=self.name,
                finish_reason=reason,
                error=error,
            )

        return GenerationStream(chunks, finalize)
