"""YAML configuration.

One settings model per router kind, validated eagerly when the file is
loaded. Both the camelCase keys used in config files and snake_case
names are accepted. A cost-aware router without a budget is a load-time
error, never a silent default.

Example: see ``DEFAULT_CONFIG_YAML``.
"""

import logging
import os
import re
from pathlib import Path
from typing import Annotated, Any, Literal, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from hybrid_router.errors import ConfigError

logger = logging.getLogger(__name__)

ROUTER_TYPES = ("simple", "cost-aware", "api-first")

# router.type -> name of its nested block in the YAML file
ROUTER_SECTIONS = {
    "simple": "simple",
    "cost-aware": "costAware",
    "api-first": "apiFirst",
}

ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


class _Settings(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        strict=True,
        frozen=True,
    )

    def router_kwargs(self) -> dict[str, Any]:
        """Constructor arguments for the matching router class."""
        return self.model_dump(exclude={"type"}, exclude_none=True)


class SimpleSettings(_Settings):
    type: Literal["simple"] = "simple"
    default_model: str | None = None
    default_provider: str | None = None


class CostAwareSettings(_Settings):
    type: Literal["cost-aware"] = "cost-aware"
    monthly_budget: float = Field(gt=0)
    complexity_threshold: float | None = Field(default=None, ge=0, le=1)
    token_threshold: int | None = Field(default=None, gt=0)
    default_local: str | None = None
    complex_local: str | None = None
    quantum_model: str | None = None
    local_provider: str | None = None


class ApiFirstSettings(_Settings):
    type: Literal["api-first"] = "api-first"
    default_model: str | None = None
    default_provider: str | None = None
    fallback_to_local: bool | None = None
    local_fallback_model: str | None = None


RouterSettings = Annotated[
    Union[SimpleSettings, CostAwareSettings, ApiFirstSettings],
    Field(discriminator="type"),
]

SETTINGS_BY_TYPE: dict[str, type[_Settings]] = {
    "simple": SimpleSettings,
    "cost-aware": CostAwareSettings,
    "api-first": ApiFirstSettings,
}


class _Section(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OllamaConfig(_Section):
    base_url: str = "http://localhost:11434"
    timeout: int = 120_000  # ms


class AnthropicConfig(_Section):
    api_key: str | None = None
    base_url: str | None = None
    timeout: int = 120_000


class OpenAIConfig(_Section):
    api_key: str | None = None
    base_url: str | None = None
    timeout: int = 120_000
    organization: str | None = None


class ProvidersConfig(_Section):
    ollama: OllamaConfig = Field(default_factory=OllamaConfig)
    anthropic: AnthropicConfig = Field(default_factory=AnthropicConfig)
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)


class DefaultsConfig(_Section):
    temperature: float = Field(default=0.7, ge=0, le=2)
    max_tokens: int = Field(default=4096, gt=0)
    stream: bool = False


class WorkbenchConfig(BaseModel):
    """A loaded configuration file."""
    router: RouterSettings
    routers: dict[str, RouterSettings] = Field(default_factory=dict)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    source: Path | None = None

    def settings_for(self, router_type: str) -> RouterSettings | None:
        """Settings block for ``router_type``, if the file has one."""
        if router_type == self.router.type:
            return self.router
        return self.routers.get(router_type)


def _format_errors(prefix: str, error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"])
        where = f"{prefix}.{loc}" if loc else prefix
        parts.append(f"{where}: {err['msg']}")
    return "; ".join(parts)


def _validate(model: type[BaseModel], data: Any, prefix: str) -> Any:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{prefix} must be a mapping")
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {_format_errors(prefix, e)}") from e


def _section(router: dict[str, Any], router_type: str) -> tuple[str, Any]:
    """Find a router block under its camelCase or snake_case key."""
    camel = ROUTER_SECTIONS[router_type]
    snake = router_type.replace("-", "_")
    for key in (camel, snake):
        if key in router:
            return key, router[key]
    return camel, None


def parse_config(raw: Any, source: Path | None = None) -> WorkbenchConfig:
    """Validate an already-parsed YAML document."""
    if not isinstance(raw, dict):
        raise ConfigError("Configuration must be a valid YAML mapping")

    router = raw.get("router")
    if not isinstance(router, dict):
        raise ConfigError('Configuration must include a "router" section')

    router_type = router.get("type")
    if not isinstance(router_type, str) or not router_type:
        raise ConfigError('Router configuration must include "router.type"')
    if router_type not in ROUTER_TYPES:
        raise ConfigError(
            f"Invalid router type: {router_type}. Must be one of: {', '.join(ROUTER_TYPES)}"
        )

    routers: dict[str, _Settings] = {}
    for kind, settings_cls in SETTINGS_BY_TYPE.items():
        key, block = _section(router, kind)
        if block is None:
            if kind != router_type:
                continue
            if kind == "cost-aware":
                raise ConfigError(
                    f'Cost-aware router requires "router.{key}" configuration '
                    f'section with "monthlyBudget"'
                )
        if isinstance(block, dict) and "type" in block and block["type"] != kind:
            raise ConfigError(f"router.{key}.type must be {kind!r} if given")
        routers[kind] = _validate(settings_cls, block, f"router.{key}")

    unknown = set(router) - {"type"} - {
        key for kind in ROUTER_TYPES for key in (ROUTER_SECTIONS[kind], kind.replace("-", "_"))
    }
    if unknown:
        logger.warning(f"Ignoring unknown router settings: {', '.join(sorted(unknown))}")

    return WorkbenchConfig(
        router=routers.pop(router_type),
        routers=routers,
        providers=_validate(ProvidersConfig, raw.get("providers"), "providers"),
        defaults=_validate(DefaultsConfig, raw.get("defaults"), "defaults"),
        source=source,
    )


def _read_yaml(config_path: Path | str) -> tuple[Path, Any]:
    path = Path(config_path).expanduser()
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")
    try:
        with open(path) as f:
            return path, yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read configuration file {path}: {e}") from e


def load_config(config_path: Path | str) -> WorkbenchConfig:
    """Load and validate a YAML config file. Placeholders are left as-is."""
    path, raw = _read_yaml(config_path)
    config = parse_config(raw, source=path)
    logger.debug(f"Loaded {config.router.type} router config from {path}")
    return config


def expand_env_vars(value: Any, environ: dict[str, str] | None = None) -> Any:
    """Recursively replace ``${VAR}`` in strings. Unset variables become ""."""
    env = os.environ if environ is None else environ
    if isinstance(value, str):
        return ENV_PATTERN.sub(lambda m: env.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: expand_env_vars(v, env) for k, v in value.items()}
    if isinstance(value, list):
        return [expand_env_vars(v, env) for v in value]
    return value


def load_config_with_env(config_path: Path | str) -> WorkbenchConfig:
    """Like ``load_config`` but expands ``${VAR}`` in the providers block."""
    path, raw = _read_yaml(config_path)
    if isinstance(raw, dict) and raw.get("providers") is not None:
        raw = {**raw, "providers": expand_env_vars(raw["providers"])}
    return parse_config(raw, source=path)


DEFAULT_CONFIG_YAML = """\
# hybrid-router configuration

# Router configuration
router:
  type: cost-aware  # Options: simple | cost-aware | api-first

  # Cost-aware router settings (used when type is 'cost-aware')
  costAware:
    monthlyBudget: 100.00          # Monthly API budget limit in USD
    defaultLocal: qwen3-coder-30b  # Default local model
    complexityThreshold: 0.8       # Complexity threshold for API escalation (0-1)
    tokenThreshold: 16000          # Token threshold for API escalation
    # complexLocal: llama-3.1-70b    # Tier 2 local model
    # quantumModel: granite-8b-qiskit
    # localProvider: ollama

  # Simple router settings (used when type is 'simple')
  # simple:
  #   defaultModel: qwen3-coder-30b
  #   defaultProvider: ollama

  # API-first router settings (used when type is 'api-first')
  # apiFirst:
  #   defaultModel: claude-opus-4
  #   defaultProvider: anthropic
  #   fallbackToLocal: true
  #   localFallbackModel: qwen3-coder-30b

# Provider configurations
providers:
  ollama:
    baseUrl: http://localhost:11434
    timeout: 120000  # 2 minutes

  anthropic:
    apiKey: ${ANTHROPIC_API_KEY}  # Expanded from the environment
    timeout: 120000

  openai:
    apiKey: ${OPENAI_API_KEY}
    timeout: 120000
    # organization: org-123

# Default inference parameters
defaults:
  temperature: 0.7
  maxTokens: 4096
  stream: false
"""
