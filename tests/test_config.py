"""Tests for YAML configuration loading and validation."""

import pytest
import yaml


def _write(tmp_path, text: str, name: str = "config.yaml"):
    path = tmp_path / name
    path.write_text(text)
    return path


# ═══════════════════════════════════════════════════════════════
# 1. LOADING
# ═══════════════════════════════════════════════════════════════

class TestLoadConfig:
    """Reading config files from disk."""

    def test_default_config_is_valid(self):
        from hybrid_router.config import DEFAULT_CONFIG_YAML, parse_config

        config = parse_config(yaml.safe_load(DEFAULT_CONFIG_YAML))

        assert config.router.type == "cost-aware"
        assert config.router.monthly_budget == 100.0
        assert config.router.token_threshold == 16_000
        assert config.providers.ollama.base_url == "http://localhost:11434"
        assert config.defaults.max_tokens == 4096

    def test_load_keeps_placeholders(self, tmp_path):
        from hybrid_router.config import DEFAULT_CONFIG_YAML, load_config

        config = load_config(_write(tmp_path, DEFAULT_CONFIG_YAML))

        assert config.providers.anthropic.api_key == "${ANTHROPIC_API_KEY}"
        assert config.source == tmp_path / "config.yaml"

    def test_load_with_env_expands_providers(self, tmp_path, monkeypatch):
        from hybrid_router.config import DEFAULT_CONFIG_YAML, load_config_with_env

        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        config = load_config_with_env(_write(tmp_path, DEFAULT_CONFIG_YAML))

        assert config.providers.anthropic.api_key == "sk-ant-test"
        assert config.providers.openai.api_key == ""

    def test_missing_file(self, tmp_path):
        from hybrid_router.config import load_config
        from hybrid_router.errors import ConfigError

        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        from hybrid_router.config import load_config
        from hybrid_router.errors import ConfigError

        with pytest.raises(ConfigError, match="Failed to parse YAML"):
            load_config(_write(tmp_path, "router: [unclosed"))

    def test_empty_file(self, tmp_path):
        from hybrid_router.config import load_config
        from hybrid_router.errors import ConfigError

        with pytest.raises(ConfigError):
            load_config(_write(tmp_path, ""))


# ═══════════════════════════════════════════════════════════════
# 2. VALIDATION
# ═══════════════════════════════════════════════════════════════

class TestValidation:
    """Eager validation of router settings."""

    def test_missing_router_section(self):
        from hybrid_router.config import parse_config
        from hybrid_router.errors import ConfigError

        with pytest.raises(ConfigError, match="router"):
            parse_config({"providers": {}})

    def test_missing_router_type(self):
        from hybrid_router.config import parse_config
        from hybrid_router.errors import ConfigError

        with pytest.raises(ConfigError, match="router.type"):
            parse_config({"router": {"simple": {}}})

    def test_invalid_router_type(self):
        from hybrid_router.config import parse_config
        from hybrid_router.errors import ConfigError

        with pytest.raises(ConfigError, match="Invalid router type: fancy"):
            parse_config({"router": {"type": "fancy"}})

    def test_cost_aware_without_section(self):
        from hybrid_router.config import parse_config
        from hybrid_router.errors import ConfigError

        with pytest.raises(ConfigError, match="monthlyBudget"):
            parse_config({"router": {"type": "cost-aware"}})

    def test_cost_aware_without_budget(self):
        from hybrid_router.config import parse_config
        from hybrid_router.errors import ConfigError

        with pytest.raises(ConfigError, match="monthlyBudget"):
            parse_config({"router": {"type": "cost-aware", "costAware": {"tokenThreshold": 8000}}})

    @pytest.mark.parametrize("budget", [0, -10, "100"])
    def test_bad_budget(self, budget):
        from hybrid_router.config import parse_config
        from hybrid_router.errors import ConfigError

        with pytest.raises(ConfigError, match="router.costAware.monthlyBudget"):
            parse_config({"router": {"type": "cost-aware", "costAware": {"monthlyBudget": budget}}})

    def test_complexity_threshold_range(self):
        from hybrid_router.config import parse_config
        from hybrid_router.errors import ConfigError

        with pytest.raises(ConfigError):
            parse_config({"router": {
                "type": "cost-aware",
                "costAware": {"monthlyBudget": 10, "complexityThreshold": 1.2},
            }})

    def test_snake_case_section_accepted(self):
        from hybrid_router.config import parse_config

        config = parse_config({"router": {
            "type": "cost-aware",
            "cost_aware": {"monthly_budget": 25.5, "default_local": "llama-3.1-70b"},
        }})

        assert config.router.monthly_budget == 25.5
        assert config.router.default_local == "llama-3.1-70b"

    def test_cost_aware_local_models_configurable(self, spend_ledger):
        from hybrid_router.config import parse_config
        from hybrid_router.providers.registry import ProviderRegistry
        from hybrid_router.routing import router_from_config
        from hybrid_router.routing.models import InferenceRequest, TargetType

        config = parse_config({"router": {
            "type": "cost-aware",
            "costAware": {
                "monthlyBudget": 10,
                "quantumModel": "qiskit-coder-3b",
                "localProvider": "lmstudio",
            },
        }})
        assert config.router.quantum_model == "qiskit-coder-3b"
        assert config.router.local_provider == "lmstudio"

        registry = ProviderRegistry()
        registry.register("lmstudio", TargetType.LOCAL)
        router = router_from_config(config, ledger=spend_ledger(0.0), registry=registry)
        decision = router.route(InferenceRequest(prompt="x", task_type="quantum"))

        assert decision.target.provider == "lmstudio"
        assert decision.target.model == "qiskit-coder-3b"

    def test_other_router_sections_kept(self):
        from hybrid_router.config import parse_config

        config = parse_config({"router": {
            "type": "api-first",
            "apiFirst": {"defaultModel": "claude-sonnet-4", "fallbackToLocal": False},
            "costAware": {"monthlyBudget": 30},
        }})

        assert config.router.router_kwargs() == {
            "default_model": "claude-sonnet-4",
            "fallback_to_local": False,
        }
        assert config.settings_for("cost-aware").monthly_budget == 30.0
        assert config.settings_for("simple") is None

    def test_bad_providers_block(self):
        from hybrid_router.config import parse_config
        from hybrid_router.errors import ConfigError

        with pytest.raises(ConfigError, match="providers"):
            parse_config({"router": {"type": "simple"}, "providers": ["ollama"]})


# ═══════════════════════════════════════════════════════════════
# 3. ENVIRONMENT EXPANSION
# ═══════════════════════════════════════════════════════════════

class TestEnvExpansion:
    """${VAR} placeholder expansion."""

    def test_nested_values(self):
        from hybrid_router.config import expand_env_vars

        env = {"KEY": "abc", "HOST": "gpu-box"}
        value = {
            "apiKey": "${KEY}",
            "urls": ["http://${HOST}:11434", "plain"],
            "timeout": 5,
        }

        assert expand_env_vars(value, env) == {
            "apiKey": "abc",
            "urls": ["http://gpu-box:11434", "plain"],
            "timeout": 5,
        }

    def test_unset_becomes_empty(self):
        from hybrid_router.config import expand_env_vars

        assert expand_env_vars("key=${NOPE}", {}) == "key="
