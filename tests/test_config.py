"""Tests for YAML configuration loading and credential resolution."""

import pytest
import yaml

from swim_meet.config import (
    Config,
    ProviderConfig,
    create_sample_config,
    get_store_path,
    load_config,
    parse_config,
    save_config,
)


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    path = tmp_path / "swim-meet.yaml"
    monkeypatch.setenv("SWIM_MEET_CONFIG", str(path))
    for name in (
        "OPENAI_API_KEY",
        "ANTHROPIC_API_KEY",
        "GEMINI_API_KEY",
        "PERPLEXITY_API_KEY",
        "XAI_API_KEY",
        "DEEPSEEK_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    return path


class TestParseConfig:
    def test_empty_document_gives_defaults(self):
        config = parse_config({})
        assert config.default_providers == ["openai", "anthropic"]
        assert config.max_tokens == 2000
        assert config.provider_configs == {}

    def test_providers_are_lowercased(self):
        config = parse_config({
            "default_providers": ["OpenAI", "Grok"],
            "providers": {"OpenAI": {"api_key": "sk-1", "model_name": "gpt-4o-mini"}},
        })
        assert config.default_providers == ["openai", "grok"]
        assert config.get_provider_config("openai").model_name == "gpt-4o-mini"

    def test_provider_without_settings(self):
        config = parse_config({"providers": {"deepseek": None}})
        assert config.get_provider_config("deepseek").api_key is None


class TestCredentials:
    def test_file_key_wins_over_environment(self, config_path, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "from-env")
        config = Config(provider_configs={"openai": ProviderConfig(provider="openai", api_key="from-file")})
        assert config.get_api_key("openai") == "from-file"

    def test_environment_fallback(self, config_path, monkeypatch):
        monkeypatch.setenv("XAI_API_KEY", "xai-key")
        monkeypatch.setenv("GEMINI_API_KEY", "gemini-key")
        config = Config()
        assert config.credentials() == {"grok": "xai-key", "google": "gemini-key"}
        assert config.get_configured_providers() == ["google", "grok"]

    def test_no_keys_anywhere(self, config_path):
        assert Config().credentials() == {}


class TestConfigFile:
    def test_missing_file_gives_defaults(self, config_path):
        assert not config_path.exists()
        assert load_config().user_id == "default-user"

    def test_save_and_load(self, config_path):
        config = Config(
            provider_configs={"anthropic": ProviderConfig(provider="anthropic", api_key="ant-key")},
            default_providers=["anthropic", "google"],
            user_id="alice",
        )
        save_config(config)

        loaded = load_config()
        assert loaded.user_id == "alice"
        assert loaded.default_providers == ["anthropic", "google"]
        assert loaded.get_api_key("anthropic") == "ant-key"

    def test_sample_config_is_valid_yaml(self, config_path):
        create_sample_config()
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        assert "openai" in data["providers"]
        assert parse_config(data).max_tokens == 2000

    def test_sample_config_does_not_overwrite(self, config_path):
        config_path.write_text("user_id: bob\n", encoding="utf-8")
        create_sample_config()
        assert load_config().user_id == "bob"


def test_store_path_override(tmp_path):
    config = Config(store_path=str(tmp_path / "store.json"))
    assert get_store_path(config) == tmp_path / "store.json"
