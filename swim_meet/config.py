"""
Configuration management for Swim Meet.
Supports a ~/.swim-meet YAML file for API keys, models and endpoints,
with environment variables as a fallback for keys.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml


ENV_KEYS: dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "google": "GEMINI_API_KEY",
    "perplexity": "PERPLEXITY_API_KEY",
    "grok": "XAI_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
}


@dataclass
class ProviderConfig:
    provider: str
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    model_name: Optional[str] = None
    max_tokens: Optional[int] = None


@dataclass
class Config:
    provider_configs: dict[str, ProviderConfig] = field(default_factory=dict)
    default_providers: list[str] = field(default_factory=lambda: ["openai", "anthropic"])
    max_tokens: int = 2000
    user_id: str = "default-user"
    store_path: Optional[str] = None
    log_level: str = "WARNING"

    def get_provider_config(self, provider: str) -> ProviderConfig:
        key = provider.lower()
        return self.provider_configs.get(key) or ProviderConfig(provider=key)

    def get_api_key(self, provider: str) -> Optional[str]:
        key = provider.lower()
        configured = self.provider_configs.get(key)
        if configured and configured.api_key:
            return configured.api_key
        env_name = ENV_KEYS.get(key)
        return os.environ.get(env_name) if env_name else None

    def credentials(self) -> dict[str, str]:
        """Flat provider-id -> key map from the config file and environment."""
        result = {}
        for provider in set(ENV_KEYS) | set(self.provider_configs):
            api_key = self.get_api_key(provider)
            if api_key:
                result[provider] = api_key
        return result

    def get_configured_providers(self) -> list[str]:
        return sorted(self.credentials().keys())


CONFIG_FILE_NAME = ".swim-meet"
DEFAULT_STORE_NAME = ".swim-meet-store.json"


def get_config_path() -> Path:
    override = os.environ.get("SWIM_MEET_CONFIG")
    if override:
        return Path(override)
    return Path.home() / CONFIG_FILE_NAME


def get_store_path(config: Config) -> Path:
    if config.store_path:
        return Path(config.store_path).expanduser()
    return Path.home() / DEFAULT_STORE_NAME


def load_config() -> Config:
    config_path = get_config_path()
    if not config_path.exists():
        return Config()

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return parse_config(data)


def parse_config(data: dict) -> Config:
    provider_configs = {}

    for name, provider_data in (data.get("providers") or {}).items():
        provider_data = provider_data or {}
        provider_configs[name.lower()] = ProviderConfig(
            provider=name.lower(),
            api_key=provider_data.get("api_key"),
            base_url=provider_data.get("base_url"),
            model_name=provider_data.get("model_name"),
            max_tokens=provider_data.get("max_tokens"),
        )

    default_providers = data.get("default_providers") or ["openai", "anthropic"]

    return Config(
        provider_configs=provider_configs,
        default_providers=[p.lower() for p in default_providers],
        max_tokens=data.get("max_tokens", 2000),
        user_id=data.get("user_id", "default-user"),
        store_path=data.get("store_path"),
        log_level=data.get("log_level", "WARNING"),
    )


def save_config(config: Config) -> None:
    config_path = get_config_path()

    data = {
        "default_providers": config.default_providers,
        "max_tokens": config.max_tokens,
        "user_id": config.user_id,
        "log_level": config.log_level,
        "providers": {},
    }

    if config.store_path:
        data["store_path"] = config.store_path

    for name, provider_config in config.provider_configs.items():
        provider_data = {}
        if provider_config.api_key:
            provider_data["api_key"] = provider_config.api_key
        if provider_config.base_url:
            provider_data["base_url"] = provider_config.base_url
        if provider_config.model_name:
            provider_data["model_name"] = provider_config.model_name
        if provider_config.max_tokens:
            provider_data["max_tokens"] = provider_config.max_tokens
        if provider_data:
            data["providers"][name] = provider_data

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, allow_unicode=True)


def create_sample_config() -> None:
    config_path = get_config_path()
    if config_path.exists():
        return

    sample_config = """# Swim Meet Configuration
# Fill in the providers you have keys for. Keys may also come from
# OPENAI_API_KEY, ANTHROPIC_API_KEY, GEMINI_API_KEY, PERPLEXITY_API_KEY,
# XAI_API_KEY and DEEPSEEK_API_KEY.

default_providers:
  - openai
  - anthropic

max_tokens: 2000
user_id: default-user
log_level: WARNING

# store_path: ~/.swim-meet-store.json

# Each provider accepts: api_key, and optionally base_url, model_name, max_tokens
providers:
  openai:
    api_key: "your-api-key"
    model_name: "gpt-4o"

  anthropic:
    api_key: "your-api-key"
    model_name: "claude-sonnet-4-20250514"

  google:
    api_key: "your-api-key"
    model_name: "gemini-2.5-flash"
"""

    with open(config_path, "w", encoding="utf-8") as f:
        f.write(sample_config)
