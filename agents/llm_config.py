"""LLM provider/config and model construction for simulated players' chat."""

import os
from typing import Any

# Type alias for model passed to Agent.run(); pydantic-ai accepts Model | str | None
ModelT = Any

# Default env var names
ENV_OPENAI_API_KEY = "OPENAI_API_KEY"
ENV_ANTHROPIC_API_KEY = "ANTHROPIC_API_KEY"
ENV_GOOGLE_API_KEY = "GOOGLE_GENERATIVE_AI_API_KEY"
ENV_OLLAMA_BASE_URL = "OLLAMA_BASE_URL"
ENV_PROVIDER = "MAFIA_LLM_PROVIDER"
ENV_MODEL = "MAFIA_LLM_MODEL"
ENV_TIMEOUT = "MAFIA_LLM_TIMEOUT"

DEFAULT_TIMEOUT_SECONDS = 10.0

DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-3-5-haiku-latest",
    "google": "gemini-2.0-flash",
    "ollama": "llama3.2",
}


def get_provider() -> str:
    return os.environ.get(ENV_PROVIDER, "openai").lower()


def get_timeout() -> float:
    """Seconds to wait for one chat completion before falling back."""
    raw = os.environ.get(ENV_TIMEOUT)
    try:
        return float(raw) if raw else DEFAULT_TIMEOUT_SECONDS
    except ValueError:
        return DEFAULT_TIMEOUT_SECONDS


def env_key_for_provider(provider: str) -> str | None:
    if provider == "anthropic":
        return os.environ.get(ENV_ANTHROPIC_API_KEY)
    if provider in ("google", "gemini"):
        return os.environ.get(ENV_GOOGLE_API_KEY)
    if provider == "ollama":
        return None  # Local only; no key
    return os.environ.get(ENV_OPENAI_API_KEY)


def is_configured(provider: str | None = None) -> bool:
    """True when the chat model can be reached: an API key is set, or Ollama is configured."""
    provider = provider or get_provider()
    if provider == "ollama":
        return bool(os.environ.get(ENV_OLLAMA_BASE_URL))
    return bool(env_key_for_provider(provider))


def get_model_from_config(provider: str | None = None, model_name: str | None = None) -> ModelT:
    """Build a pydantic-ai Model instance for the configured provider/model."""
    provider = provider or get_provider()
    model_name = model_name or os.environ.get(ENV_MODEL) or DEFAULT_MODELS.get(provider, "gpt-4o-mini")
    key = env_key_for_provider(provider)

    if provider == "anthropic":
        from pydantic_ai.models.anthropic import AnthropicModel
        from pydantic_ai.providers.anthropic import AnthropicProvider
        return AnthropicModel(
            model_name,
            provider=AnthropicProvider(api_key=key) if key else AnthropicProvider(),
        )

    from pydantic_ai.models.openai import OpenAIChatModel
    from pydantic_ai.providers.openai import OpenAIProvider

    if provider in ("google", "gemini"):
        return OpenAIChatModel(
            model_name,
            provider=OpenAIProvider(
                base_url="https://generativelanguage.googleapis.com/v1beta/openai/",
                api_key=key,
            ),
        )
    if provider == "ollama":
        base_url = os.environ.get(ENV_OLLAMA_BASE_URL, "http://localhost:11434/v1")
        return OpenAIChatModel(
            model_name,
            provider=OpenAIProvider(base_url=base_url, api_key="ollama"),
        )
    return OpenAIChatModel(
        model_name,
        provider=OpenAIProvider(api_key=key) if key else OpenAIProvider(),
    )
