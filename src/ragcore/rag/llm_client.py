"""LiteLLM client wrapper: completion, embedding, and API key validation.

Every embedding and generation call made by the litellm-backed gateways
routes through this module. The core never retries; ``num_retries`` is
passed straight to LiteLLM and defaults to 0 so retry policy stays with
the caller.
"""

from __future__ import annotations

import os
from typing import Any

import litellm

from ragcore.errors import ConfigurationError

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True
litellm.set_verbose = False  # type: ignore[assignment]


# ------------------------------------------------------------------
# Provider → env var mapping for API key validation
# ------------------------------------------------------------------

_PROVIDER_ENV: dict[str, str | None] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "groq": "GROQ_API_KEY",
    "together_ai": "TOGETHERAI_API_KEY",
    "ollama": None,  # Local, no key required
    "ollama_chat": None,
}


def provider_of(model: str) -> str:
    """Return the provider prefix of a 'provider/model' string ('openai' if absent)."""
    return model.split("/")[0].lower() if "/" in model else "openai"


def validate_api_key(model: str) -> None:
    """Check that the required API key env var is set for *model*.

    Raises:
        ConfigurationError: If the required key is missing from environment.
    """
    provider = provider_of(model)
    env_var = _PROVIDER_ENV.get(provider, f"{provider.upper()}_API_KEY")

    if env_var is None:
        return

    if not os.getenv(env_var):
        raise ConfigurationError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable.",
            context={"provider": provider, "env_var": env_var},
        )


def complete(
    model: str,
    messages: list[dict],
    max_tokens: int = 1024,
    temperature: float = 0.7,
    num_retries: int = 0,
) -> Any:
    """Call litellm.completion() once and return the raw response."""
    return litellm.completion(
        model=model,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
        num_retries=num_retries,
    )


def embed(model: str, texts: list[str], num_retries: int = 0) -> list[list[float]]:
    """Call litellm.embedding() for *texts*. Returns one vector per text, in order."""
    response = litellm.embedding(model=model, input=texts, num_retries=num_retries)
    return [item["embedding"] for item in response.data]
