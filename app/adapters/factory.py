"""Build the configured language model backend."""

from __future__ import annotations

import logging
import os

from app.adapters.base import LanguageModelBackend, UnconfiguredBackend
from app.config import Settings

logger = logging.getLogger(__name__)

PROVIDERS = ("openai", "groq", "anthropic")

# SDK env vars consulted when BOARDMATE_LLM_API_KEY is not set
_KEY_ENV = {"openai": "OPENAI_API_KEY", "groq": "GROQ_API_KEY", "anthropic": "ANTHROPIC_API_KEY"}


def create_backend(settings: Settings) -> LanguageModelBackend:
    provider = settings.llm_provider.lower()
    if provider not in PROVIDERS:
        raise ValueError(f"unknown LLM provider: {settings.llm_provider!r} (expected one of {PROVIDERS})")

    api_key = settings.llm_api_key or os.environ.get(_KEY_ENV[provider], "")
    model = settings.resolved_llm_model
    logger.info("Using %s backend (model %s)", provider, model)

    if provider == "anthropic":
        from app.adapters.anthropic_messages import AnthropicBackend

        return AnthropicBackend(
            model=model,
            api_key=api_key,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
        )

    from app.adapters.openai_compat import OpenAICompatibleBackend

    return OpenAICompatibleBackend(
        model=model,
        provider=provider,
        api_key=api_key,
        base_url=settings.resolved_llm_base_url,
        max_tokens=settings.llm_max_tokens,
        temperature=settings.llm_temperature,
    )


def create_backend_or_placeholder(settings: Settings) -> LanguageModelBackend:
    """Like ``create_backend`` but keeps the service up when the SDK refuses to start.

    Board and transcript endpoints work without a model; chat requests then
    fail with a backend error naming the reason.
    """
    try:
        return create_backend(settings)
    except ValueError:
        raise
    except Exception as exc:
        logger.warning("Language model backend unavailable: %s", exc)
        return UnconfiguredBackend(str(exc))
