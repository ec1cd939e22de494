"""Provider adapter factory.

Adapters hold SDK clients with their own connection pools; build them once at
startup and close them at shutdown instead of creating them per request.
"""

from __future__ import annotations

import anthropic
from google import genai
from openai import AsyncOpenAI

from modelcompare.config import Settings
from modelcompare.infrastructure.ai.anthropic_adapter import AnthropicAdapter
from modelcompare.infrastructure.ai.base import ProviderAdapter
from modelcompare.infrastructure.ai.gemini_adapter import GeminiAdapter
from modelcompare.infrastructure.ai.openai_adapter import OpenAIChatAdapter
from modelcompare.shared.exceptions import ConfigurationError
from modelcompare.shared.logging import get_logger

logger = get_logger(__name__)

_API_KEY_ENV = {
    "chatgpt": "OPENAI_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "claude": "ANTHROPIC_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
}


def _require_key(provider: str, value: str) -> str:
    if not value:
        raise ConfigurationError(
            f"{_API_KEY_ENV[provider]} is not configured",
            details={"provider": provider},
        )
    return value


def _direct_api_keys(settings: Settings) -> dict[str, str]:
    return {
        "chatgpt": settings.openai_api_key,
        "gemini": settings.gemini_api_key,
        "claude": settings.anthropic_api_key,
        "deepseek": settings.deepseek_api_key,
    }


def _build_direct_adapter(name: str, settings: Settings) -> ProviderAdapter:
    retry = settings.retry_provider == name
    retry_kwargs = {
        "retry_on_overload": retry,
        "retry_delay_seconds": settings.retry_delay_seconds,
    }

    if name == "chatgpt":
        client = AsyncOpenAI(
            api_key=_require_key(name, settings.openai_api_key),
            base_url=settings.openai_base_url,
        )
        return OpenAIChatAdapter(
            name=name,
            client=client,
            model=settings.openai_model,
            max_tokens=settings.openai_max_tokens,
            **retry_kwargs,
        )

    if name == "gemini":
        client = genai.Client(api_key=_require_key(name, settings.gemini_api_key))
        return GeminiAdapter(
            name=name,
            client=client,
            model=settings.gemini_model,
            max_tokens=settings.gemini_max_tokens,
            **retry_kwargs,
        )

    if name == "claude":
        client = anthropic.AsyncAnthropic(api_key=_require_key(name, settings.anthropic_api_key))
        return AnthropicAdapter(
            name=name,
            client=client,
            model=settings.anthropic_model,
            max_tokens=settings.anthropic_max_tokens,
            **retry_kwargs,
        )

    if name == "deepseek":
        client = AsyncOpenAI(
            api_key=_require_key(name, settings.deepseek_api_key),
            base_url=settings.deepseek_base_url,
        )
        return OpenAIChatAdapter(
            name=name,
            client=client,
            model=settings.deepseek_model,
            max_tokens=settings.deepseek_max_tokens,
            supports_images=False,
            **retry_kwargs,
        )

    raise ConfigurationError(f"Unknown provider: {name}")


def _openrouter_models(settings: Settings) -> dict[str, tuple[str, int]]:
    return {
        "chatgpt": (settings.openrouter_model_chatgpt, settings.openai_max_tokens),
        "gemini": (settings.openrouter_model_gemini, settings.gemini_max_tokens),
        "claude": (settings.openrouter_model_claude, settings.anthropic_max_tokens),
        "deepseek": (settings.openrouter_model_deepseek, settings.deepseek_max_tokens),
    }


def _build_openrouter_adapters(settings: Settings) -> dict[str, ProviderAdapter]:
    if not settings.openrouter_api_key:
        raise ConfigurationError("OPENROUTER_API_KEY is not configured")

    headers: dict[str, str] = {}
    if settings.openrouter_site_url:
        headers["HTTP-Referer"] = settings.openrouter_site_url
    if settings.openrouter_app_name:
        headers["X-Title"] = settings.openrouter_app_name

    # One gateway client shared by every column
    client = AsyncOpenAI(
        api_key=settings.openrouter_api_key,
        base_url=settings.openrouter_base_url,
        default_headers=headers or None,
    )
    models = _openrouter_models(settings)

    adapters: dict[str, ProviderAdapter] = {}
    for name in settings.enabled_providers:
        model, max_tokens = models[name]
        adapters[name] = OpenAIChatAdapter(
            name=name,
            client=client,
            model=model,
            max_tokens=max_tokens,
            supports_images=name != "deepseek",
            retry_on_overload=settings.retry_provider == name,
            retry_delay_seconds=settings.retry_delay_seconds,
        )
    return adapters


def build_provider_adapters(settings: Settings) -> dict[str, ProviderAdapter]:
    """Build one adapter per enabled provider, in configuration order.

    Raises:
        ConfigurationError: If a required API key is missing.
    """
    if settings.ai_gateway == "openrouter":
        adapters = _build_openrouter_adapters(settings)
    else:
        # Every key is checked before the first SDK client opens a pool
        keys = _direct_api_keys(settings)
        for name in settings.enabled_providers:
            _require_key(name, keys[name])
        adapters = {
            name: _build_direct_adapter(name, settings) for name in settings.enabled_providers
        }

    logger.info(
        "provider_adapters_initialized",
        gateway=settings.ai_gateway,
        providers=list(adapters),
        models={name: adapter.model for name, adapter in adapters.items()},
        retry_provider=settings.retry_provider,
    )
    return adapters


async def close_provider_adapters(adapters: dict[str, ProviderAdapter] | None) -> None:
    """Close every distinct SDK client once."""
    if not adapters:
        return

    closed: set[int] = set()
    for adapter in adapters.values():
        client = getattr(adapter, "client", None)
        if client is not None and id(client) in closed:
            continue
        await adapter.close()
        if client is not None:
            closed.add(id(client))
