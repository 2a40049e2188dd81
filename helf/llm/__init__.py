"""LLM adapter package."""
from helf.llm.base import (
    LLMConfig,
    LLMProvider,
    LLMResponse,
    Message,
)

__all__ = [
    "LLMProvider",
    "LLMConfig",
    "LLMResponse",
    "Message",
    "get_llm_provider",
    "cleanup_llm_provider",
]


# Module-level singleton instance
_provider_instance: LLMProvider | None = None


def get_llm_provider() -> LLMProvider:
    """
    Get the singleton LLM provider instance.

    Returns the appropriate provider based on settings.
    Reuses one HTTP connection pool for every assistant request.
    """
    global _provider_instance

    if _provider_instance is not None:
        return _provider_instance

    from helf.config.settings import get_settings

    settings = get_settings()

    if settings.llm_provider == "openai":
        from helf.llm.openai_provider import OpenAIProvider
        _provider_instance = OpenAIProvider()
    else:
        raise ValueError(f"Unknown LLM provider: {settings.llm_provider}")

    return _provider_instance


async def cleanup_llm_provider():
    """
    Clean up the LLM provider singleton.

    Closes HTTP connections. Called during application shutdown.
    """
    global _provider_instance

    if _provider_instance is not None:
        await _provider_instance.close()
        _provider_instance = None
