"""LLM provider abstraction package."""

from crosscare.infrastructure.llm.provider import (
    ContentFilterError,
    LLMProvider,
    LLMProviderError,
    LLMResponse,
    ProviderTimeoutError,
    RateLimitError,
    is_retryable_provider_error,
)
from crosscare.infrastructure.llm.provider_factory import (
    LLMProviderType,
    clear_provider_cache,
    get_llm_provider,
)

__all__ = [
    # Base types
    "LLMProvider",
    "LLMResponse",
    "LLMProviderError",
    "RateLimitError",
    "ProviderTimeoutError",
    "ContentFilterError",
    "is_retryable_provider_error",
    # Factory
    "get_llm_provider",
    "clear_provider_cache",
    "LLMProviderType",
]
