"""
LLM Provider Abstract Interface

Contract for text-completion providers. Providers take a built prompt
and return unconstrained text; nothing here assumes the text is
well-formed. Callers parse and validate it themselves.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from crosscare.services.prompt.prompt_builder import BuiltPrompt


@dataclass
class LLMResponse:
    """
    Response from LLM provider.

    Attributes:
        content: Generated text, untrusted
        finish_reason: Why generation stopped
        usage: Token usage statistics
        model: Model identifier used
        provider: Provider name
        latency_ms: Response time in milliseconds
    """

    content: str
    finish_reason: str = "stop"
    usage: dict = field(default_factory=dict)
    model: str = ""
    provider: str = ""
    latency_ms: int = 0

    @property
    def total_tokens(self) -> int:
        return self.usage.get("total_tokens", 0)

    @property
    def input_tokens(self) -> int:
        return self.usage.get("prompt_tokens", 0)

    @property
    def output_tokens(self) -> int:
        return self.usage.get("completion_tokens", 0)


class LLMProvider(ABC):
    """
    Abstract LLM provider interface.

    Implementations raise LLMProviderError (or a subclass) for every
    failure, so callers need exactly one except clause.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get provider name for logging/tracking."""
        pass

    @property
    @abstractmethod
    def default_model(self) -> str:
        """Get default model identifier."""
        pass

    @abstractmethod
    async def generate(
        self,
        prompt: BuiltPrompt,
        *,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> LLMResponse:
        """
        Generate completion from prompt.

        Args:
            prompt: Built prompt with system and user messages
            model: Optional model override
            max_tokens: Optional max tokens override
            temperature: Optional temperature override

        Returns:
            LLMResponse with generated content

        Raises:
            LLMProviderError: On any provider failure
        """
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """Check if API key and settings are configured."""
        pass


class LLMProviderError(Exception):
    """Base exception for LLM provider errors."""

    def __init__(
        self,
        message: str,
        provider: str,
        is_retryable: bool = False,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.is_retryable = is_retryable
        self.original_error = original_error


class RateLimitError(LLMProviderError):
    """Rate limit exceeded error."""

    def __init__(
        self,
        provider: str,
        retry_after_seconds: Optional[int] = None,
    ) -> None:
        super().__init__(
            f"Rate limit exceeded for {provider}",
            provider=provider,
            is_retryable=True,
        )
        self.retry_after_seconds = retry_after_seconds


class ProviderTimeoutError(LLMProviderError):
    """Provider did not answer within the caller's deadline."""

    def __init__(self, provider: str, timeout_seconds: float) -> None:
        super().__init__(
            f"{provider} did not respond within {timeout_seconds}s",
            provider=provider,
            is_retryable=True,
        )
        self.timeout_seconds = timeout_seconds


class ContentFilterError(LLMProviderError):
    """Content was filtered by provider's safety systems."""

    def __init__(self, provider: str, filter_reason: str = "") -> None:
        super().__init__(
            f"Content filtered by {provider}: {filter_reason}",
            provider=provider,
            is_retryable=False,
        )
        self.filter_reason = filter_reason


def is_retryable_provider_error(error: BaseException) -> bool:
    """Retry predicate shared by provider implementations."""
    return isinstance(error, LLMProviderError) and error.is_retryable
