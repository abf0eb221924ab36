"""
OpenAI LLM Provider

Implementation of the LLM provider interface for the OpenAI chat
completions API, with retries on transient failures.
"""

import time
from typing import Optional

from openai import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
    RateLimitError as OpenAIRateLimitError,
)
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from crosscare.config import get_settings
from crosscare.config.logging_config import get_logger
from crosscare.infrastructure.llm.provider import (
    ContentFilterError,
    LLMProvider,
    LLMProviderError,
    LLMResponse,
    RateLimitError,
    is_retryable_provider_error,
)
from crosscare.services.prompt.prompt_builder import BuiltPrompt

logger = get_logger(__name__)


class OpenAIProvider(LLMProvider):
    """
    OpenAI API provider implementation.

    Rate limits, timeouts and 5xx responses are retried with
    exponential backoff; everything else fails immediately.

    Usage:
        provider = OpenAIProvider()
        response = await provider.generate(prompt)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> None:
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key (defaults to settings)
            model: Model identifier (defaults to settings)
            max_tokens: Default max tokens
            temperature: Default temperature
        """
        settings = get_settings()

        self._api_key = api_key or settings.openai.api_key.get_secret_value()
        self._default_model = model or settings.openai.model
        self._default_max_tokens = max_tokens or settings.openai.max_tokens
        self._default_temperature = (
            temperature if temperature is not None else settings.openai.temperature
        )

        self._client: Optional[AsyncOpenAI] = None

    @property
    def provider_name(self) -> str:
        return "openai"

    @property
    def default_model(self) -> str:
        return self._default_model

    def is_configured(self) -> bool:
        """Check if API key is configured."""
        return bool(self._api_key and self._api_key != "sk-CHANGE_ME")

    def _get_client(self) -> AsyncOpenAI:
        """Get or create async client."""
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key)
        return self._client

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception(is_retryable_provider_error),
        reraise=True,
    )
    async def generate(
        self,
        prompt: BuiltPrompt,
        *,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> LLMResponse:
        """
        Generate completion using OpenAI API.

        Args:
            prompt: Built prompt
            model: Model override
            max_tokens: Max tokens override
            temperature: Temperature override

        Returns:
            LLMResponse with generated content
        """
        if not self.is_configured():
            raise LLMProviderError(
                "OpenAI API key not configured",
                provider=self.provider_name,
            )

        client = self._get_client()
        model_name = model or self._default_model

        start_time = time.time()

        try:
            response = await client.chat.completions.create(
                model=model_name,
                messages=prompt.to_messages(),
                max_tokens=max_tokens or prompt.max_tokens or self._default_max_tokens,
                temperature=(
                    temperature if temperature is not None
                    else prompt.temperature if prompt.temperature is not None
                    else self._default_temperature
                ),
            )
        except OpenAIRateLimitError as e:
            logger.warning("OpenAI rate limit hit", error=str(e))
            raise RateLimitError(
                provider=self.provider_name,
                retry_after_seconds=60,
            ) from e
        except (APITimeoutError, APIConnectionError) as e:
            logger.warning("OpenAI connection problem", error=str(e))
            raise LLMProviderError(
                f"OpenAI connection error: {e}",
                provider=self.provider_name,
                is_retryable=True,
                original_error=e,
            ) from e
        except APIStatusError as e:
            logger.error("OpenAI API error", status_code=e.status_code, error=str(e))
            raise LLMProviderError(
                f"OpenAI API error: {e}",
                provider=self.provider_name,
                is_retryable=e.status_code >= 500,
                original_error=e,
            ) from e
        except APIError as e:
            logger.error("OpenAI API error", error=str(e))
            raise LLMProviderError(
                f"OpenAI API error: {e}",
                provider=self.provider_name,
                original_error=e,
            ) from e
        except Exception as e:
            logger.error("Unexpected OpenAI client error", error_type=type(e).__name__, error=str(e))
            raise LLMProviderError(
                f"OpenAI client error: {e}",
                provider=self.provider_name,
                original_error=e,
            ) from e

        latency_ms = int((time.time() - start_time) * 1000)

        if not response.choices:
            raise LLMProviderError(
                "OpenAI returned no choices",
                provider=self.provider_name,
            )

        choice = response.choices[0]
        content = choice.message.content or ""
        finish_reason = choice.finish_reason or "stop"

        if finish_reason == "content_filter":
            raise ContentFilterError(
                provider=self.provider_name,
                filter_reason="Content was filtered by OpenAI safety systems",
            )

        usage = {
            "prompt_tokens": response.usage.prompt_tokens if response.usage else 0,
            "completion_tokens": response.usage.completion_tokens if response.usage else 0,
            "total_tokens": response.usage.total_tokens if response.usage else 0,
        }

        logger.debug(
            "OpenAI completion generated",
            model=model_name,
            tokens=usage["total_tokens"],
            latency_ms=latency_ms,
        )

        return LLMResponse(
            content=content,
            finish_reason=finish_reason,
            usage=usage,
            model=model_name,
            provider=self.provider_name,
            latency_ms=latency_ms,
        )
