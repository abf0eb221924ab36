"""
Google Gemini LLM Provider

Implementation of the LLM provider interface for Google Gemini API.
"""

import time
from typing import Optional

import google.generativeai as genai
from google.generativeai.types import GenerationConfig
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

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


class GeminiProvider(LLMProvider):
    """
    Google Gemini API provider implementation.

    Gemini has no separate system role in the chat API, so the system
    prompt, context and prior turns are flattened into one message.

    Usage:
        provider = GeminiProvider()
        response = await provider.generate(prompt)
    """

    # Counseling transcripts discuss self-harm and abuse; only block the
    # most severe dangerous content.
    SAFETY_SETTINGS = [
        {
            "category": "HARM_CATEGORY_HARASSMENT",
            "threshold": "BLOCK_MEDIUM_AND_ABOVE",
        },
        {
            "category": "HARM_CATEGORY_HATE_SPEECH",
            "threshold": "BLOCK_MEDIUM_AND_ABOVE",
        },
        {
            "category": "HARM_CATEGORY_SEXUALLY_EXPLICIT",
            "threshold": "BLOCK_MEDIUM_AND_ABOVE",
        },
        {
            "category": "HARM_CATEGORY_DANGEROUS_CONTENT",
            "threshold": "BLOCK_ONLY_HIGH",
        },
    ]

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
    ) -> None:
        settings = get_settings()

        self._api_key = api_key or settings.gemini.api_key.get_secret_value()
        self._default_model = model or settings.gemini.model
        self._configured = False

        if self._api_key and self._api_key != "CHANGE_ME":
            genai.configure(api_key=self._api_key)
            self._configured = True

    @property
    def provider_name(self) -> str:
        return "gemini"

    @property
    def default_model(self) -> str:
        return self._default_model

    def is_configured(self) -> bool:
        return self._configured

    @staticmethod
    def _flatten(prompt: BuiltPrompt) -> str:
        """Render a built prompt as a single Gemini message."""
        parts = [f"System Instructions:\n{prompt.system_prompt}"]
        if prompt.user_context:
            parts.append(f"Context: {prompt.user_context}")
        for message in prompt.conversation_history:
            parts.append(f"{message.get('role', 'user')}: {message.get('content', '')}")
        parts.append(f"---\n\n{prompt.user_message}")
        return "\n\n".join(parts)

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
        Generate completion using Gemini API.

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
                "Gemini API key not configured",
                provider=self.provider_name,
            )

        model_name = model or self._default_model
        gemini_model = genai.GenerativeModel(
            model_name=model_name,
            safety_settings=self.SAFETY_SETTINGS,
        )
        full_prompt = self._flatten(prompt)

        start_time = time.time()

        try:
            response = await gemini_model.generate_content_async(
                full_prompt,
                generation_config=GenerationConfig(
                    max_output_tokens=max_tokens or prompt.max_tokens,
                    temperature=temperature if temperature is not None else prompt.temperature,
                ),
            )
        except Exception as e:
            error_msg = str(e).lower()

            if "quota" in error_msg or "rate" in error_msg or "429" in error_msg:
                logger.warning("Gemini rate limit hit", error=str(e))
                raise RateLimitError(
                    provider=self.provider_name,
                    retry_after_seconds=60,
                ) from e

            if "safety" in error_msg or "blocked" in error_msg:
                raise ContentFilterError(
                    provider=self.provider_name,
                    filter_reason=str(e),
                ) from e

            logger.error("Gemini API error", error=str(e))
            raise LLMProviderError(
                f"Gemini API error: {e}",
                provider=self.provider_name,
                is_retryable="deadline" in error_msg or "unavailable" in error_msg,
                original_error=e,
            ) from e

        latency_ms = int((time.time() - start_time) * 1000)

        if response.prompt_feedback and response.prompt_feedback.block_reason:
            raise ContentFilterError(
                provider=self.provider_name,
                filter_reason=str(response.prompt_feedback.block_reason),
            )

        try:
            content = response.text or ""
        except ValueError as e:
            # .text raises when the candidate was stopped by safety filters
            raise ContentFilterError(
                provider=self.provider_name,
                filter_reason=str(e),
            ) from e

        usage_metadata = getattr(response, "usage_metadata", None)
        usage = {
            "prompt_tokens": getattr(usage_metadata, "prompt_token_count", 0) or 0,
            "completion_tokens": getattr(usage_metadata, "candidates_token_count", 0) or 0,
            "total_tokens": getattr(usage_metadata, "total_token_count", 0) or 0,
        }

        logger.debug(
            "Gemini completion generated",
            model=model_name,
            latency_ms=latency_ms,
        )

        return LLMResponse(
            content=content,
            finish_reason="stop",
            usage=usage,
            model=model_name,
            provider=self.provider_name,
            latency_ms=latency_ms,
        )
