"""
Automated Responder

Answers AI-mode requests with a culturally tailored model reply and
commits it through the automated submission path.

If the model call fails the item is left pending and the provider
error reaches the caller; a later attempt or a counselor can still
answer it.
"""

import asyncio
import re
import time
from typing import Optional
from uuid import UUID

from crosscare.config.logging_config import get_logger
from crosscare.domain.enums.queue_enums import QueueStatus, ResponderType, ResponseMode
from crosscare.infrastructure.database.queue_store import QueueStore
from crosscare.infrastructure.llm.provider import LLMProvider, LLMProviderError, ProviderTimeoutError
from crosscare.infrastructure.metrics import track_llm_request
from crosscare.services.prompt.prompt_builder import ReplyPromptBuilder
from crosscare.services.queue.errors import InvalidTransitionError, ItemNotFoundError
from crosscare.services.queue.response_submission import AI_RESPONDER_ID, ResponseSubmission

logger = get_logger(__name__)

_MARKDOWN_RULES: tuple[tuple[re.Pattern, str], ...] = (
    (re.compile(r"```[\s\S]*?```"), ""),
    (re.compile(r"\*\*(.*?)\*\*"), r"\1"),
    (re.compile(r"__(.*?)__"), r"\1"),
    (re.compile(r"~~(.*?)~~"), r"\1"),
    (re.compile(r"`([^`]+)`"), r"\1"),
    (re.compile(r"\[([^\]]+)\]\([^)]+\)"), r"\1"),
    (re.compile(r"^#{1,6}\s+", re.MULTILINE), ""),
    (re.compile(r"^\s*[-*+]\s+", re.MULTILINE), ""),
    (re.compile(r"^\d+\.\s+", re.MULTILINE), ""),
    (re.compile(r"[*`~]"), ""),
    (re.compile(r"\s+"), " "),
)


def clean_reply(text: str) -> str:
    """Strip markdown so the reply reads as plain chat text."""
    for pattern, replacement in _MARKDOWN_RULES:
        text = pattern.sub(replacement, text)
    return text.strip()


class AutomatedResponder:
    """
    Generates and commits replies for AI-mode items.

    Usage:
        responder = AutomatedResponder(provider, store, submission)
        response_id = await responder.respond(item_id)
    """

    DEFAULT_TIMEOUT_SECONDS = 20.0
    HISTORY_ITEMS = 3

    def __init__(
        self,
        provider: LLMProvider,
        store: QueueStore,
        submission: ResponseSubmission,
        *,
        prompt_builder: Optional[ReplyPromptBuilder] = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._provider = provider
        self._store = store
        self._submission = submission
        self._prompt_builder = prompt_builder or ReplyPromptBuilder()
        self._timeout = timeout_seconds

    async def respond(self, item_id: UUID) -> UUID:
        """
        Reply to a pending AI-mode item.

        Returns:
            ID of the stored response

        Raises:
            ItemNotFoundError: No such item
            InvalidTransitionError: Not a pending AI-mode item
            LLMProviderError: Model call failed; the item stays pending
        """
        item = await self._store.get_item(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        if item.response_mode != ResponseMode.AI or item.status != QueueStatus.PENDING:
            raise InvalidTransitionError(item_id, item.status, QueueStatus.ANSWERED)

        history: list[dict] = []
        earlier = await self._store.list_requester_items(
            item.requester_id,
            before=item.created_at,
            limit=self.HISTORY_ITEMS,
        )
        for previous in earlier:
            history.append({"role": "user", "content": previous.content})
            for reply in previous.responses:
                history.append({"role": "assistant", "content": reply.content})

        prompt = self._prompt_builder.build(item.content, item.cultural_context, history)
        provider_name = self._provider.provider_name

        start = time.monotonic()
        try:
            llm_response = await asyncio.wait_for(
                self._provider.generate(prompt),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            track_llm_request(provider_name, "timeout", time.monotonic() - start)
            logger.warning("Automated reply timed out, item left pending", item_id=str(item_id))
            raise ProviderTimeoutError(provider_name, self._timeout) from e
        except LLMProviderError:
            track_llm_request(provider_name, "error", time.monotonic() - start)
            logger.warning("Automated reply failed, item left pending", item_id=str(item_id))
            raise

        track_llm_request(provider_name, "success", time.monotonic() - start, llm_response.usage)

        text = clean_reply(llm_response.content)
        if not text:
            raise LLMProviderError("Model returned an empty reply", provider=provider_name)

        response_id = await self._submission.submit(
            item_id,
            AI_RESPONDER_ID,
            text,
            responder_type=ResponderType.AI,
            model_id=llm_response.model or self._provider.default_model,
        )
        logger.info("Automated reply recorded", item_id=str(item_id), response_id=str(response_id))
        return response_id
