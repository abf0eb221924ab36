"""Tests configuration and fixtures."""

import asyncio
import json
from datetime import datetime, timedelta
from typing import AsyncGenerator, Optional, Union

import pytest

from crosscare.config import Settings, get_settings
from crosscare.infrastructure.database import DatabaseManager, SqlQueueStore
from crosscare.infrastructure.llm import LLMProvider, LLMResponse, clear_provider_cache
from crosscare.services.prompt.prompt_builder import BuiltPrompt


class FakeClock:
    """Settable naive-UTC clock."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2026, 3, 2, 9, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeProvider(LLMProvider):
    """
    Scripted LLM provider.

    Each generate() call pops the next scripted entry: a string is
    returned as content, an exception is raised. The last entry repeats.
    """

    def __init__(
        self,
        *outputs: Union[str, Exception],
        delay: float = 0.0,
        configured: bool = True,
    ) -> None:
        self._outputs = list(outputs) or [""]
        self._delay = delay
        self._configured = configured
        self.prompts: list[BuiltPrompt] = []

    @property
    def provider_name(self) -> str:
        return "fake"

    @property
    def default_model(self) -> str:
        return "fake-model"

    async def generate(
        self,
        prompt: BuiltPrompt,
        *,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> LLMResponse:
        self.prompts.append(prompt)
        if self._delay:
            await asyncio.sleep(self._delay)
        output = self._outputs.pop(0) if len(self._outputs) > 1 else self._outputs[0]
        if isinstance(output, Exception):
            raise output
        return LLMResponse(
            content=output,
            model="fake-model-001",
            provider="fake",
            usage={"prompt_tokens": 10, "completion_tokens": 20, "total_tokens": 30},
        )

    def is_configured(self) -> bool:
        return self._configured


def analysis_payload(**scores: float) -> str:
    """Well-formed analysis JSON; every score defaults to 8."""
    keys = (
        "culturalSensitivity", "culturalAwareness", "empathy", "professionalism",
        "actionability", "questionQuality", "languageAppropriate", "responseLength",
        "overall",
    )
    payload = {
        "scores": {key: scores.get(key, 8) for key in keys},
        "culturalAnalysis": {
            "assumptions": [],
            "biases": [],
            "strengths": ["Acknowledged family expectations"],
            "culturalMisses": [],
            "appropriateReferences": ["filial piety"],
        },
        "suggestions": {
            "strengths": ["Warm opening"],
            "improvements": ["Ask about support at home"],
            "culturalTips": [],
            "alternativeApproaches": [],
            "questionsToAsk": ["How does your family see this?"],
        },
    }
    return json.dumps(payload)


@pytest.fixture(autouse=True)
def _reset_caches() -> None:
    get_settings.cache_clear()
    clear_provider_cache()
    yield
    get_settings.cache_clear()
    clear_provider_cache()


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings with mock values."""
    return Settings(
        env="development",
        debug=False,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def db(tmp_path) -> AsyncGenerator[DatabaseManager, None]:
    """Fresh SQLite database per test."""
    manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path}/crosscare_test.db")
    await manager.initialize()
    await manager.create_schema()
    yield manager
    await manager.close()


@pytest.fixture
def store(db: DatabaseManager) -> SqlQueueStore:
    return SqlQueueStore(db)


@pytest.fixture
def payload():
    """Builder for well-formed analysis output."""
    return analysis_payload


@pytest.fixture
def make_provider():
    """Factory for scripted providers."""
    return FakeProvider
