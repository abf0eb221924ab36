"""Prompt construction for analysis and automated replies."""

from crosscare.services.prompt.cultural_reference import (
    CULTURAL_PROFILES,
    CulturalProfile,
    get_cultural_profile,
)
from crosscare.services.prompt.prompt_builder import (
    AnalysisPromptBuilder,
    BuiltPrompt,
    ReplyPromptBuilder,
)

__all__ = [
    "AnalysisPromptBuilder",
    "BuiltPrompt",
    "CULTURAL_PROFILES",
    "CulturalProfile",
    "ReplyPromptBuilder",
    "get_cultural_profile",
]
