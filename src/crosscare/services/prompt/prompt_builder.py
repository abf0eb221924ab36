"""
Prompt Builder

Constructs the prompts sent to the language model: the scoring request
for a counselor response, and the reply request for AI-mode queue items.

Both builders are pure. Identical input always yields an identical
prompt, which keeps the result parser testable against fixed payloads.

CLINICAL_REVIEW_REQUIRED: Rubric wording and reply guidance should be
validated by the counseling team.
"""

import json
from dataclasses import dataclass, field
from typing import Optional

from crosscare.config.logging_config import get_logger
from crosscare.domain.enums.queue_enums import CulturalBackground
from crosscare.domain.models.feedback import (
    CULTURAL_ANALYSIS_FIELDS,
    SCORE_FIELDS,
    SUGGESTION_FIELDS,
    ResponseContext,
)
from crosscare.services.prompt.cultural_reference import REPLY_GUIDANCE, get_cultural_profile

logger = get_logger(__name__)


@dataclass
class BuiltPrompt:
    """
    Complete prompt ready for LLM.

    Attributes:
        system_prompt: System/instruction prompt
        user_context: Context about the user/situation
        conversation_history: Prior chat messages, OpenAI format
        user_message: Current user message
        max_tokens: Suggested max tokens for response
        temperature: Suggested temperature setting
    """

    system_prompt: str
    user_context: str = ""
    conversation_history: list[dict] = field(default_factory=list)
    user_message: str = ""
    max_tokens: int = 512
    temperature: float = 0.7

    def to_messages(self) -> list[dict]:
        """
        Convert to OpenAI-style message format.

        Returns:
            List of message dictionaries
        """
        messages = [{"role": "system", "content": self.system_prompt}]

        if self.user_context:
            messages.append({
                "role": "system",
                "content": f"Context: {self.user_context}"
            })

        messages.extend(self.conversation_history)

        if self.user_message:
            messages.append({"role": "user", "content": self.user_message})

        return messages


def _output_schema() -> str:
    """JSON skeleton the model must fill, keyed by the wire field names."""
    schema = {
        "scores": {key: "number (1-10)" for _, key in SCORE_FIELDS},
        "culturalAnalysis": {key: ["string"] for _, key in CULTURAL_ANALYSIS_FIELDS},
        "suggestions": {key: ["string"] for _, key in SUGGESTION_FIELDS},
    }
    return json.dumps(schema, indent=2)


class AnalysisPromptBuilder:
    """
    Builds the cultural-competency scoring request for one exchange.

    The system prompt carries the rubric and output schema and never
    varies. The user message carries the reference-table entry for the
    requester's background, the recent turns and both verbatim texts.
    """

    SYSTEM_PROMPT: str = f"""You are an expert cultural competency trainer and supervisor for mental health counselors. Your role is to analyze counselor responses to students from diverse cultural backgrounds and provide constructive feedback.

SCORING GUIDELINES:
- 9-10: Excellent - Demonstrates exceptional cultural competency and therapeutic skill
- 7-8: Good - Shows solid understanding with minor areas for improvement
- 5-6: Needs Improvement - Adequate but missing key cultural considerations
- 3-4: Poor - Significant cultural missteps or therapeutic concerns
- 1-2: Very Poor - Potentially harmful or highly inappropriate

ANALYSIS REQUIREMENTS:
1. Be specific and constructive in feedback
2. Highlight cultural strengths and missed opportunities
3. Provide actionable improvement suggestions
4. Consider the cultural background's specific factors
5. Assess potential biases or assumptions
6. Suggest culturally appropriate questions or approaches

OUTPUT FORMAT:
Respond with a single JSON object and nothing else. Every score is a number
from 1 to 10. Every list is an array of strings and may be empty.
{_output_schema()}

Be thorough, fair, and focused on helping counselors improve their cultural competency while maintaining therapeutic effectiveness."""

    RUBRIC: tuple[str, ...] = (
        "CULTURAL SENSITIVITY: How well does the response respect and acknowledge the student's cultural background?",
        "CULTURAL AWARENESS: Does the counselor demonstrate understanding of cultural factors that may be influencing the student?",
        "EMPATHY: How well does the response show understanding and emotional connection?",
        "PROFESSIONALISM: Are appropriate therapeutic boundaries maintained?",
        "ACTIONABILITY: Does the response provide concrete, helpful guidance?",
        "QUESTION QUALITY: Are the questions asked thoughtful and culturally appropriate?",
        "LANGUAGE APPROPRIATENESS: Is the language used suitable for this cultural context?",
        "RESPONSE LENGTH: Is the response appropriately detailed (not too brief or overwhelming)?",
    )

    TEMPERATURE: float = 0.3
    MAX_TOKENS: int = 2000
    DEFAULT_HISTORY_WINDOW: int = 10

    def __init__(self, history_window: int = DEFAULT_HISTORY_WINDOW) -> None:
        self._history_window = history_window

    def build(self, context: ResponseContext) -> BuiltPrompt:
        """
        Build the scoring request for one counselor response.

        Args:
            context: The exchange being analysed

        Returns:
            BuiltPrompt with the rubric as system prompt
        """
        prompt = BuiltPrompt(
            system_prompt=self.SYSTEM_PROMPT,
            user_message=self._build_request(context),
            max_tokens=self.MAX_TOKENS,
            temperature=self.TEMPERATURE,
        )

        logger.debug(
            "Analysis prompt built",
            cultural_background=context.cultural_background.value,
            history_turns=min(len(context.conversation_history), self._history_window),
        )

        return prompt

    def _build_request(self, context: ResponseContext) -> str:
        background = context.cultural_background.value
        profile = get_cultural_profile(context.cultural_background)
        factors = ", ".join(profile.common_factors)
        sensitivities = ", ".join(profile.sensitivities)
        strengths = ", ".join(profile.strengths)

        history = context.conversation_history[-self._history_window:] if self._history_window else []
        if history:
            lines = "\n".join(f"{i}. {turn}" for i, turn in enumerate(history, start=1))
            conversation = f"Previous Messages:\n{lines}"
        else:
            conversation = "This is the first message in the conversation."

        rubric = "\n".join(f"{i}. {item}" for i, item in enumerate(self.RUBRIC, start=1))

        return f"""CULTURAL COMPETENCY ANALYSIS REQUEST

STUDENT CONTEXT:
- Cultural Background: {background}
- Cultural Factors: {factors}
- Cultural Sensitivities: {sensitivities}
- Cultural Strengths: {strengths}
- Age: {context.student_age if context.student_age is not None else "Not specified"}
- Session Number: {context.session_number if context.session_number is not None else "First interaction"}
- Urgency Level: {context.urgency_level or "Not specified"}

CONVERSATION CONTEXT:
{conversation}

STUDENT'S MESSAGE:
"{context.student_message}"

COUNSELOR'S RESPONSE TO ANALYZE:
"{context.counselor_response}"

ANALYSIS INSTRUCTIONS:
Please analyze the counselor's response for cultural competency and therapeutic effectiveness. Consider:

{rubric}

SPECIFIC CULTURAL CONSIDERATIONS FOR {background.upper()}:
- Common factors to consider: {factors}
- Cultural sensitivities to be aware of: {sensitivities}
- Cultural strengths to acknowledge: {strengths}

Please provide your analysis in the specified JSON format."""


class ReplyPromptBuilder:
    """
    Builds the reply request for an AI-mode queue item.

    The base companion prompt is extended with guidance for the
    requester's cultural background.
    """

    BASE_SYSTEM_PROMPT: str = """You are CrossCare, a culturally-sensitive mental health companion for college students.

CORE PRINCIPLES:
- Listen first, advise second. Always validate emotions before offering solutions
- Ask thoughtful follow-up questions to understand the full situation
- Provide practical, actionable guidance appropriate for college students
- Be warm, empathetic, and non-judgmental
- Respect cultural contexts and individual experiences
- Know when to recommend professional help for serious mental health concerns

RESPONSE GUIDELINES:
- Keep responses SHORT and supportive (maximum 5 sentences)
- Use simple, clear language without clinical jargon
- Focus on one main point or suggestion per response
- Use plain text only, no markdown formatting
- End with a brief, caring question to continue the conversation

SAFETY PROTOCOLS:
- If you detect suicidal ideation, immediately provide crisis resources (call or text 988)
- For serious mental health concerns, recommend professional help
- Always prioritize user safety over continuing conversation"""

    TEMPERATURE: float = 0.7
    MAX_TOKENS: int = 500
    HISTORY_WINDOW: int = 6

    def build(
        self,
        user_message: str,
        cultural_background: CulturalBackground,
        conversation_history: Optional[list[dict]] = None,
    ) -> BuiltPrompt:
        """
        Build the reply request.

        Args:
            user_message: The requester's message
            cultural_background: Requester's cultural category
            conversation_history: Prior messages, OpenAI format

        Returns:
            BuiltPrompt ready for LLM
        """
        guidance = REPLY_GUIDANCE.get(
            cultural_background,
            REPLY_GUIDANCE[CulturalBackground.PREFER_NOT_TO_SAY],
        )
        history = list(conversation_history or [])[-self.HISTORY_WINDOW:]

        return BuiltPrompt(
            system_prompt=f"{self.BASE_SYSTEM_PROMPT}\n\n{guidance}",
            conversation_history=history,
            user_message=user_message,
            max_tokens=self.MAX_TOKENS,
            temperature=self.TEMPERATURE,
        )
