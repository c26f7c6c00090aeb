"""Text-generation oracle: in-character replies, per-turn feedback rubrics
and coaching (hints, alternative responses, conversation analysis).

The rest of the app only depends on the Oracle protocol, so tests (and any
other provider) can plug in their own implementation.
"""
import asyncio
import json
import logging
from collections.abc import Sequence
from typing import Protocol

from openai import APITimeoutError, AsyncOpenAI, OpenAIError
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from carefully.core.config import Settings, get_settings
from carefully.core.errors import OracleError
from carefully.schemas.oracle import (
    AlternativeList,
    AlternativeResponse,
    CharacterReply,
    ConversationAnalysis,
    HintList,
    LearningHint,
    RawRubric,
)
from carefully.schemas.session import FeedbackRubricSchema, HistoryEntrySchema
from carefully.services.scoring import build_rubric

logger = logging.getLogger(__name__)


class Oracle(Protocol):
    async def generate_reply(
        self,
        context: str,
        history: Sequence[HistoryEntrySchema],
        character_role: str,
    ) -> CharacterReply: ...

    async def generate_feedback(
        self,
        utterance: str,
        context: str,
        history: Sequence[HistoryEntrySchema],
    ) -> FeedbackRubricSchema: ...

    async def generate_hints(
        self,
        utterance: str,
        context: str,
        history: Sequence[HistoryEntrySchema],
        sentiment: str,
    ) -> list[LearningHint]: ...

    async def generate_alternatives(
        self,
        utterance: str,
        context: str,
        history: Sequence[HistoryEntrySchema],
    ) -> list[AlternativeResponse]: ...

    async def analyze_conversation(
        self,
        context: str,
        history: Sequence[HistoryEntrySchema],
    ) -> ConversationAnalysis: ...


def render_history(history: Sequence[HistoryEntrySchema]) -> str:
    lines = []
    for entry in history:
        speaker = "Worker" if entry.role == "user" else "Character"
        lines.append(f"{speaker}: {entry.message}")
    return "\n".join(lines) if lines else "(no messages yet)"


def reply_prompt(context: str, history: Sequence[HistoryEntrySchema], character_role: str) -> str:
    return f"""You are a {character_role} in a care training scenario.

Context: {context}

Rules:
- Stay in character
- React to the care worker's tone and approach
- Calm down if they are empathetic, become more anxious if they are dismissive
- Keep responses short (one or two sentences)
- Reply ONLY with JSON: {{"message": "your reply", "sentiment": "positive|neutral|negative|distressed", "shouldContinue": true}}

Conversation so far:
{render_history(history)}"""


def feedback_prompt(utterance: str, context: str, history: Sequence[HistoryEntrySchema]) -> str:
    return f"""As an expert care training assessor, evaluate this care worker's response.

SCENARIO CONTEXT: {context}

CONVERSATION HISTORY:
{render_history(history)}

RESPONSE TO EVALUATE: "{utterance}"

Score each competency from 0 to 100:
1. empathy: validates feelings, person-centred language, emotional attunement
2. tone: calm, respectful, appropriate warmth for the situation
3. clarity: clear, jargon-free, easy to follow
4. decisionMaking: safe, practical, person-centred choices about what to do next

Return ONLY a JSON object with this exact format:
{{"empathy": 0-100, "tone": 0-100, "clarity": 0-100, "decisionMaking": 0-100,
  "summary": "one or two sentences of constructive feedback",
  "suggestions": ["specific actionable suggestion", "another suggestion"],
  "strengths": ["specific strength with evidence"],
  "improvements": ["specific improvement with actionable guidance"],
  "nextSteps": ["skill to practise next"]}}"""


def hints_prompt(utterance: str, context: str, history: Sequence[HistoryEntrySchema], sentiment: str) -> str:
    return f"""You are a care training coach giving real-time learning hints.

SCENARIO: {context}
CHARACTER'S CURRENT STATE: {sentiment}
WORKER'S RESPONSE: "{utterance}"

Recent conversation:
{render_history(history[-3:])}

Give 1-2 specific, actionable hints that would improve the worker's approach right now.
Look for missed empathy, communication technique, professional boundaries,
active listening and problem solving.

Return ONLY JSON:
{{"hints": [{{"type": "empathy|communication|problem-solving|professional|active-listening",
  "message": "actionable hint, at most 25 words",
  "timing": "immediate|after-response|mid-conversation",
  "priority": "low|medium|high"}}]}}"""


def alternatives_prompt(utterance: str, context: str, history: Sequence[HistoryEntrySchema]) -> str:
    return f"""Write 3 alternative responses that show the care worker different approaches.

SCENARIO: {context}
THEIR RESPONSE: "{utterance}"
CONTEXT:
{render_history(history[-2:])}

One each of:
1. empathetic (emotional validation)
2. professional (boundaries and protocols)
3. problem-solving (practical solutions)

Return ONLY JSON:
{{"alternatives": [{{"category": "empathetic|professional|problem-solving",
  "text": "alternative response",
  "explanation": "why it works, at most 15 words",
  "skillFocus": "skill demonstrated"}}]}}"""


def analysis_prompt(context: str, history: Sequence[HistoryEntrySchema]) -> str:
    return f"""Analyse this care conversation for learning insights.

SCENARIO: {context}

FULL CONVERSATION:
{render_history(history)}

Assess how the worker's approach is evolving, what they miss, what they do
well, where the conversation should go next and the character's likely
emotional state.

Return ONLY JSON:
{{"toneShift": "improving|declining|stable",
  "engagementLevel": 1-10,
  "missedOpportunities": ["missed opportunity"],
  "strongMoments": ["what they did well"],
  "suggestedDirection": "next focus for the conversation",
  "emotionalState": "distressed|calm|agitated|confused|responsive"}}"""


def parse_oracle_json(content: str | None, model: type[BaseModel]):
    """Validate oracle output against `model`; malformed output is an OracleError."""
    if not content or not content.strip():
        raise OracleError("Oracle returned an empty response")
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise OracleError("Oracle returned malformed JSON") from e
    if not isinstance(data, dict):
        raise OracleError("Oracle returned JSON that is not an object")
    try:
        return model.model_validate(data)
    except SchemaError as e:
        raise OracleError(f"Oracle response failed validation: {e.error_count()} error(s)") from e


class OpenAIOracle:
    """Oracle backed by OpenAI chat completions in JSON mode."""

    def __init__(self, client: AsyncOpenAI | None = None, settings: Settings | None = None):
        self.settings = settings or get_settings()
        if client is None:
            try:
                # Retries are the caller's job; a failed turn is resubmitted as a whole
                client = AsyncOpenAI(
                    api_key=self.settings.openai_api_key or None,
                    timeout=self.settings.oracle_timeout_seconds,
                    max_retries=0,
                )
            except OpenAIError as e:
                raise OracleError("Oracle is not configured") from e
        self.client = client
        self.model = self.settings.openai_model

    async def _complete(self, system_prompt: str, user_prompt: str, temperature: float, max_tokens: int) -> str | None:
        try:
            completion = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_prompt},
                    ],
                    response_format={"type": "json_object"},
                    temperature=temperature,
                    max_tokens=max_tokens,
                ),
                timeout=self.settings.oracle_timeout_seconds,
            )
        except (asyncio.TimeoutError, APITimeoutError) as e:
            logger.warning("Oracle call timed out after %.1fs", self.settings.oracle_timeout_seconds)
            raise OracleError("Text generation timed out", timed_out=True) from e
        except OpenAIError as e:
            logger.error("Oracle call failed: %s", e, exc_info=True)
            raise OracleError("Text generation failed") from e

        if not completion.choices:
            return None
        return completion.choices[0].message.content

    async def generate_reply(
        self,
        context: str,
        history: Sequence[HistoryEntrySchema],
        character_role: str,
    ) -> CharacterReply:
        if not history:
            instruction = "Start the conversation as the character. Introduce your concern or situation."
        elif history[-1].role == "character":
            instruction = "The care worker has come back. Pick the conversation up where it left off."
        else:
            instruction = "Respond to what the care worker just said."
        content = await self._complete(
            reply_prompt(context, history, character_role),
            instruction,
            self.settings.reply_temperature,
            self.settings.reply_max_tokens,
        )
        return parse_oracle_json(content, CharacterReply)

    async def generate_feedback(
        self,
        utterance: str,
        context: str,
        history: Sequence[HistoryEntrySchema],
    ) -> FeedbackRubricSchema:
        content = await self._complete(
            feedback_prompt(utterance, context, history),
            "Provide feedback analysis.",
            self.settings.feedback_temperature,
            self.settings.feedback_max_tokens,
        )
        raw = parse_oracle_json(content, RawRubric)
        return build_rubric(raw)

    async def generate_hints(
        self,
        utterance: str,
        context: str,
        history: Sequence[HistoryEntrySchema],
        sentiment: str,
    ) -> list[LearningHint]:
        content = await self._complete(
            hints_prompt(utterance, context, history, sentiment),
            "Provide learning hints.",
            self.settings.coaching_temperature,
            self.settings.coaching_max_tokens,
        )
        return parse_oracle_json(content, HintList).hints

    async def generate_alternatives(
        self,
        utterance: str,
        context: str,
        history: Sequence[HistoryEntrySchema],
    ) -> list[AlternativeResponse]:
        content = await self._complete(
            alternatives_prompt(utterance, context, history),
            "Generate alternatives.",
            self.settings.coaching_temperature,
            self.settings.coaching_max_tokens,
        )
        return parse_oracle_json(content, AlternativeList).alternatives

    async def analyze_conversation(
        self,
        context: str,
        history: Sequence[HistoryEntrySchema],
    ) -> ConversationAnalysis:
        content = await self._complete(
            analysis_prompt(context, history),
            "Analyse the conversation flow.",
            self.settings.coaching_temperature,
            self.settings.coaching_max_tokens,
        )
        return parse_oracle_json(content, ConversationAnalysis)


_oracle_instance: OpenAIOracle | None = None


def get_oracle() -> Oracle:
    """FastAPI dependency: shared OpenAI-backed oracle."""
    global _oracle_instance
    if _oracle_instance is None:
        _oracle_instance = OpenAIOracle()
    return _oracle_instance
