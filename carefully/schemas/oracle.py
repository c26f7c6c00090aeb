"""Shapes the oracle must return. Anything that doesn't validate is rejected.

Fields that feed scores or control flow are strict: a boolean or a numeric
string is refused instead of being coerced into a plausible value.
"""
from typing import Literal

from pydantic import BaseModel, Field, field_validator

Sentiment = Literal["positive", "neutral", "negative", "distressed"]
SENTIMENTS = ("positive", "neutral", "negative", "distressed")


class CharacterReply(BaseModel):
    """Next in-character line plus how the character feels about the exchange."""

    message: str = Field(min_length=1)
    sentiment: Sentiment
    should_continue: bool = Field(True, alias="shouldContinue", strict=True)

    class Config:
        populate_by_name = True

    @field_validator("message")
    @classmethod
    def _strip_message(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("message is blank")
        return v

    @field_validator("sentiment", mode="before")
    @classmethod
    def _normalize_sentiment(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class RawRubric(BaseModel):
    """Rubric exactly as the oracle sends it; axes are clamped later."""

    empathy: float = Field(strict=True, allow_inf_nan=False)
    tone: float = Field(strict=True, allow_inf_nan=False)
    clarity: float = Field(strict=True, allow_inf_nan=False)
    decision_making: float = Field(alias="decisionMaking", strict=True, allow_inf_nan=False)
    summary: str = ""
    suggestions: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)
    next_steps: list[str] = Field(default_factory=list, alias="nextSteps")

    class Config:
        populate_by_name = True


# ---------- coaching ----------

class LearningHint(BaseModel):
    type: Literal["empathy", "communication", "problem-solving", "professional", "active-listening"]
    message: str = Field(min_length=1)
    timing: Literal["immediate", "after-response", "mid-conversation"]
    priority: Literal["low", "medium", "high"]


class HintList(BaseModel):
    hints: list[LearningHint]


class AlternativeResponse(BaseModel):
    category: Literal["empathetic", "professional", "problem-solving"]
    text: str = Field(min_length=1)
    explanation: str
    skill_focus: str = Field(alias="skillFocus")

    class Config:
        populate_by_name = True


class AlternativeList(BaseModel):
    alternatives: list[AlternativeResponse]


class ConversationAnalysis(BaseModel):
    """Strategic read of the whole conversation so far."""

    tone_shift: Literal["improving", "declining", "stable"] = Field(alias="toneShift")
    engagement_level: int = Field(alias="engagementLevel", ge=1, le=10, strict=True)
    missed_opportunities: list[str] = Field(default_factory=list, alias="missedOpportunities")
    strong_moments: list[str] = Field(default_factory=list, alias="strongMoments")
    suggested_direction: str = Field(alias="suggestedDirection")
    emotional_state: Literal["distressed", "calm", "agitated", "confused", "responsive"] = Field(
        alias="emotionalState"
    )

    class Config:
        populate_by_name = True
