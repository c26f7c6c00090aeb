"""Pydantic schemas for sessions, turns and the conversation endpoint."""
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from carefully.schemas.oracle import AlternativeResponse, ConversationAnalysis, LearningHint, Sentiment


class FeedbackRubricSchema(BaseModel):
    """Per-turn rubric; axes are integers clamped to 0..100."""

    empathy: int = Field(ge=0, le=100)
    tone: int = Field(ge=0, le=100)
    clarity: int = Field(ge=0, le=100)
    decision_making: int = Field(ge=0, le=100, alias="decisionMaking")
    overall_score: float = Field(ge=0, le=100, alias="overallScore")
    summary: str = ""
    suggestions: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)
    next_steps: list[str] = Field(default_factory=list, alias="nextSteps")

    class Config:
        populate_by_name = True


class TurnRecordSchema(BaseModel):
    user_response: str = Field(alias="userResponse")
    ai_response: str = Field(alias="aiResponse")
    sentiment: Sentiment
    feedback: FeedbackRubricSchema
    timestamp: datetime

    class Config:
        populate_by_name = True


class UserScenarioOutSchema(BaseModel):
    id: int
    user_id: int = Field(alias="userId")
    scenario_id: str = Field(alias="scenarioId")
    status: Literal["not_started", "in_progress", "completed"]
    progress: int
    responses: list[TurnRecordSchema] = Field(default_factory=list)
    feedback: list[FeedbackRubricSchema] = Field(default_factory=list)
    total_time: int = Field(alias="totalTime")
    score: int
    started_at: datetime | None = Field(None, alias="startedAt")
    completed_at: datetime | None = Field(None, alias="completedAt")

    class Config:
        populate_by_name = True


class StartOutSchema(BaseModel):
    session: UserScenarioOutSchema
    opening_line: str | None = Field(None, alias="openingLine")

    class Config:
        populate_by_name = True


class HistoryEntrySchema(BaseModel):
    role: Literal["user", "character"]
    message: str


class ConversationInSchema(BaseModel):
    # emptiness is checked by the turn processor so it maps to a 400
    message: str
    conversation_history: list[HistoryEntrySchema] = Field(default_factory=list, alias="conversationHistory")
    elapsed_minutes: int = Field(0, ge=0, alias="elapsedMinutes")

    class Config:
        populate_by_name = True


class ConversationOutSchema(BaseModel):
    ai_response: str = Field(alias="aiResponse")
    sentiment: Sentiment
    should_continue: bool = Field(alias="shouldContinue")
    feedback: FeedbackRubricSchema
    progress: int
    status: str

    class Config:
        populate_by_name = True


class CoachingInSchema(BaseModel):
    # defaults to the last stored utterance
    message: str | None = None


class CoachingOutSchema(BaseModel):
    hints: list[LearningHint]
    alternatives: list[AlternativeResponse]
    analysis: ConversationAnalysis
