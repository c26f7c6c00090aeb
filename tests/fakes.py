"""Test doubles shared across the suite."""

import asyncio
from collections import deque

from carefully.schemas.oracle import (
    AlternativeResponse,
    CharacterReply,
    ConversationAnalysis,
    LearningHint,
    RawRubric,
)
from carefully.services.scoring import build_rubric


def make_rubric(empathy=80, tone=70, clarity=90, decision_making=60, summary="Good start."):
    return build_rubric(
        RawRubric(
            empathy=empathy,
            tone=tone,
            clarity=clarity,
            decision_making=decision_making,
            summary=summary,
            suggestions=["Acknowledge her feelings first"],
            strengths=["Calm, unhurried tone"],
            improvements=["Name the emotion you notice"],
            next_steps=["Practise reflective listening"],
        )
    )


class FakeOracle:
    """Scripted oracle: pops queued replies/rubrics, falls back to defaults."""

    def __init__(self):
        self.replies = deque()
        self.rubrics = deque()
        self.reply_error = None
        self.feedback_error = None
        self.coaching_error = None
        self.reply_calls = []
        self.feedback_calls = []
        self.coaching_calls = []

    async def generate_reply(self, context, history, character_role):
        self.reply_calls.append({"context": context, "history": list(history), "role": character_role})
        await asyncio.sleep(0)
        if self.reply_error is not None:
            raise self.reply_error
        if self.replies:
            return self.replies.popleft()
        return CharacterReply(message="Where is my husband?", sentiment="distressed", should_continue=True)

    async def generate_feedback(self, utterance, context, history):
        self.feedback_calls.append({"utterance": utterance, "context": context, "history": list(history)})
        await asyncio.sleep(0)
        if self.feedback_error is not None:
            raise self.feedback_error
        if self.rubrics:
            return self.rubrics.popleft()
        return make_rubric()

    async def _coaching(self, kind, **call):
        self.coaching_calls.append({"kind": kind, **call})
        await asyncio.sleep(0)
        if self.coaching_error is not None:
            raise self.coaching_error

    async def generate_hints(self, utterance, context, history, sentiment):
        await self._coaching("hints", utterance=utterance, history=list(history), sentiment=sentiment)
        return [LearningHint(type="empathy", message="Name the worry out loud.", timing="immediate", priority="high")]

    async def generate_alternatives(self, utterance, context, history):
        await self._coaching("alternatives", utterance=utterance, history=list(history))
        return [
            AlternativeResponse(
                category="empathetic",
                text="It sounds like you're really missing him.",
                explanation="Validates the feeling before anything else",
                skill_focus="Emotional validation",
            )
        ]

    async def analyze_conversation(self, context, history):
        await self._coaching("analysis", history=list(history))
        return ConversationAnalysis(
            tone_shift="improving",
            engagement_level=7,
            missed_opportunities=["Ask about her husband"],
            strong_moments=["Calm greeting"],
            suggested_direction="Explore what is worrying her",
            emotional_state="confused",
        )
