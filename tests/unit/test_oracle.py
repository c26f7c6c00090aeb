"""
Unit Tests for the OpenAI-backed oracle

Uses a stand-in client so no network calls are made.
"""

import asyncio
import json
from types import SimpleNamespace

import pytest
from openai import OpenAIError

from carefully.core.config import Settings
from carefully.core.errors import OracleError
from carefully.schemas.oracle import CharacterReply, ConversationAnalysis, HintList, RawRubric
from carefully.schemas.session import HistoryEntrySchema
from carefully.services.oracle import OpenAIOracle, parse_oracle_json


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class StubCompletions:
    def __init__(self, content=None, error=None, delay=0.0):
        self.content = content
        self.error = error
        self.delay = delay
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return _completion(self.content)


def make_oracle(completions, **overrides):
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return OpenAIOracle(client=client, settings=Settings(**overrides))


HISTORY = [
    HistoryEntrySchema(role="character", message="I want to go home."),
    HistoryEntrySchema(role="user", message="You miss home, don't you?"),
]


class TestParseOracleJson:
    def test_valid_reply(self):
        reply = parse_oracle_json(
            '{"message": " I feel a bit better. ", "sentiment": "Positive", "shouldContinue": false}',
            CharacterReply,
        )
        assert reply.message == "I feel a bit better."
        assert reply.sentiment == "positive"
        assert reply.should_continue is False

    @pytest.mark.parametrize(
        "content",
        [
            None,
            "",
            "not json at all",
            "[1, 2, 3]",
            '{"message": "hi"}',
            '{"message": "hi", "sentiment": "angry"}',
            '{"message": "   ", "sentiment": "neutral"}',
            '{"message": "hi", "sentiment": "neutral", "shouldContinue": "no"}',
            '{"message": "hi", "sentiment": "neutral", "shouldContinue": 0}',
        ],
    )
    def test_malformed_output_is_rejected(self, content):
        with pytest.raises(OracleError) as exc_info:
            parse_oracle_json(content, CharacterReply)
        assert exc_info.value.status_code == 502

    @pytest.mark.parametrize(
        "content",
        [
            '{"empathy": true, "tone": 70, "clarity": 90, "decisionMaking": 60}',
            '{"empathy": "85", "tone": 70, "clarity": 90, "decisionMaking": 60}',
            '{"empathy": 80, "tone": null, "clarity": 90, "decisionMaking": 60}',
            '{"empathy": 80, "tone": 70, "clarity": NaN, "decisionMaking": 60}',
            '{"empathy": 80, "tone": 70, "clarity": 90, "decisionMaking": [60]}',
        ],
    )
    def test_rubric_axes_are_not_coerced(self, content):
        with pytest.raises(OracleError):
            parse_oracle_json(content, RawRubric)

    def test_rubric_accepts_ints_and_floats(self):
        raw = parse_oracle_json('{"empathy": 80, "tone": 70.5, "clarity": 90, "decisionMaking": 60}', RawRubric)
        assert raw.empathy == 80.0
        assert raw.tone == 70.5
        assert raw.next_steps == []

    @pytest.mark.parametrize(
        "content",
        [
            '{"hints": [{"type": "shouting", "message": "x", "timing": "immediate", "priority": "low"}]}',
            '{"tips": []}',
        ],
    )
    def test_malformed_hints_are_rejected(self, content):
        with pytest.raises(OracleError):
            parse_oracle_json(content, HintList)

    def test_analysis_engagement_must_be_an_int_in_range(self):
        base = {
            "toneShift": "stable",
            "missedOpportunities": [],
            "strongMoments": [],
            "suggestedDirection": "Keep going",
            "emotionalState": "calm",
        }
        for engagement in (11, "7", True):
            with pytest.raises(OracleError):
                parse_oracle_json(json.dumps({**base, "engagementLevel": engagement}), ConversationAnalysis)
        ok = parse_oracle_json(json.dumps({**base, "engagementLevel": 7}), ConversationAnalysis)
        assert ok.engagement_level == 7


class TestOpenAIOracle:
    @pytest.mark.asyncio
    async def test_generate_reply_sends_full_history(self):
        completions = StubCompletions('{"message": "Who are you?", "sentiment": "negative", "shouldContinue": true}')
        oracle = make_oracle(completions, openai_model="gpt-test")

        reply = await oracle.generate_reply("Mrs. Johnson is agitated.", HISTORY, "care recipient")

        assert reply.message == "Who are you?"
        assert reply.sentiment == "negative"
        call = completions.calls[0]
        assert call["model"] == "gpt-test"
        assert call["response_format"] == {"type": "json_object"}
        system_prompt = call["messages"][0]["content"]
        assert "care recipient" in system_prompt
        assert "Mrs. Johnson is agitated." in system_prompt
        assert "Character: I want to go home." in system_prompt
        assert "Worker: You miss home, don't you?" in system_prompt

    @pytest.mark.asyncio
    async def test_opening_line_prompt_without_history(self):
        completions = StubCompletions('{"message": "Is it time for tea?", "sentiment": "neutral"}')
        oracle = make_oracle(completions)

        reply = await oracle.generate_reply("context", [], "care recipient")

        assert reply.should_continue is True
        assert "Start the conversation" in completions.calls[0]["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_generate_feedback_clamps_and_averages(self):
        content = json.dumps(
            {
                "empathy": 120,
                "tone": 70,
                "clarity": 90,
                "decisionMaking": 60,
                "summary": "Kind and clear.",
                "suggestions": ["Ask an open question"],
                "strengths": ["Warm greeting", " "],
                "improvements": ["Slow down"],
                "nextSteps": ["Practise pausing"],
            }
        )
        oracle = make_oracle(StubCompletions(content))

        rubric = await oracle.generate_feedback("I'm here with you.", "context", HISTORY)

        assert rubric.empathy == 100
        assert rubric.overall_score == 80.0
        assert rubric.suggestions == ["Ask an open question"]
        assert rubric.strengths == ["Warm greeting"]
        assert rubric.improvements == ["Slow down"]
        assert rubric.model_dump(by_alias=True)["nextSteps"] == ["Practise pausing"]

    @pytest.mark.asyncio
    async def test_feedback_missing_axis_is_rejected(self):
        oracle = make_oracle(StubCompletions('{"empathy": 80, "tone": 70, "clarity": 90}'))
        with pytest.raises(OracleError):
            await oracle.generate_feedback("Hello", "context", [])

    @pytest.mark.asyncio
    async def test_client_error_becomes_oracle_error(self):
        oracle = make_oracle(StubCompletions(error=OpenAIError("upstream exploded")))
        with pytest.raises(OracleError) as exc_info:
            await oracle.generate_reply("context", [], "care recipient")
        assert exc_info.value.status_code == 502
        assert exc_info.value.timed_out is False

    @pytest.mark.asyncio
    async def test_timeout_becomes_504(self):
        completions = StubCompletions('{"message": "late", "sentiment": "neutral"}', delay=1.0)
        oracle = make_oracle(completions, oracle_timeout_seconds=0.01)
        with pytest.raises(OracleError) as exc_info:
            await oracle.generate_reply("context", [], "care recipient")
        assert exc_info.value.timed_out is True
        assert exc_info.value.status_code == 504

    @pytest.mark.asyncio
    async def test_empty_choices_rejected(self):
        completions = StubCompletions()
        completions.create = lambda **kwargs: _async_value(SimpleNamespace(choices=[]))
        oracle = make_oracle(completions)
        with pytest.raises(OracleError):
            await oracle.generate_reply("context", [], "care recipient")

    @pytest.mark.asyncio
    async def test_resume_prompt_continues_the_transcript(self):
        completions = StubCompletions('{"message": "Oh, it\'s you again.", "sentiment": "neutral"}')
        oracle = make_oracle(completions)

        await oracle.generate_reply("context", list(reversed(HISTORY)), "care recipient")

        assert "Pick the conversation up" in completions.calls[0]["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_generate_hints(self):
        content = json.dumps(
            {"hints": [{"type": "active-listening", "message": "Reflect her words back.", "timing": "immediate", "priority": "high"}]}
        )
        completions = StubCompletions(content)
        oracle = make_oracle(completions)

        hints = await oracle.generate_hints("Calm down.", "Mrs. Johnson is agitated.", HISTORY, "distressed")

        assert [h.type for h in hints] == ["active-listening"]
        system_prompt = completions.calls[0]["messages"][0]["content"]
        assert "distressed" in system_prompt
        assert '"Calm down."' in system_prompt

    @pytest.mark.asyncio
    async def test_generate_alternatives(self):
        content = json.dumps(
            {
                "alternatives": [
                    {
                        "category": "problem-solving",
                        "text": "Shall we call your daughter together?",
                        "explanation": "Offers a concrete next step",
                        "skillFocus": "Practical support",
                    }
                ]
            }
        )
        oracle = make_oracle(StubCompletions(content))

        alternatives = await oracle.generate_alternatives("Calm down.", "context", HISTORY)

        assert alternatives[0].skill_focus == "Practical support"

    @pytest.mark.asyncio
    async def test_analyze_conversation_rejects_unknown_state(self):
        content = json.dumps(
            {
                "toneShift": "stable",
                "engagementLevel": 5,
                "suggestedDirection": "Build rapport",
                "emotionalState": "furious",
            }
        )
        oracle = make_oracle(StubCompletions(content))
        with pytest.raises(OracleError):
            await oracle.analyze_conversation("context", HISTORY)


async def _async_value(value):
    return value


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
