"""
Integration Tests for turn-level coaching

Coaching reads the stored transcript and never writes to the session.
"""

import pytest

from carefully.core.errors import NotFoundError, OracleError, ValidationError
from carefully.schemas.oracle import CharacterReply
from carefully.services.coaching import coach_turn
from carefully.services.conversation import submit_turn
from carefully.services.sessions import get_session, start_session

SCENARIO = "scenario-1"


class TestCoachTurn:
    @pytest.mark.asyncio
    async def test_coaches_last_stored_turn(self, db, oracle, user, settings):
        await start_session(db, oracle, user, SCENARIO, settings)
        await submit_turn(db, oracle, user, SCENARIO, "Hello Mrs. Johnson.", settings=settings)
        oracle.replies.append(CharacterReply(message="Is it morning?", sentiment="neutral"))
        await submit_turn(db, oracle, user, SCENARIO, "It's nearly lunchtime.", settings=settings)

        result = await coach_turn(db, oracle, user, SCENARIO)

        assert result.hints[0].type == "empathy"
        assert result.alternatives[0].category == "empathetic"
        assert result.analysis.engagement_level == 7

        calls = {c["kind"]: c for c in oracle.coaching_calls}
        assert calls["hints"]["utterance"] == "It's nearly lunchtime."
        assert calls["hints"]["sentiment"] == "neutral"
        # hints see the history before the coached utterance; analysis sees all of it
        assert [h.message for h in calls["hints"]["history"]] == ["Hello Mrs. Johnson.", "Where is my husband?"]
        assert len(calls["analysis"]["history"]) == 4

    @pytest.mark.asyncio
    async def test_explicit_message_before_any_turn(self, db, oracle, user, settings):
        await start_session(db, oracle, user, SCENARIO, settings)

        await coach_turn(db, oracle, user, SCENARIO, "  Why are you upset?  ")

        calls = {c["kind"]: c for c in oracle.coaching_calls}
        assert calls["alternatives"]["utterance"] == "Why are you upset?"
        assert calls["hints"]["history"] == []
        assert [(h.role, h.message) for h in calls["analysis"]["history"]] == [("user", "Why are you upset?")]

    @pytest.mark.asyncio
    async def test_nothing_to_coach(self, db, oracle, user, settings):
        await start_session(db, oracle, user, SCENARIO, settings)
        with pytest.raises(ValidationError):
            await coach_turn(db, oracle, user, SCENARIO)

    @pytest.mark.asyncio
    async def test_requires_a_started_session(self, db, oracle, user):
        with pytest.raises(NotFoundError):
            await coach_turn(db, oracle, user, SCENARIO, "Hello")

    @pytest.mark.asyncio
    async def test_does_not_touch_the_session(self, db, oracle, user, settings):
        await start_session(db, oracle, user, SCENARIO, settings)
        await submit_turn(db, oracle, user, SCENARIO, "Hello Mrs. Johnson.", settings=settings)
        record = await get_session(db, user.id, SCENARIO)
        before = (record.responses_json, record.feedback_json, record.progress, record.version)

        await coach_turn(db, oracle, user, SCENARIO)
        oracle.coaching_error = OracleError("down")
        with pytest.raises(OracleError):
            await coach_turn(db, oracle, user, SCENARIO)

        await db.refresh(record)
        assert (record.responses_json, record.feedback_json, record.progress, record.version) == before


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
