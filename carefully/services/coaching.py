"""Turn-level coaching on top of a session's stored transcript.

Read-only: nothing here touches the session record, so coaching can be
requested at any point (including after completion) without affecting the
score.
"""
import asyncio
import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from carefully.core.errors import ValidationError
from carefully.models.user import User
from carefully.schemas.oracle import AlternativeResponse, ConversationAnalysis, LearningHint
from carefully.schemas.session import HistoryEntrySchema
from carefully.services.catalog import get_scenario
from carefully.services.oracle import Oracle
from carefully.services.sessions import get_session, history_from_responses, load_responses

logger = logging.getLogger(__name__)


@dataclass
class CoachingResult:
    hints: list[LearningHint]
    alternatives: list[AlternativeResponse]
    analysis: ConversationAnalysis


async def coach_turn(
    db: AsyncSession,
    oracle: Oracle,
    user: User,
    scenario_id: str,
    utterance: str | None = None,
) -> CoachingResult:
    """Hints, alternative phrasings and a flow analysis for one utterance.

    Without an explicit utterance the last stored turn is coached, with the
    history before it as context and the character's reply sentiment as the
    current state.
    """
    scenario = await get_scenario(db, scenario_id)
    record = await get_session(db, user.id, scenario.id)
    responses = load_responses(record)

    utterance = (utterance or "").strip()
    if utterance:
        prior = history_from_responses(responses)
        sentiment = responses[-1]["sentiment"] if responses else "neutral"
        full = [*prior, HistoryEntrySchema(role="user", message=utterance)]
    elif responses:
        last = responses[-1]
        utterance = last["userResponse"]
        prior = history_from_responses(responses[:-1])
        sentiment = last["sentiment"]
        full = history_from_responses(responses)
    else:
        raise ValidationError("Nothing to coach yet: send a message or take a turn first")

    hints, alternatives, analysis = await asyncio.gather(
        oracle.generate_hints(utterance, scenario.context, prior, sentiment),
        oracle.generate_alternatives(utterance, scenario.context, prior),
        oracle.analyze_conversation(scenario.context, full),
    )
    logger.info(
        "Coaching user=%s scenario=%s hints=%d alternatives=%d",
        user.id, scenario.id, len(hints), len(alternatives),
    )
    return CoachingResult(hints=hints, alternatives=alternatives, analysis=analysis)
