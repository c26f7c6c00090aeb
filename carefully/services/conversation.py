"""Conversation turn processor."""
import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from carefully.core.config import Settings, get_settings
from carefully.core.errors import ConflictError, ValidationError
from carefully.models.user import User
from carefully.models.user_scenario import STATUS_COMPLETED, STATUS_IN_PROGRESS, UserScenario
from carefully.schemas.oracle import CharacterReply
from carefully.schemas.session import FeedbackRubricSchema, HistoryEntrySchema
from carefully.services.catalog import get_scenario
from carefully.services.oracle import Oracle
from carefully.services.scoring import compute_progress
from carefully.services.sessions import (
    commit_or_conflict,
    get_session,
    history_from_responses,
    load_feedback,
    load_responses,
    session_lock,
    utcnow,
)

logger = logging.getLogger(__name__)


@dataclass
class TurnResult:
    reply: CharacterReply
    feedback: FeedbackRubricSchema
    session: UserScenario
    turn_count: int
    target_reached: bool


async def submit_turn(
    db: AsyncSession,
    oracle: Oracle,
    user: User,
    scenario_id: str,
    utterance: str,
    history: Sequence[HistoryEntrySchema] = (),
    elapsed_minutes: int = 0,
    settings: Settings | None = None,
) -> TurnResult:
    """Relay one utterance to the oracle and append the turn to the session.

    Both oracle calls finish before the record is touched, so an OracleError
    never leaves a partial turn behind.
    """
    settings = settings or get_settings()
    utterance = (utterance or "").strip()
    if not utterance:
        raise ValidationError("Message must not be empty")
    if elapsed_minutes < 0:
        raise ValidationError("elapsedMinutes must not be negative")

    scenario = await get_scenario(db, scenario_id)

    async with session_lock(user.id, scenario.id):
        record = await get_session(db, user.id, scenario.id)
        if record.status == STATUS_COMPLETED:
            raise ConflictError("Session is already completed")

        responses = load_responses(record)
        feedback = load_feedback(record)
        prior = list(history) if history else history_from_responses(responses)

        reply = await oracle.generate_reply(
            scenario.context,
            [*prior, HistoryEntrySchema(role="user", message=utterance)],
            settings.character_role,
        )
        rubric = await oracle.generate_feedback(utterance, scenario.context, prior)

        rubric_data = rubric.model_dump(mode="json", by_alias=True)
        responses.append(
            {
                "userResponse": utterance,
                "aiResponse": reply.message,
                "sentiment": reply.sentiment,
                "feedback": rubric_data,
                "timestamp": utcnow().isoformat(),
            }
        )
        feedback.append(rubric_data)

        record.responses_json = json.dumps(responses)
        record.feedback_json = json.dumps(feedback)
        record.progress = compute_progress(len(responses), settings.session_turn_target)
        record.total_time = (record.total_time or 0) + elapsed_minutes
        if record.status != STATUS_IN_PROGRESS:
            record.status = STATUS_IN_PROGRESS

        await commit_or_conflict(db, "turn")

    logger.info(
        "Turn %d stored user=%s scenario=%s sentiment=%s overall=%.1f",
        len(responses), user.id, scenario.id, reply.sentiment, rubric.overall_score,
    )
    return TurnResult(
        reply=reply,
        feedback=rubric,
        session=record,
        turn_count=len(responses),
        target_reached=len(responses) >= settings.session_turn_target,
    )
