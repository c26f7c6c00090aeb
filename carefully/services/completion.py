"""Completion and score aggregation."""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from carefully.models.user import User
from carefully.models.user_scenario import STATUS_COMPLETED, UserScenario
from carefully.services.scoring import MAX_SCORE, compute_session_score
from carefully.services.sessions import (
    commit_or_conflict,
    get_session,
    load_feedback,
    session_lock,
    utcnow,
)

logger = logging.getLogger(__name__)


async def complete_session(db: AsyncSession, user: User, scenario_id: str) -> UserScenario:
    """Finalize the session and bump the user's rollup in the same commit.

    Early completion is allowed. Completing an already completed session
    changes nothing and returns it as stored.
    """
    async with session_lock(user.id, scenario_id):
        record = await get_session(db, user.id, scenario_id)
        if record.status == STATUS_COMPLETED:
            logger.info("Session user=%s scenario=%s already completed; no-op", user.id, scenario_id)
            return record

        record.status = STATUS_COMPLETED
        record.progress = MAX_SCORE
        record.completed_at = utcnow()
        record.score = compute_session_score(load_feedback(record))

        # SQL-side increments so a concurrent rollup write is not lost
        user.total_scenarios = User.total_scenarios + 1
        user.total_time = User.total_time + (record.total_time or 0)

        await commit_or_conflict(db, "completion")
        await db.refresh(user)

    logger.info(
        "Completed session user=%s scenario=%s score=%d total_scenarios=%d",
        user.id, scenario_id, record.score, user.total_scenarios,
    )
    return record
