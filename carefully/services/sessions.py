"""Session state tracker: start/resume, lookups and per-session locking.

Status moves not_started -> in_progress -> completed. A completed session is
terminal: start returns it read-only and never flips it back.
"""
import asyncio
import json
import logging
import weakref
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from carefully.core.config import Settings, get_settings
from carefully.core.errors import ConflictError, NotFoundError
from carefully.models.user import User
from carefully.models.user_scenario import (
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    UserScenario,
)
from carefully.schemas.session import (
    FeedbackRubricSchema,
    HistoryEntrySchema,
    TurnRecordSchema,
    UserScenarioOutSchema,
)
from carefully.services.catalog import get_scenario
from carefully.services.oracle import Oracle

logger = logging.getLogger(__name__)

# One lock per (user_id, scenario_id); dropped once no request holds it
_locks: "weakref.WeakValueDictionary[tuple[int, str], asyncio.Lock]" = weakref.WeakValueDictionary()


def session_lock(user_id: int, scenario_id: str) -> asyncio.Lock:
    """Serializes read-modify-write cycles on one session within this process."""
    key = (user_id, scenario_id)
    lock = _locks.get(key)
    if lock is None:
        lock = asyncio.Lock()
        _locks[key] = lock
    return lock


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def load_responses(record: UserScenario) -> list[dict]:
    return json.loads(record.responses_json or "[]")


def load_feedback(record: UserScenario) -> list[dict]:
    return json.loads(record.feedback_json or "[]")


def history_from_responses(responses: list[dict]) -> list[HistoryEntrySchema]:
    """Rebuild the alternating worker/character history from stored turns."""
    history = []
    for turn in responses:
        history.append(HistoryEntrySchema(role="user", message=turn["userResponse"]))
        history.append(HistoryEntrySchema(role="character", message=turn["aiResponse"]))
    return history


def session_to_out(record: UserScenario) -> UserScenarioOutSchema:
    return UserScenarioOutSchema(
        id=record.id,
        user_id=record.user_id,
        scenario_id=record.scenario_id,
        status=record.status,
        progress=record.progress,
        responses=[TurnRecordSchema.model_validate(r) for r in load_responses(record)],
        feedback=[FeedbackRubricSchema.model_validate(f) for f in load_feedback(record)],
        total_time=record.total_time,
        score=record.score,
        started_at=record.started_at,
        completed_at=record.completed_at,
    )


async def commit_or_conflict(db: AsyncSession, action: str) -> None:
    """Commit; a lost optimistic-version race or duplicate row becomes ConflictError."""
    try:
        await db.commit()
    except (StaleDataError, IntegrityError) as e:
        await db.rollback()
        logger.warning("Conflict during %s: %s", action, e)
        raise ConflictError(f"Session was modified concurrently during {action}; please retry") from e


async def find_session(db: AsyncSession, user_id: int, scenario_id: str) -> UserScenario | None:
    result = await db.execute(
        select(UserScenario).where(
            UserScenario.user_id == user_id,
            UserScenario.scenario_id == scenario_id,
        )
    )
    return result.scalar_one_or_none()


async def get_session(db: AsyncSession, user_id: int, scenario_id: str) -> UserScenario:
    record = await find_session(db, user_id, scenario_id)
    if record is None:
        raise NotFoundError("User scenario not found")
    return record


async def list_sessions(db: AsyncSession, user_id: int) -> list[UserScenario]:
    result = await db.execute(
        select(UserScenario).where(UserScenario.user_id == user_id).order_by(UserScenario.id)
    )
    return list(result.scalars().all())


async def start_session(
    db: AsyncSession,
    oracle: Oracle,
    user: User,
    scenario_id: str,
    settings: Settings | None = None,
) -> tuple[UserScenario, str | None]:
    """Create or resume the user's session and fetch an opening line.

    The opening line is not stored as a turn. If the oracle fails nothing is
    written, so a brand-new session is not created either.
    """
    settings = settings or get_settings()
    scenario = await get_scenario(db, scenario_id)

    async with session_lock(user.id, scenario.id):
        record = await find_session(db, user.id, scenario.id)
        if record is not None and record.status == STATUS_COMPLETED:
            logger.info("Start on completed session user=%s scenario=%s: returned read-only", user.id, scenario.id)
            return record, None

        # Resume continues from the stored transcript
        history = history_from_responses(load_responses(record)) if record is not None else []
        reply = await oracle.generate_reply(scenario.context, history, settings.character_role)

        if record is None:
            record = UserScenario(
                user_id=user.id,
                scenario_id=scenario.id,
                status=STATUS_IN_PROGRESS,
                progress=0,
                responses_json="[]",
                feedback_json="[]",
                total_time=0,
                score=0,
                started_at=utcnow(),
            )
            db.add(record)
            logger.info("Created session user=%s scenario=%s", user.id, scenario.id)
        else:
            record.status = STATUS_IN_PROGRESS
            logger.info(
                "Resumed session user=%s scenario=%s turns=%d",
                user.id, scenario.id, len(load_responses(record)),
            )

        await commit_or_conflict(db, "start")

    return record, reply.message
