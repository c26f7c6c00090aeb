"""API routes: JSON for the scenario catalog, session lifecycle and user rollup."""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carefully.core.config import get_settings
from carefully.core.errors import ConflictError
from carefully.core.security import verify_session_token
from carefully.db.session import get_db
from carefully.models.user import User
from carefully.models.user_scenario import STATUS_COMPLETED
from carefully.schemas.scenario import ScenarioOutSchema
from carefully.schemas.session import (
    CoachingInSchema,
    CoachingOutSchema,
    ConversationInSchema,
    ConversationOutSchema,
    StartOutSchema,
    UserScenarioOutSchema,
)
from carefully.schemas.user import UserOutSchema, UserUpdateSchema
from carefully.services.catalog import get_scenario, list_scenarios, scenario_to_out
from carefully.services.coaching import coach_turn
from carefully.services.completion import complete_session
from carefully.services.conversation import submit_turn
from carefully.services.oracle import Oracle, get_oracle
from carefully.services.sessions import get_session, list_sessions, session_to_out, start_session
from carefully.services.users import update_profile

router = APIRouter(prefix="/api", tags=["api"])
settings = get_settings()
logger = logging.getLogger(__name__)

CATALOG_CACHE_CONTROL = "public, max-age=300"


# ---------- helpers ----------

async def get_current_user(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Resolve the signed auth cookie to a user; 401 otherwise."""
    user_id = verify_session_token(request.cookies.get(settings.auth_cookie_name))
    if user_id is None:
        raise HTTPException(status_code=401, detail="Not authenticated")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


# ---------- catalog ----------

@router.get("/scenarios", response_model=list[ScenarioOutSchema])
async def get_scenarios(
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """List active scenarios."""
    scenarios = await list_scenarios(db)
    response.headers["Cache-Control"] = CATALOG_CACHE_CONTROL
    return [scenario_to_out(s) for s in scenarios]


@router.get("/scenarios/{scenario_id}", response_model=ScenarioOutSchema)
async def get_scenario_detail(
    scenario_id: str,
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Get one scenario by ID."""
    scenario = await get_scenario(db, scenario_id)
    response.headers["Cache-Control"] = CATALOG_CACHE_CONTROL
    return scenario_to_out(scenario)


# ---------- session lifecycle ----------

@router.post("/scenarios/{scenario_id}/start", response_model=StartOutSchema)
async def start_scenario(
    scenario_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    oracle: Annotated[Oracle, Depends(get_oracle)],
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Create or resume the session; returns it with the character's opening line."""
    record, opening_line = await start_session(db, oracle, current_user, scenario_id, settings)
    return StartOutSchema(session=session_to_out(record), opening_line=opening_line)


@router.post("/scenarios/{scenario_id}/conversation", response_model=ConversationOutSchema)
async def post_conversation(
    scenario_id: str,
    body: ConversationInSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
    oracle: Annotated[Oracle, Depends(get_oracle)],
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Submit one utterance; completes the session once the turn target is reached."""
    result = await submit_turn(
        db,
        oracle,
        current_user,
        scenario_id,
        body.message,
        body.conversation_history,
        body.elapsed_minutes,
        settings,
    )

    record = result.session
    if result.target_reached and settings.auto_complete_on_target:
        try:
            record = await complete_session(db, current_user, scenario_id)
        except ConflictError as e:
            # The turn is already stored; report it and leave completion to a retry
            logger.warning("Auto-complete skipped scenario=%s: %s", scenario_id, e.message)
            record = result.session
            await db.refresh(record)

    return ConversationOutSchema(
        ai_response=result.reply.message,
        sentiment=result.reply.sentiment,
        should_continue=result.reply.should_continue and record.status != STATUS_COMPLETED,
        feedback=result.feedback,
        progress=record.progress,
        status=record.status,
    )


@router.post("/scenarios/{scenario_id}/complete", response_model=UserScenarioOutSchema)
async def post_complete(
    scenario_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Finalize the session (early exit allowed); repeat calls are no-ops."""
    record = await complete_session(db, current_user, scenario_id)
    return session_to_out(record)


@router.post("/scenarios/{scenario_id}/coaching", response_model=CoachingOutSchema)
async def post_coaching(
    scenario_id: str,
    body: CoachingInSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
    oracle: Annotated[Oracle, Depends(get_oracle)],
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Learning hints, alternative responses and a flow analysis; never alters the session."""
    result = await coach_turn(db, oracle, current_user, scenario_id, body.message)
    return CoachingOutSchema(hints=result.hints, alternatives=result.alternatives, analysis=result.analysis)


# ---------- user ----------

@router.get("/user", response_model=UserOutSchema)
async def get_user(
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Current user with rollup counters."""
    return UserOutSchema.model_validate(current_user)


@router.patch("/user", response_model=UserOutSchema)
async def patch_user(
    body: UserUpdateSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Update name, email or role."""
    user = await update_profile(db, current_user, body.model_dump(exclude_unset=True))
    return UserOutSchema.model_validate(user)


@router.get("/user/scenarios", response_model=list[UserScenarioOutSchema])
async def get_user_scenarios(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
):
    """All of the user's sessions."""
    records = await list_sessions(db, current_user.id)
    return [session_to_out(r) for r in records]


@router.get("/user/scenarios/{scenario_id}", response_model=UserScenarioOutSchema)
async def get_user_scenario(
    scenario_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Session snapshot for resume."""
    record = await get_session(db, current_user.id, scenario_id)
    return session_to_out(record)
