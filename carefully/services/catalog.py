"""Read-only scenario catalog."""
import json

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carefully.core.errors import NotFoundError
from carefully.models.scenario import Scenario
from carefully.schemas.scenario import ScenarioOutSchema


async def list_scenarios(db: AsyncSession) -> list[Scenario]:
    result = await db.execute(
        select(Scenario).where(Scenario.is_active == True).order_by(Scenario.id)  # noqa: E712
    )
    return list(result.scalars().all())


async def get_scenario(db: AsyncSession, scenario_id: str) -> Scenario:
    """Return the scenario or raise NotFoundError."""
    result = await db.execute(select(Scenario).where(Scenario.id == scenario_id))
    scenario = result.scalar_one_or_none()
    if scenario is None:
        raise NotFoundError("Scenario not found")
    return scenario


def scenario_to_out(scenario: Scenario) -> ScenarioOutSchema:
    return ScenarioOutSchema(
        id=scenario.id,
        title=scenario.title,
        description=scenario.description,
        context=scenario.context,
        category=scenario.category,
        difficulty=scenario.difficulty,
        estimated_time=scenario.estimated_time,
        priority=scenario.priority,
        learning_objectives=json.loads(scenario.learning_objectives_json or "[]"),
        is_active=bool(scenario.is_active),
    )
