"""Seed the built-in care scenarios and the demo care worker (idempotent)."""
import json
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carefully.core.config import get_settings
from carefully.models.scenario import Scenario
from carefully.models.user import User

logger = logging.getLogger(__name__)

SEED_SCENARIOS = [
    {
        "id": "scenario-1",
        "title": "Supporting Someone with Dementia Distress",
        "description": "Practice calming techniques and empathetic communication when a resident becomes agitated.",
        "category": "dementia_care",
        "difficulty": "intermediate",
        "estimated_time": 15,
        "priority": "high",
        "context": (
            "Mrs. Johnson, a resident with dementia, has become agitated and is asking repeatedly for her "
            "deceased husband. She's becoming increasingly distressed and other residents are getting worried."
        ),
        "learning_objectives": [
            "Practice validation techniques",
            "Develop empathetic responses",
            "Learn redirection strategies",
        ],
    },
    {
        "id": "scenario-2",
        "title": "Family Conflict Resolution",
        "description": "Handle disagreements between family members about care decisions.",
        "category": "family_communication",
        "difficulty": "intermediate",
        "estimated_time": 15,
        "priority": "high",
        "context": (
            "Two siblings are arguing about their mother's care plan. One wants aggressive treatment while "
            "the other prefers comfort care."
        ),
        "learning_objectives": [
            "Navigate family dynamics",
            "Facilitate difficult conversations",
            "Find common ground",
        ],
    },
    {
        "id": "scenario-3",
        "title": "Medication Refusal",
        "description": "Support someone who is refusing to take their prescribed medication.",
        "category": "medication_management",
        "difficulty": "beginner",
        "estimated_time": 12,
        "priority": "medium",
        "context": "Mr. Thompson has been refusing his blood pressure medication, saying it makes him feel dizzy.",
        "learning_objectives": [
            "Understand medication concerns",
            "Build trust",
            "Find solutions together",
        ],
    },
    {
        "id": "scenario-4",
        "title": "End of Life Conversation",
        "description": "Provide comfort and support during difficult end-of-life discussions.",
        "category": "end_of_life",
        "difficulty": "advanced",
        "estimated_time": 20,
        "priority": "medium",
        "context": "A resident has received a terminal diagnosis and wants to discuss their fears about dying.",
        "learning_objectives": [
            "Provide emotional support",
            "Listen actively",
            "Offer appropriate comfort",
        ],
    },
    {
        "id": "dem-001",
        "title": "Sundowning and Evening Agitation",
        "description": "Help a person with dementia who becomes increasingly agitated as evening approaches.",
        "category": "dementia_care",
        "difficulty": "intermediate",
        "estimated_time": 12,
        "priority": "high",
        "context": (
            "Mr. Thompson has dementia and every evening around 5 PM he becomes restless, confused, and "
            "agitated. He keeps asking for his wife who passed away 5 years ago and wants to 'go home' even "
            "though he's been living in the care facility for 2 years. Tonight he's particularly distressed, "
            "pacing the hallway and becoming upset with staff."
        ),
        "learning_objectives": [
            "Understand sundowning syndrome in dementia",
            "Practice de-escalation techniques for agitated residents",
            "Learn validation therapy approaches",
            "Develop strategies for redirecting confused behaviour",
        ],
    },
    {
        "id": "dem-002",
        "title": "Memory Care: Repeated Questions",
        "description": "Support someone with dementia who asks the same questions repeatedly throughout the day.",
        "category": "dementia_care",
        "difficulty": "beginner",
        "estimated_time": 10,
        "priority": "medium",
        "context": (
            "Mrs. Davies has moderate dementia and asks 'When is my daughter coming?' approximately every "
            "10 minutes. Her daughter visits weekly on Sundays, but Mrs. Davies cannot retain this "
            "information. Staff are becoming frustrated with the constant repetition, and Mrs. Davies is "
            "becoming more anxious each time she asks."
        ),
        "learning_objectives": [
            "Practice patient responses to repetitive questions",
            "Learn memory care communication techniques",
            "Understand the emotional needs behind repeated questions",
            "Develop empathy for memory loss experiences",
        ],
    },
    {
        "id": "dem-003",
        "title": "Personal Care Resistance",
        "description": "Navigate care assistance when a person with dementia refuses personal hygiene help.",
        "category": "dementia_care",
        "difficulty": "advanced",
        "estimated_time": 15,
        "priority": "high",
        "context": (
            "Mr. Foster has dementia and hasn't bathed in a week. When care staff approach him about "
            "washing, he becomes defensive, saying he 'just had a bath' and doesn't need help. His dignity "
            "is important, but hygiene is becoming a health concern."
        ),
        "learning_objectives": [
            "Preserve dignity while providing necessary care",
            "Learn gentle persuasion techniques",
            "Understand resistance as communication",
            "Practice person-centred care approaches",
        ],
    },
    {
        "id": "dem-004",
        "title": "Wandering and Safety Concerns",
        "description": "Manage a situation where someone with dementia is trying to leave the facility unsupervised.",
        "category": "dementia_care",
        "difficulty": "intermediate",
        "estimated_time": 12,
        "priority": "high",
        "context": (
            "Mrs. Chen has dementia and believes she needs to pick up her children from school (her "
            "children are now adults). She's found by the exit door with her coat on, looking distressed "
            "and saying she's 'late for the children'. She has tried to leave several times today."
        ),
        "learning_objectives": [
            "Practice safe redirection techniques",
            "Learn to validate emotional needs",
            "Understand wandering triggers",
            "Develop creative distraction strategies",
        ],
    },
]


async def seed_scenarios(db: AsyncSession) -> int:
    """Insert catalog scenarios that are missing; returns how many were added."""
    result = await db.execute(select(Scenario.id))
    existing = set(result.scalars().all())

    added = 0
    for data in SEED_SCENARIOS:
        if data["id"] in existing:
            continue
        fields = dict(data)
        objectives = fields.pop("learning_objectives")
        db.add(Scenario(**fields, learning_objectives_json=json.dumps(objectives), is_active=True))
        added += 1

    if added:
        await db.commit()
        logger.info("Seeded %d scenario(s)", added)
    return added


async def seed_demo_user(db: AsyncSession) -> User:
    """Create the demo care worker if missing."""
    email = get_settings().demo_user_email
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user is None:
        user = User(
            username=email.split("@", 1)[0],
            name="Sarah Adams",
            email=email,
            role="care_worker",
            total_scenarios=0,
            total_time=0,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        logger.info("Seeded demo user id=%s", user.id)
    return user
