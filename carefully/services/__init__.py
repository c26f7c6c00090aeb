from carefully.services.coaching import coach_turn
from carefully.services.completion import complete_session
from carefully.services.conversation import submit_turn
from carefully.services.seeding import seed_demo_user, seed_scenarios
from carefully.services.sessions import start_session
from carefully.services.users import update_profile

__all__ = [
    "coach_turn",
    "complete_session",
    "submit_turn",
    "seed_demo_user",
    "seed_scenarios",
    "start_session",
    "update_profile",
]
