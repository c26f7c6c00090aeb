from carefully.models.user import User
from carefully.models.scenario import Scenario
from carefully.models.user_scenario import UserScenario

__all__ = ["User", "Scenario", "UserScenario"]
