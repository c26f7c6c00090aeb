"""SQLAlchemy declarative base and model imports for Alembic."""
from carefully.db.session import Base

# Import all models so Alembic can see them
from carefully.models.scenario import Scenario  # noqa: F401
from carefully.models.user import User  # noqa: F401
from carefully.models.user_scenario import UserScenario  # noqa: F401

__all__ = ["Base", "User", "Scenario", "UserScenario"]
