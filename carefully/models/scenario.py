"""Scenario model: static roleplay content fed to the oracle."""
from sqlalchemy import Boolean, Column, Integer, String, Text
from sqlalchemy.orm import relationship

from carefully.db.session import Base

# SQLite doesn't have native JSON; we use Text and store JSON string


class Scenario(Base):
    __tablename__ = "scenarios"

    id = Column(String(64), primary_key=True)  # slug, e.g. "dem-001"
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    context = Column(Text, nullable=False)  # prose prompt for the character
    category = Column(String(64), nullable=False)
    difficulty = Column(String(16), nullable=False)  # beginner | intermediate | advanced
    estimated_time = Column(Integer, nullable=False)  # minutes
    priority = Column(String(16), nullable=False, default="medium")
    # learning objectives: JSON array of strings, in display order
    learning_objectives_json = Column(Text, nullable=False, default="[]")
    is_active = Column(Boolean, nullable=False, default=True)

    user_scenarios = relationship("UserScenario", back_populates="scenario")
