"""UserScenario model: one user's session through one scenario.

responses_json and feedback_json are append-only JSON arrays; the version
column makes concurrent read-modify-write cycles fail instead of losing turns.
"""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from carefully.db.session import Base

STATUS_NOT_STARTED = "not_started"
STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"


class UserScenario(Base):
    __tablename__ = "user_scenarios"
    __table_args__ = (UniqueConstraint("user_id", "scenario_id", name="uq_user_scenarios_user_scenario"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    scenario_id = Column(String(64), ForeignKey("scenarios.id"), nullable=False, index=True)

    status = Column(String(16), nullable=False, default=STATUS_NOT_STARTED)
    progress = Column(Integer, nullable=False, default=0)  # 0-100
    # responses: JSON array of {userResponse, aiResponse, sentiment, feedback, timestamp}
    responses_json = Column(Text, nullable=False, default="[]")
    # feedback: JSON array of rubric dicts, parallel to responses
    feedback_json = Column(Text, nullable=False, default="[]")
    total_time = Column(Integer, nullable=False, default=0)  # minutes
    score = Column(Integer, nullable=False, default=0)  # 0-100, set on completion

    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    version = Column(Integer, nullable=False, default=1)

    user = relationship("User", back_populates="user_scenarios")
    scenario = relationship("Scenario", back_populates="user_scenarios")

    __mapper_args__ = {"version_id_col": version}
