"""User model: care worker profile plus rollup counters from completed sessions."""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from carefully.db.session import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(64), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    role = Column(String(32), nullable=False, default="care_worker")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=True)

    # Rollup: incremented once per completed session, never decremented
    total_scenarios = Column(Integer, nullable=False, default=0)
    total_time = Column(Integer, nullable=False, default=0)  # minutes

    user_scenarios = relationship("UserScenario", back_populates="user", uselist=True)
