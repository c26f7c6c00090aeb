"""Pydantic schemas for catalog scenarios."""
from pydantic import BaseModel, Field


class ScenarioOutSchema(BaseModel):
    id: str
    title: str
    description: str
    context: str
    category: str
    difficulty: str  # beginner | intermediate | advanced
    estimated_time: int = Field(alias="estimatedTime")
    priority: str
    learning_objectives: list[str] = Field(default_factory=list, alias="learningObjectives")
    is_active: bool = Field(True, alias="isActive")

    class Config:
        populate_by_name = True
