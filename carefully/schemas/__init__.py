from carefully.schemas.oracle import (
    AlternativeResponse,
    CharacterReply,
    ConversationAnalysis,
    LearningHint,
    RawRubric,
)
from carefully.schemas.scenario import ScenarioOutSchema
from carefully.schemas.session import (
    CoachingInSchema,
    CoachingOutSchema,
    ConversationInSchema,
    ConversationOutSchema,
    FeedbackRubricSchema,
    HistoryEntrySchema,
    StartOutSchema,
    TurnRecordSchema,
    UserScenarioOutSchema,
)
from carefully.schemas.user import UserOutSchema, UserUpdateSchema

__all__ = [
    "AlternativeResponse",
    "CharacterReply",
    "ConversationAnalysis",
    "LearningHint",
    "RawRubric",
    "ScenarioOutSchema",
    "CoachingInSchema",
    "CoachingOutSchema",
    "ConversationInSchema",
    "ConversationOutSchema",
    "FeedbackRubricSchema",
    "HistoryEntrySchema",
    "StartOutSchema",
    "TurnRecordSchema",
    "UserScenarioOutSchema",
    "UserOutSchema",
    "UserUpdateSchema",
]
